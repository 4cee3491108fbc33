"""Great-circle distances and per-store distance derivation."""
import asyncio
import logging
import math
from typing import List, Optional, Protocol

from .models import Coordinates, RankedStore

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371


class Geocoder(Protocol):
    def geocode(self, address: str, name: Optional[str] = None) -> Optional[Coordinates]:
        ...


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance between two points in kilometers, rounded to one decimal."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_KM * c, 1)


async def _locate(store: RankedStore, origin: Coordinates, geocoder: Geocoder) -> RankedStore:
    try:
        coordinates = await asyncio.to_thread(geocoder.geocode, store.address, store.name)
    except Exception as e:
        logger.error(f"Error calculating distance for store {store.name}: {e}")
        return store
    if coordinates is None:
        return store
    distance = haversine_km(origin.lat, origin.lng, coordinates.lat, coordinates.lng)
    return store.model_copy(update={'coordinates': coordinates, 'distance': distance})


async def attach_distances(
    stores: List[RankedStore],
    origin: Coordinates,
    geocoder: Geocoder
) -> List[RankedStore]:
    """Geocode every store concurrently and set its distance from origin.

    A store whose lookup fails keeps distance None; the others are unaffected.
    """
    logger.info(f"Calculating distances for {len(stores)} stores from {origin.lat},{origin.lng}")
    return list(await asyncio.gather(*(_locate(store, origin, geocoder) for store in stores)))
