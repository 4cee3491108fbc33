"""Ranking module for comparing stores.

This module provides:
- Price deltas against the cheapest store in the current set
- Distances from the user to each store (geocoded, haversine)
- Ordering by price or by distance
"""

import logging
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from contract import PriceDisplay, StoreWithPrice, price_to_display

from .models import Coordinates, RankedStore
from .geo import Geocoder, haversine_km, attach_distances
from .geocoding import NominatimGeocoder, StaticGeocoder, KNOWN_STORE_COORDINATES, get_geocoder

logger = logging.getLogger(__name__)


class SortMode(str, Enum):
    PRICE = "price"
    DISTANCE = "distance"


def cheapest_price(displays: Sequence[PriceDisplay]) -> int:
    """Minimum price in cents, 0 for an empty set."""
    return min((display.price_in_cents for display in displays), default=0)


def compute_price_deltas(displays: Sequence[PriceDisplay]) -> List[Tuple[int, float]]:
    """(difference, percentage difference) from the cheapest price, per display."""
    cheapest = cheapest_price(displays)
    return [
        (
            display.price_in_cents - cheapest,
            (display.price_in_cents - cheapest) / cheapest * 100 if cheapest > 0 else 0.0
        )
        for display in displays
    ]


def apply_price_deltas(stores: Sequence[StoreWithPrice]) -> List[RankedStore]:
    """Join each store with its display price and its delta from the cheapest."""
    displays = [price_to_display(store.current_price, store.id) for store in stores]
    return [
        RankedStore(
            **store.model_dump(include=set(StoreWithPrice.model_fields)),
            price_display=display,
            price_difference_from_cheapest=difference,
            price_difference_percentage=percentage
        )
        for store, display, (difference, percentage)
        in zip(stores, displays, compute_price_deltas(displays))
    ]


def sort_stores(stores: Sequence[RankedStore], mode: SortMode = SortMode.PRICE) -> List[RankedStore]:
    """Stable ascending sort; stores without a distance go last in distance mode."""
    if SortMode(mode) is SortMode.DISTANCE:
        return sorted(stores, key=lambda store: (store.distance is None, store.distance or 0.0))
    return sorted(stores, key=lambda store: store.price_display.price_in_cents)


async def rank_stores(
    stores: Sequence[StoreWithPrice],
    mode: SortMode = SortMode.PRICE,
    origin: Optional[Coordinates] = None,
    geocoder: Optional[Geocoder] = None
) -> List[RankedStore]:
    """Derive prices, deltas and (with an origin) distances, then sort."""
    ranked = apply_price_deltas(stores)
    if origin is not None:
        ranked = await attach_distances(ranked, origin, geocoder or get_geocoder())
    return sort_stores(ranked, mode)


__all__ = [
    'SortMode',
    'Coordinates',
    'RankedStore',
    'Geocoder',
    'NominatimGeocoder',
    'StaticGeocoder',
    'KNOWN_STORE_COORDINATES',
    'get_geocoder',
    'haversine_km',
    'attach_distances',
    'cheapest_price',
    'compute_price_deltas',
    'apply_price_deltas',
    'sort_stores',
    'rank_stores'
]
