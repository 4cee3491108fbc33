"""Address geocoding.

NominatimGeocoder queries the OpenStreetMap search API. StaticGeocoder answers
from a fixed table of known store locations and needs no network.
"""
import logging
from typing import Dict, Optional

import requests

from config import settings_conf

from .models import Coordinates

logger = logging.getLogger(__name__)

USER_AGENT = "fernet-barato/1.0"

KNOWN_STORE_COORDINATES: Dict[str, Coordinates] = {
    'Supermercado Enor': Coordinates(lat=-34.457228, lng=-58.9104137),
    'Supermercado Chino Familia': Coordinates(lat=-34.4471295, lng=-58.8981354),
    'Super Tenta': Coordinates(lat=-34.4555109, lng=-58.9212648),
    'Supermercado Las Marias2': Coordinates(lat=-34.4525611, lng=-58.8824968),
    'Las Marias Supermarket': Coordinates(lat=-34.4484204, lng=-58.8723886),
    'Autoservicio Mayorista Maxi 200': Coordinates(lat=-34.5140811, lng=-58.7249649),
    'Supermercado Angel': Coordinates(lat=-34.4587466, lng=-58.9155361),
    'Autoservicio Fatima': Coordinates(lat=-34.4359189, lng=-58.9919568),
    'El Siglo': Coordinates(lat=-34.4534259, lng=-58.929319),
    'Carrefour Hipermercado Pilar': Coordinates(lat=-34.4573728, lng=-58.8987983),
    'Supermercados Eco': Coordinates(lat=-34.4563693, lng=-58.9143726),
    'Mercado del Parque': Coordinates(lat=-34.4129136, lng=-58.9687801),
    'Supermercado Hito Market': Coordinates(lat=-34.4566373, lng=-58.9156631),
    'Verduleria & Despensa Evelyn': Coordinates(lat=-34.4437365, lng=-58.9756275),
}


class NominatimGeocoder:
    """Geocoder backed by the OpenStreetMap Nominatim search API"""

    def __init__(self, url: Optional[str] = None, country: Optional[str] = None, timeout: float = 10):
        self.url = url or settings_conf['geocoding_url']
        self.country = settings_conf['geocoding_country'] if country is None else country
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers['User-Agent'] = USER_AGENT

    def geocode(self, address: str, name: Optional[str] = None) -> Optional[Coordinates]:
        """Resolve an address, None when nothing matches or the lookup fails"""
        query = f"{address}, {self.country}" if self.country else address
        try:
            response = self.session.get(
                self.url,
                params={'format': 'json', 'q': query, 'limit': 1},
                timeout=self.timeout
            )
            response.raise_for_status()
            results = response.json()
            if not results:
                logger.info(f"No geocoding match for {query!r}")
                return None
            return Coordinates(lat=float(results[0]['lat']), lng=float(results[0]['lon']))
        except (requests.exceptions.RequestException, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error geocoding address {query!r}: {e}")
            return None


class StaticGeocoder:
    """Geocoder answering from known store coordinates, by store name"""

    def __init__(self, coordinates: Optional[Dict[str, Coordinates]] = None):
        self.coordinates = KNOWN_STORE_COORDINATES if coordinates is None else coordinates

    def geocode(self, address: str, name: Optional[str] = None) -> Optional[Coordinates]:
        return self.coordinates.get(name) if name else None


def get_geocoder(kind: Optional[str] = None):
    """Build the geocoder selected in settings"""
    kind = kind or settings_conf['geocoder']
    if kind == 'static':
        return StaticGeocoder()
    return NominatimGeocoder()
