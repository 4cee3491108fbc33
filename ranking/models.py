from typing import Optional
from pydantic import BaseModel

from contract import PriceDisplay, StoreWithPrice


class Coordinates(BaseModel):
    lat: float
    lng: float


class RankedStore(StoreWithPrice):
    """A store joined with its display price, delta from the cheapest and distance."""
    price_display: PriceDisplay
    price_difference_from_cheapest: int = 0
    price_difference_percentage: float = 0.0
    distance: Optional[float] = None
    coordinates: Optional[Coordinates] = None
