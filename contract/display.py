"""Display helpers for prices and their timestamps."""
import time
from typing import Optional

from .codec import decode_wide
from .models import Price, PriceDisplay

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR
SECONDS_PER_WEEK = 7 * SECONDS_PER_DAY


def format_price(price_in_cents: int) -> str:
    """Whole currency units with es-AR thousands separators, e.g. "$1.500"."""
    units = (price_in_cents + 50) // 100
    return f"${units:,}".replace(',', '.')


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def format_relative(timestamp: int, now: Optional[float] = None) -> str:
    """How long ago a price was recorded, in Spanish."""
    elapsed = max(0, int((now if now is not None else time.time()) - timestamp))
    if elapsed < SECONDS_PER_HOUR:
        return f"Hace {_plural(elapsed // SECONDS_PER_MINUTE, 'min')}"
    if elapsed < SECONDS_PER_DAY:
        return f"Hace {_plural(elapsed // SECONDS_PER_HOUR, 'hora')}"
    if elapsed < SECONDS_PER_WEEK:
        return f"Hace {_plural(elapsed // SECONDS_PER_DAY, 'día')}"
    return f"Hace {_plural(elapsed // SECONDS_PER_WEEK, 'semana')}"


def is_old_price(timestamp: int, now: Optional[float] = None) -> bool:
    """Whether a price is more than a week old."""
    return timestamp < (now if now is not None else time.time()) - SECONDS_PER_WEEK


def price_to_display(price: Price, store_id: str, now: Optional[float] = None) -> PriceDisplay:
    price_in_cents = decode_wide(price.price)
    return PriceDisplay(
        store_id=store_id,
        price_in_cents=price_in_cents,
        timestamp=price.timestamp,
        formatted_price=format_price(price_in_cents),
        relative_time=format_relative(price.timestamp, now),
        is_old=is_old_price(price.timestamp, now)
    )
