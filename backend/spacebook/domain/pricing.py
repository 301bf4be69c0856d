# backend/spacebook/domain/pricing.py
"""
Pricing for a single reservation interval.

``calculate_total`` does not round; amounts are quantized with
``round_money`` where they are persisted or serialized.
"""

from datetime import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from .intervals import duration_minutes

CENTS = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def duration_hours(start: time, end: time) -> Decimal:
    """Whole minutes over 60, clamped at zero (90 min -> 1.5)."""
    return Decimal(duration_minutes(start, end)) / Decimal(60)


def calculate_total(hourly_rate: Number, start: time, end: time) -> Decimal:
    """Return ``hourly_rate * duration_hours(start, end)``."""
    return Decimal(str(hourly_rate)) * duration_hours(start, end)


def round_money(amount: Number) -> Decimal:
    """Quantize to cents, rounding half up."""
    return Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)
