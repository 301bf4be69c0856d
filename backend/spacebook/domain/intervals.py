# backend/spacebook/domain/intervals.py
"""
Same-day time intervals.

Intervals are half-open ``[start, end)``: a booking ending at 10:00 and one
starting at 10:00 do not overlap. Callers validate ``end > start`` before
asking about overlap; nothing here raises on inverted input.
"""

from datetime import time
from typing import Union

TimeLike = Union[time, str]


def parse_hhmm(value: TimeLike) -> time:
    """
    Parse ``HH:MM`` into a ``time``.

    Times are minute precision: ``HH:MM:00`` is accepted, any other seconds
    value is rejected. ``time`` instances pass through unchanged when they
    carry no seconds.

    Raises:
        ValueError: If the value is not a 24-hour clock time on a whole minute
    """
    if isinstance(value, time):
        if value.second or value.microsecond:
            raise ValueError(f"Invalid time '{value}', expected whole minutes")
        return value
    text = value.strip()
    parts = text.split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() and len(p) == 2 for p in parts):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    if len(parts) == 3 and parts[2] != "00":
        raise ValueError(f"Invalid time '{value}', expected whole minutes")
    return time(int(parts[0]), int(parts[1]))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def _minute_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def duration_minutes(start: time, end: time) -> int:
    """Minutes between ``start`` and ``end``; zero when ``end <= start``."""
    return max(0, _minute_of_day(end) - _minute_of_day(start))


def intervals_overlap(start1: time, end1: time, start2: time, end2: time) -> bool:
    """True iff ``[start1, end1)`` and ``[start2, end2)`` share an instant."""
    return not (end1 <= start2 or start1 >= end2)
