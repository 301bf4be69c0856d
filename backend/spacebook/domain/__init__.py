"""Pure booking rules: interval overlap and pricing."""

from .intervals import duration_minutes, format_hhmm, intervals_overlap, parse_hhmm
from .pricing import calculate_total, duration_hours, round_money

__all__ = [
    "calculate_total",
    "duration_hours",
    "duration_minutes",
    "format_hhmm",
    "intervals_overlap",
    "parse_hhmm",
    "round_money",
]
