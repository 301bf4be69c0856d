"""
Unit tests for reservation pricing.

Run with: pytest backend/tests/unit/domain/test_pricing.py -v
"""

from datetime import time
from decimal import Decimal

import pytest

from spacebook.domain.pricing import calculate_total, duration_hours, round_money


class TestCalculateTotal:
    def test_two_hours_at_100(self):
        assert calculate_total(Decimal("100"), time(9, 0), time(11, 0)) == Decimal("200")

    def test_ninety_minutes_at_50(self):
        assert calculate_total(Decimal("50"), time(14, 0), time(15, 30)) == Decimal("75")

    def test_zero_rate_is_free(self):
        assert calculate_total(Decimal("0"), time(8, 0), time(18, 0)) == Decimal("0")

    def test_accepts_float_and_str_rates(self):
        assert calculate_total(80.5, time(9, 0), time(10, 0)) == Decimal("80.5")
        assert calculate_total("12.25", time(9, 0), time(11, 0)) == Decimal("24.50")

    def test_inverted_interval_costs_nothing(self):
        assert calculate_total(Decimal("100"), time(11, 0), time(9, 0)) == Decimal("0")

    def test_result_is_not_rounded(self):
        # 20 minutes at 10/h
        total = calculate_total(Decimal("10"), time(9, 0), time(9, 20))
        assert total != round_money(total)
        assert round_money(total) == Decimal("3.33")


def test_duration_hours_fractional():
    assert duration_hours(time(9, 0), time(10, 45)) == Decimal("1.75")


def test_duration_counts_whole_minutes():
    assert duration_hours(time(9, 0, 30), time(10, 0)) == Decimal("1")


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2.005", "2.01"),
        ("2.004", "2.00"),
        ("0.125", "0.13"),
        (Decimal("199.995"), "200.00"),
        (7, "7.00"),
    ],
)
def test_round_money_half_up(raw, expected):
    assert round_money(raw) == Decimal(expected)
    assert str(round_money(raw)) == expected
