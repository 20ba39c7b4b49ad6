"""Tests for calendar helpers and volume conversion."""

import pytest
from datetime import date
from decimal import Decimal

from src.engine.calendar_utils import (
    DEFAULT_HOURS_IN_MONTH,
    hours_for_month_key,
    hours_in_month,
    months_apart,
    months_between,
    normalize_year_month,
    parse_year_month,
)
from src.engine.volume import to_avg_power, to_energy
from src.utils.numbers import coerce_decimal, parse_numeric_input


class TestHoursInMonth:
    """Tests for hours_in_month."""

    def test_31_day_month(self):
        assert hours_in_month(2024, 1) == 744

    def test_30_day_month(self):
        assert hours_in_month(2024, 4) == 720

    def test_leap_february(self):
        """February of a leap year has 29 days."""
        assert hours_in_month(2024, 2) == 696

    def test_non_leap_february(self):
        assert hours_in_month(2023, 2) == 672

    def test_century_non_leap(self):
        assert hours_in_month(1900, 2) == 672
        assert hours_in_month(2000, 2) == 696

    def test_year_total(self):
        """Hours across a non-leap year add up to 8760."""
        assert sum(hours_in_month(2025, m) for m in range(1, 13)) == 8760

    def test_month_key_fallback(self):
        """Unparsable tokens use the conventional 730 hours."""
        assert hours_for_month_key("2024-02") == 696
        assert hours_for_month_key("garbage") == DEFAULT_HOURS_IN_MONTH
        assert DEFAULT_HOURS_IN_MONTH == 730


class TestMonthParsing:
    """Tests for month token parsing."""

    def test_parse_plain(self):
        assert parse_year_month("2024-03") == (2024, 3)

    def test_parse_finer(self):
        assert parse_year_month("2024-03-15") == (2024, 3)
        assert parse_year_month("2024-03-15T10:00:00Z") == (2024, 3)

    def test_parse_date_object(self):
        assert parse_year_month(date(2025, 7, 31)) == (2025, 7)

    def test_parse_invalid(self):
        assert parse_year_month("2024-13") is None
        assert parse_year_month("March 2024") is None
        assert parse_year_month(None) is None
        assert parse_year_month("") is None

    def test_normalize(self):
        assert normalize_year_month("2024-3") == "2024-03"
        assert normalize_year_month("bad") is None

    def test_months_apart(self):
        assert months_apart("2024-11", "2025-01") == 2
        assert months_apart("2024-01", "x") is None


class TestMonthsBetween:
    """Tests for months_between."""

    def test_inclusive_range(self):
        assert list(months_between("2024-01", "2024-03")) == ["2024-01", "2024-02", "2024-03"]

    def test_crosses_year(self):
        assert list(months_between("2024-11", "2025-02")) == [
            "2024-11", "2024-12", "2025-01", "2025-02",
        ]

    def test_single_month(self):
        assert list(months_between("2024-05", "2024-05")) == ["2024-05"]

    def test_restartable(self):
        """Iterating twice gives the same sequence."""
        months = months_between("2024-01", "2024-06")
        assert list(months) == list(months)
        assert len(months) == 6

    def test_unparsable_is_empty(self):
        assert list(months_between("abc", "2024-03")) == []
        assert list(months_between("2024-01", None)) == []
        assert len(months_between("abc", "def")) == 0

    def test_inverted_is_empty(self):
        months = months_between("2024-05", "2024-01")
        assert list(months) == []
        assert len(months) == 0
        assert not months

    def test_membership(self):
        months = months_between("2024-03", "2024-10")
        assert "2024-03" in months
        assert "2024-10" in months
        assert "2024-11" not in months
        assert "2024-02" not in months


class TestVolumeConversion:
    """Tests for average power <-> energy conversion."""

    def test_to_energy(self):
        assert to_energy(Decimal("100"), 744) == Decimal("74400")

    def test_to_avg_power(self):
        assert to_avg_power(Decimal("69600"), 696) == Decimal("100")

    def test_absent_is_not_computed(self):
        assert to_energy(None, 744) is None
        assert to_avg_power(None, 744) is None

    def test_non_finite_is_not_computed(self):
        assert to_energy(Decimal("NaN"), 744) is None
        assert to_energy(Decimal("Infinity"), 744) is None
        assert to_energy(float("inf"), 744) is None

    def test_plain_numbers(self):
        """int and float volumes convert like Decimals."""
        assert to_energy(100, 744) == Decimal("74400")
        assert to_energy(1.5, 744) == Decimal("1116.0")
        assert to_avg_power(69600, 696) == Decimal("100")
        assert to_avg_power(0.0, 720) == Decimal("0")

    @pytest.mark.parametrize("value,hours", [
        (Decimal("1.5"), 744),
        (Decimal("12.345"), 696),
        (Decimal("0.1"), 720),
        (Decimal("250"), 672),
    ])
    def test_round_trip(self, value, hours):
        """Converting there and back returns the original value."""
        assert abs(to_avg_power(to_energy(value, hours), hours) - value) < Decimal("1e-12")
        assert abs(to_energy(to_avg_power(value, hours), hours) - value) < Decimal("1e-12")


class TestNumericInput:
    """Tests for locale-tolerant numeric parsing."""

    def test_dot_decimal(self):
        assert parse_numeric_input("12.5") == Decimal("12.5")

    def test_comma_decimal(self):
        assert parse_numeric_input("12,5") == Decimal("12.5")

    def test_grouped_thousands(self):
        assert parse_numeric_input("1.234,56") == Decimal("1234.56")
        assert parse_numeric_input("1,234.56") == Decimal("1234.56")
        assert parse_numeric_input("1.234.567") == Decimal("1234567")

    def test_whitespace_and_sign(self):
        assert parse_numeric_input(" 1 000 ") == Decimal("1000")
        assert parse_numeric_input("-3,5") == Decimal("-3.5")

    def test_incomplete_input(self):
        """Text still being typed does not parse."""
        assert parse_numeric_input("12,") is None
        assert parse_numeric_input(",") is None
        assert parse_numeric_input("-") is None

    def test_garbage(self):
        assert parse_numeric_input("abc") is None
        assert parse_numeric_input("") is None
        assert parse_numeric_input(None) is None

    def test_coerce_decimal(self):
        assert coerce_decimal(1.5) == Decimal("1.5")
        assert coerce_decimal(3) == Decimal("3")
        assert coerce_decimal("2,5") == Decimal("2.5")
        assert coerce_decimal(float("nan")) is None
        assert coerce_decimal(True) is None
        assert coerce_decimal({}) is None
