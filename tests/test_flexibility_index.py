"""Tests for flexibility bounds and index adjustment."""

import pytest
from decimal import Decimal

from src.engine.flexibility import FlexibilityParams, calculate_bounds, flex_max, flex_min
from src.engine.index_adjustment import (
    NEUTRAL_MULTIPLIER,
    IndexMultiplier,
    IndexTable,
    IndexVariation,
    adjusted_price,
    build_index_multipliers,
)


class TestFlexibility:
    """Tests for the flexibility band calculation."""

    def test_bounds(self):
        """20% up / 10% down around 1000."""
        params = FlexibilityParams(upper_pct=Decimal("20"), lower_pct=Decimal("10"))
        upper, lower = calculate_bounds(Decimal("1000"), params)
        assert upper == Decimal("1200")
        assert lower == Decimal("900")

    def test_absent_volume(self):
        """No seasonalized volume means no bounds, not zero."""
        params = FlexibilityParams(upper_pct=Decimal("20"), lower_pct=Decimal("10"))
        assert calculate_bounds(None, params) == (None, None)

    def test_lower_clamped_at_zero(self):
        assert flex_min(Decimal("1000"), Decimal("150")) == Decimal("0")

    def test_lower_at_100_pct(self):
        assert flex_min(Decimal("1000"), Decimal("100")) == Decimal("0")

    @pytest.mark.parametrize("volume,upper,lower", [
        (Decimal("0"), Decimal("0"), Decimal("0")),
        (Decimal("500"), Decimal("50"), Decimal("100")),
        (Decimal("123.45"), Decimal("200"), Decimal("30")),
        (Decimal("1000"), Decimal("5"), Decimal("250")),
    ])
    def test_ordering(self, volume, upper, lower):
        """max >= volume >= min >= 0."""
        high = flex_max(volume, upper)
        low = flex_min(volume, lower)
        assert high >= volume >= low >= 0

    def test_plain_numbers(self):
        assert flex_max(1000, 20) == Decimal("1200")
        assert flex_min(1000.0, 10) == Decimal("900")
        assert calculate_bounds(500, FlexibilityParams(upper_pct=10, lower_pct=10)) == (
            Decimal("550"), Decimal("450"),
        )
        assert flex_max(float("nan"), 20) is None

    def test_params_coerce(self):
        params = FlexibilityParams(upper_pct=20, lower_pct=7.5)
        assert params.upper_pct == Decimal("20")
        assert params.lower_pct == Decimal("7.5")

    def test_negative_params_rejected(self):
        with pytest.raises(ValueError):
            FlexibilityParams(upper_pct=Decimal("-1"), lower_pct=Decimal("0"))


class TestIndexTable:
    """Tests for IndexTable lookup."""

    def test_lookup_present(self):
        table = IndexTable.from_pairs([("2024-01", Decimal("1.05"))])
        assert table.lookup("2024-01") == Decimal("1.05")
        assert table.has_entry("2024-01")

    def test_lookup_missing_is_neutral(self):
        table = IndexTable.from_pairs([("2024-01", Decimal("1.05"))])
        assert table.lookup("2024-02") == NEUTRAL_MULTIPLIER
        assert not table.has_entry("2024-02")

    def test_empty(self):
        table = IndexTable()
        assert table.is_empty
        assert len(table) == 0
        assert table.lookup("2024-01") == Decimal("1")

    def test_ordered(self):
        table = IndexTable.from_pairs([("2024-03", 1.2), ("2024-01", 1.1)])
        assert table.months() == ["2024-01", "2024-03"]

    def test_invalid_month_skipped(self):
        table = IndexTable([
            IndexMultiplier(month="not-a-month", variation_pct=Decimal("0"), multiplier=Decimal("2")),
        ])
        assert table.is_empty


class TestAdjustedPrice:
    """Tests for adjusted_price."""

    def test_scaled(self):
        table = IndexTable.from_pairs([("2024-01", Decimal("1.05"))])
        assert adjusted_price(Decimal("200"), table, "2024-01") == Decimal("210")

    def test_no_base_price(self):
        table = IndexTable.from_pairs([("2024-01", Decimal("1.05"))])
        assert adjusted_price(None, table, "2024-01") is None

    def test_no_entry(self):
        assert adjusted_price(Decimal("200"), IndexTable(), "2024-01") == Decimal("200")


class TestBuildIndexMultipliers:
    """Tests for compounding monthly variations."""

    def test_compounds_in_date_order(self):
        variations = [
            IndexVariation(reference_date="01/02/2024", variation_pct="1.0"),
            IndexVariation(reference_date="01/01/2024", variation_pct="0.5"),
        ]
        multipliers = build_index_multipliers(variations)

        assert [m.month for m in multipliers] == ["2024-01", "2024-02"]
        assert multipliers[0].multiplier == Decimal("1.005")
        assert multipliers[1].multiplier == Decimal("1.005") * Decimal("1.01")

    def test_skips_invalid(self):
        variations = [
            IndexVariation(reference_date="01/01/2024", variation_pct="abc"),
            IndexVariation(reference_date="bad date", variation_pct="0.5"),
            IndexVariation(reference_date="01/03/2024", variation_pct="0,5"),
        ]
        multipliers = build_index_multipliers(variations)

        assert len(multipliers) == 1
        assert multipliers[0].month == "2024-03"
        assert multipliers[0].multiplier == Decimal("1.005")

    def test_empty(self):
        assert build_index_multipliers([]) == []
