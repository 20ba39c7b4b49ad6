"""Price-period summary and grid serialization."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Union

from src.engine.periods import YearTab
from src.engine.price_periods import PricePeriod, PricePeriodMonth, PricePeriods


@dataclass
class PricePeriodsSummary:
    """Count of priced months and their average price."""
    filled_months: int = 0
    average_price: Optional[Decimal] = None

    def to_dict(self) -> Dict:
        return {
            "filled_months": self.filled_months,
            "average_price": float(self.average_price) if self.average_price is not None else None,
        }


def summarize(periods: Union[PricePeriods, Iterable[PricePeriod], None]) -> PricePeriodsSummary:
    """Count priced months and average their price.

    The last price seen for a month wins if the same month appears in more
    than one period. With nothing priced the average is None.
    """
    if periods is None:
        return PricePeriodsSummary()
    if isinstance(periods, PricePeriods):
        periods = periods.periods

    prices: Dict[str, Decimal] = {}
    for period in periods:
        for month in period.months:
            if month.ym and month.base_price is not None and month.base_price.is_finite():
                prices[month.ym] = month.base_price

    if not prices:
        return PricePeriodsSummary()

    total = sum(prices.values(), Decimal("0"))
    return PricePeriodsSummary(
        filled_months=len(prices),
        average_price=total / len(prices),
    )


def serialize(year_tabs: List[YearTab]) -> PricePeriods:
    """Convert the live grid to the persisted structure.

    Empty months are dropped, then tabs left with neither months nor a
    default price. Adjusted prices are not written; they are re-derived
    from the index on the next load.
    """
    periods = []
    for tab in year_tabs:
        months = [
            PricePeriodMonth(
                ym=row.month,
                volume_avg_power=row.volume_avg_power,
                volume_energy=row.volume_energy,
                volume_seasonalized=row.volume_seasonalized,
                flexibility_max=row.flexibility_max,
                flexibility_min=row.flexibility_min,
                base_price=row.base_price,
            )
            for row in tab.months
            if not row.is_empty
        ]
        if not months and tab.default_price is None:
            continue
        periods.append(PricePeriod(
            id=tab.period_id,
            start=tab.start,
            end=tab.end,
            months=months,
            default_price=tab.default_price,
        ))
    return PricePeriods(periods=periods)


def calculate_price_difference(
    periods: Union[PricePeriods, Iterable[PricePeriod], None],
    reference_price: Decimal,
) -> Decimal:
    """Average contracted price minus a reference price; 0 when nothing is priced."""
    summary = summarize(periods)
    if not summary.filled_months or summary.average_price is None:
        return Decimal("0")
    return summary.average_price - reference_price
