"""Year-tab period builder.

Splits a contract's validity window into one tab per calendar year. Each tab
holds a row per month that falls inside both the year and the window, seeded
from any previously persisted price periods.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional
import logging

from src.engine.calendar_utils import (
    format_year_month,
    hours_for_month_key,
    months_between,
    parse_year_month,
)
from src.engine.flexibility import FlexibilityParams, calculate_bounds
from src.engine.price_periods import PricePeriods, PricePeriodMonth, new_period_id
from src.engine.volume import VolumeSource, to_avg_power, to_energy
from src.utils.numbers import to_float

logger = logging.getLogger(__name__)


@dataclass
class MonthRow:
    """A single month of the pricing grid."""
    month: str
    hours_in_month: int

    # Volumes
    volume_avg_power: Optional[Decimal] = None
    volume_energy: Optional[Decimal] = None
    volume_seasonalized: Optional[Decimal] = None

    # Always derived from volume_seasonalized
    flexibility_max: Optional[Decimal] = None
    flexibility_min: Optional[Decimal] = None

    # Prices
    base_price: Optional[Decimal] = None
    adjusted_price: Optional[Decimal] = None

    # Which of avg power / energy drives the other
    volume_source: Optional[VolumeSource] = None
    # Adjusted price was typed by the user rather than derived
    adjusted_price_manual: bool = False

    @property
    def year(self) -> int:
        return int(self.month[:4])

    @property
    def has_volume(self) -> bool:
        return any(
            value is not None
            for value in (self.volume_avg_power, self.volume_energy, self.volume_seasonalized)
        )

    @property
    def has_price(self) -> bool:
        return self.base_price is not None

    @property
    def is_empty(self) -> bool:
        return not (self.has_volume or self.has_price)

    def apply_flexibility(self, params: FlexibilityParams) -> None:
        """Recompute both flexibility bounds from the seasonalized volume."""
        self.flexibility_max, self.flexibility_min = calculate_bounds(self.volume_seasonalized, params)

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            "month": self.month,
            "hours_in_month": self.hours_in_month,
            "volume_avg_power": to_float(self.volume_avg_power),
            "volume_energy": to_float(self.volume_energy),
            "volume_seasonalized": to_float(self.volume_seasonalized),
            "flexibility_max": to_float(self.flexibility_max),
            "flexibility_min": to_float(self.flexibility_min),
            "base_price": to_float(self.base_price),
            "adjusted_price": to_float(self.adjusted_price),
            "volume_source": self.volume_source.value if self.volume_source else None,
            "adjusted_price_manual": self.adjusted_price_manual,
        }


@dataclass
class YearTab:
    """One calendar year of the grid."""
    year: int
    months: List[MonthRow] = field(default_factory=list)
    period_id: str = field(default_factory=new_period_id)
    # Price applied to months of the year that have none
    default_price: Optional[Decimal] = None

    @property
    def start(self) -> Optional[str]:
        return self.months[0].month if self.months else None

    @property
    def end(self) -> Optional[str]:
        return self.months[-1].month if self.months else None

    def to_dict(self) -> Dict:
        return {
            "year": self.year,
            "period_id": self.period_id,
            "default_price": to_float(self.default_price),
            "start": self.start,
            "end": self.end,
            "months": [row.to_dict() for row in self.months],
        }


def _window_years(start, end) -> Optional[List[int]]:
    """Calendar years overlapping the window, None if the window is unusable."""
    start_ym = parse_year_month(start)
    end_ym = parse_year_month(end)
    if start_ym is None or end_ym is None or start_ym > end_ym:
        return None
    return list(range(start_ym[0], end_ym[0] + 1))


def _seed_row(ym: str, persisted: Optional[PricePeriodMonth]) -> MonthRow:
    row = MonthRow(month=ym, hours_in_month=hours_for_month_key(ym))
    if persisted is None:
        return row

    row.volume_avg_power = persisted.volume_avg_power
    row.volume_energy = persisted.volume_energy
    row.volume_seasonalized = persisted.volume_seasonalized
    row.base_price = persisted.base_price

    # Only one side stored: derive the other
    if row.volume_avg_power is not None and row.volume_energy is None:
        row.volume_energy = to_energy(row.volume_avg_power, row.hours_in_month)
        row.volume_source = VolumeSource.AVG_POWER
    elif row.volume_energy is not None and row.volume_avg_power is None:
        row.volume_avg_power = to_avg_power(row.volume_energy, row.hours_in_month)
        row.volume_source = VolumeSource.ENERGY
    elif row.volume_avg_power is not None:
        row.volume_source = VolumeSource.AVG_POWER

    # Seasonalized follows energy unless it was stored separately
    if row.volume_seasonalized is None:
        row.volume_seasonalized = row.volume_energy

    if row.base_price is not None and persisted.adjusted_price is not None:
        row.adjusted_price = persisted.adjusted_price
        row.adjusted_price_manual = True
    return row


def build_year_tabs(
    start,
    end,
    persisted: Optional[PricePeriods] = None,
    flexibility: Optional[FlexibilityParams] = None,
    today: Optional[date] = None,
) -> List[YearTab]:
    """Build the year tabs for a contract validity window.

    Args:
        start: First month of the window (YYYY-MM or finer)
        end: Last month of the window, inclusive
        persisted: Previously saved price periods used to seed values
        flexibility: Contract flexibility percentages
        today: Reference date for the fallback year

    Returns:
        Year tabs in chronological order. If the window is missing or
        unparsable, a single tab covering the current calendar year.
    """
    flexibility = flexibility or FlexibilityParams()
    seeds = persisted.month_map() if persisted else {}
    period_ids = {}
    default_prices = {}
    if persisted:
        for period in persisted.periods:
            year = int(period.start[:4])
            period_ids.setdefault(year, period.id)
            if period.default_price is not None:
                default_prices.setdefault(year, period.default_price)

    years = _window_years(start, end)
    clip_to_window = True
    if years is None:
        fallback_year = (today or date.today()).year
        logger.info(f"Invalid contract window ({start!r}, {end!r}), using {fallback_year}")
        years = [fallback_year]
        clip_to_window = False

    window = months_between(start, end)
    tabs = []
    for year in years:
        rows = []
        for ym in months_between(format_year_month(year, 1), format_year_month(year, 12)):
            if clip_to_window and ym not in window:
                continue
            row = _seed_row(ym, seeds.get(ym))
            row.apply_flexibility(flexibility)
            rows.append(row)
        tab = YearTab(year=year, months=rows, default_price=default_prices.get(year))
        if year in period_ids:
            tab.period_id = period_ids[year]
        tabs.append(tab)
    return tabs
