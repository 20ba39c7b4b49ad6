"""Persisted price-periods structure.

This is the form the pricing grid takes when stored on a contract:

    {"periods": [{"id": ..., "start": "2024-01", "end": "2024-12",
                  "months": [{"ym": "2024-01", "volumeMWm": 1.0,
                              "volumeMWh": 744.0, "volumeSeasonalizedMWh": 744.0,
                              "flexibilityMaxMWh": 892.8, "flexibilityMinMWh": 669.6,
                              "price": 210.0}, ...]}]}

A period may carry a `defaultPrice` applied to its months that have no price.
Adjusted prices are never written. Older payloads may still carry
`adjustedPrice` on a month, which is read for seeding only.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional
import json
import logging
import uuid

from src.engine.calendar_utils import months_apart, normalize_year_month
from src.utils.numbers import coerce_decimal, to_float

logger = logging.getLogger(__name__)

# Persisted key -> PricePeriodMonth attribute
MONTH_FIELD_KEYS = {
    "volumeMWm": "volume_avg_power",
    "volumeMWh": "volume_energy",
    "volumeSeasonalizedMWh": "volume_seasonalized",
    "flexibilityMaxMWh": "flexibility_max",
    "flexibilityMinMWh": "flexibility_min",
    "price": "base_price",
}


def new_period_id() -> str:
    return str(uuid.uuid4())


@dataclass
class PricePeriodMonth:
    """One persisted month."""
    ym: str
    volume_avg_power: Optional[Decimal] = None
    volume_energy: Optional[Decimal] = None
    volume_seasonalized: Optional[Decimal] = None
    flexibility_max: Optional[Decimal] = None
    flexibility_min: Optional[Decimal] = None
    base_price: Optional[Decimal] = None
    adjusted_price: Optional[Decimal] = None  # legacy, read-only

    @property
    def has_values(self) -> bool:
        """True if any volume or price field is set."""
        return any(
            value is not None
            for value in (
                self.volume_avg_power,
                self.volume_energy,
                self.volume_seasonalized,
                self.base_price,
            )
        )

    def to_dict(self) -> Dict:
        """Convert to the persisted dictionary form (no adjusted price)."""
        data = {"ym": self.ym}
        for key, attr in MONTH_FIELD_KEYS.items():
            data[key] = to_float(getattr(self, attr))
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> Optional["PricePeriodMonth"]:
        """Build from a persisted month; None if it has no usable month key."""
        if not isinstance(data, dict):
            return None
        ym = normalize_year_month(data.get("ym", data.get("month")))
        if ym is None:
            return None
        values = {attr: coerce_decimal(data.get(key)) for key, attr in MONTH_FIELD_KEYS.items()}
        if values["base_price"] is None:
            values["base_price"] = coerce_decimal(data.get("value"))
        return cls(ym=ym, adjusted_price=coerce_decimal(data.get("adjustedPrice")), **values)


@dataclass
class PricePeriod:
    """One persisted period (one calendar year in practice)."""
    id: str
    start: str
    end: str
    months: List[PricePeriodMonth] = field(default_factory=list)
    default_price: Optional[Decimal] = None
    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "start": self.start,
            "end": self.end,
            "defaultPrice": to_float(self.default_price),
            "months": [month.to_dict() for month in self.months],
        }


@dataclass
class PricePeriods:
    """Top-level persisted structure."""
    periods: List[PricePeriod] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {"periods": [period.to_dict() for period in self.periods]}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def month_map(self) -> Dict[str, PricePeriodMonth]:
        """All months keyed by `YYYY-MM`; later periods win on duplicates."""
        months = {}
        for period in self.periods:
            for month in period.months:
                months[month.ym] = month
        return months

    @classmethod
    def from_dict(cls, data: Dict) -> "PricePeriods":
        periods = []
        for index, raw in enumerate(data.get("periods") or []):
            if not isinstance(raw, dict):
                continue
            months = [
                month
                for month in (PricePeriodMonth.from_dict(item) for item in raw.get("months") or [])
                if month is not None
            ]
            months.sort(key=lambda month: month.ym)
            start = normalize_year_month(raw.get("start")) or (months[0].ym if months else None)
            end = normalize_year_month(raw.get("end")) or (months[-1].ym if months else start)
            if not start or not end:
                continue
            period_id = raw.get("id")
            if not isinstance(period_id, str) or not period_id.strip():
                period_id = f"{new_period_id()}-{index}"
            periods.append(PricePeriod(
                id=period_id,
                start=start,
                end=end,
                months=months,
                default_price=coerce_decimal(raw.get("defaultPrice")),
            ))
        return cls(periods=periods)


def _periods_from_month_map(data: Dict[str, Any]) -> PricePeriods:
    """Group a flat {ym: price} map into runs of consecutive months."""
    months = []
    for key, price in data.items():
        ym = normalize_year_month(key)
        value = coerce_decimal(price)
        if ym is None or value is None:
            continue
        months.append(PricePeriodMonth(ym=ym, base_price=value))
    months.sort(key=lambda month: month.ym)

    periods: List[PricePeriod] = []
    current: List[PricePeriodMonth] = []
    for month in months:
        if current and months_apart(current[-1].ym, month.ym) != 1:
            periods.append(PricePeriod(new_period_id(), current[0].ym, current[-1].ym, current))
            current = []
        current.append(month)
    if current:
        periods.append(PricePeriod(new_period_id(), current[0].ym, current[-1].ym, current))
    return PricePeriods(periods=periods)


def parse_price_periods(value: Any) -> PricePeriods:
    """Parse whatever is stored on a contract into a PricePeriods structure.

    Accepts None, a JSON string (possibly double-encoded), a dict with a
    `periods` list, or a flat month -> price map. Anything else is empty.
    """
    raw = value
    # Some stored payloads were JSON-encoded twice
    for _ in range(2):
        if not isinstance(raw, str):
            break
        text = raw.strip()
        if not text:
            return PricePeriods()
        try:
            raw = json.loads(text)
        except ValueError as e:
            logger.warning(f"Could not decode price periods JSON: {e}")
            return PricePeriods()

    if isinstance(raw, PricePeriods):
        return clone_price_periods(raw)
    if not isinstance(raw, dict):
        return PricePeriods()
    if isinstance(raw.get("periods"), list):
        return PricePeriods.from_dict(raw)
    return _periods_from_month_map(raw)


def clone_price_periods(value: Optional[PricePeriods]) -> PricePeriods:
    """Deep copy of a PricePeriods structure."""
    if value is None:
        return PricePeriods()
    return PricePeriods(periods=[
        PricePeriod(
            id=period.id,
            start=period.start,
            end=period.end,
            months=[PricePeriodMonth(**vars(month)) for month in period.months],
            default_price=period.default_price,
        )
        for period in value.periods
    ])
