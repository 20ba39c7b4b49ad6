"""Inflation-index price adjustment.

The index table maps each month to a cumulative multiplier. The adjusted
price for a month is the base price scaled by that month's multiplier.
Months missing from the table use a neutral multiplier of 1.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from src.engine.calendar_utils import normalize_year_month, parse_year_month

logger = logging.getLogger(__name__)

NEUTRAL_MULTIPLIER = Decimal("1")


class IndexState(Enum):
    """Availability of index data for the engine as a whole."""
    LOADING = "loading"          # Fetch in flight, leave existing prices alone
    AVAILABLE = "available"      # Table has at least one entry
    UNAVAILABLE = "unavailable"  # Empty table or failed fetch; manual entry allowed


@dataclass
class IndexVariation:
    """Monthly percentage variation of the index (e.g. 0.52 for +0.52%)."""
    reference_date: str  # DD/MM/YYYY as published, or YYYY-MM
    variation_pct: str


@dataclass
class IndexMultiplier:
    """Cumulative multiplier for a month."""
    month: str
    variation_pct: Decimal
    multiplier: Decimal

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            "month": self.month,
            "variation_pct": float(self.variation_pct),
            "multiplier": float(self.multiplier),
        }


class IndexTable:
    """Ordered month -> multiplier lookup table."""

    def __init__(self, multipliers: Optional[Iterable[IndexMultiplier]] = None):
        self._entries: Dict[str, IndexMultiplier] = {}
        for entry in multipliers or []:
            month = normalize_year_month(entry.month)
            if month is None:
                logger.warning(f"Skipping index entry with invalid month: {entry.month!r}")
                continue
            self._entries[month] = entry
        self._entries = dict(sorted(self._entries.items()))

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, Decimal]]) -> "IndexTable":
        """Build a table from plain (month, multiplier) pairs."""
        return cls(
            IndexMultiplier(month=month, variation_pct=Decimal("0"), multiplier=Decimal(str(multiplier)))
            for month, multiplier in pairs
        )

    @property
    def is_empty(self) -> bool:
        return not self._entries

    def has_entry(self, month: str) -> bool:
        return month in self._entries

    def lookup(self, month: str) -> Decimal:
        """Multiplier for a month, or the neutral multiplier if absent."""
        entry = self._entries.get(month)
        if entry is None:
            return NEUTRAL_MULTIPLIER
        return entry.multiplier

    def months(self) -> List[str]:
        return list(self._entries)

    def to_list(self) -> List[Dict]:
        return [entry.to_dict() for entry in self._entries.values()]

    def __len__(self):
        return len(self._entries)

    def __repr__(self):
        return f"<IndexTable({len(self._entries)} months)>"


def _variation_month(reference_date: str) -> Optional[str]:
    """Month token for a published reference date (DD/MM/YYYY or YYYY-MM...)."""
    parts = reference_date.strip().split("/")
    if len(parts) == 3:
        day, month, year = parts
        return normalize_year_month(f"{year}-{month}")
    return normalize_year_month(reference_date)


def build_index_multipliers(variations: Iterable[IndexVariation]) -> List[IndexMultiplier]:
    """Compound monthly variations into cumulative multipliers.

    multiplier_n = (1 + var_1/100) x ... x (1 + var_n/100), in chronological
    order. Entries with an unreadable date or value are skipped.
    """
    dated = []
    for variation in variations:
        month = _variation_month(variation.reference_date)
        if month is None:
            logger.warning(f"Skipping index variation with invalid date: {variation.reference_date!r}")
            continue
        try:
            value = Decimal(str(variation.variation_pct).strip().replace(",", "."))
        except InvalidOperation:
            logger.warning(f"Invalid index variation for {variation.reference_date}: {variation.variation_pct!r}")
            continue
        if not value.is_finite():
            logger.warning(f"Invalid index variation for {variation.reference_date}: {variation.variation_pct!r}")
            continue
        dated.append((parse_year_month(month), month, value))

    dated.sort(key=lambda item: item[0])

    multipliers = []
    accumulated = NEUTRAL_MULTIPLIER
    for _, month, value in dated:
        accumulated *= (NEUTRAL_MULTIPLIER + value / Decimal("100"))
        multipliers.append(IndexMultiplier(month=month, variation_pct=value, multiplier=accumulated))
    return multipliers


def adjusted_price(
    base_price: Optional[Decimal],
    table: IndexTable,
    month: str,
) -> Optional[Decimal]:
    """Base price scaled by the month's multiplier. None if there is no base price."""
    if base_price is None:
        return None
    return base_price * table.lookup(month)
