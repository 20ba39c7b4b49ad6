"""Contract pricing editor.

Owns the live per-month grid for one editing session. Every edit is applied
synchronously and re-derives the dependent fields of that month:

- average power <-> energy (whichever was typed last drives the other)
- energy -> seasonalized volume -> flexibility bounds
- base price -> adjusted price (via the index table)

Typed text that does not parse yet is held in a pending buffer, separate
from the committed numeric values, until it parses or the field loses focus.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
import logging

from src.engine.flexibility import FlexibilityParams
from src.engine.index_adjustment import (
    NEUTRAL_MULTIPLIER,
    IndexState,
    IndexTable,
    adjusted_price,
)
from src.engine.periods import MonthRow, YearTab, build_year_tabs
from src.engine.price_periods import PricePeriods
from src.engine.summary import PricePeriodsSummary, serialize, summarize
from src.engine.volume import VolumeSource, to_avg_power, to_energy
from src.utils.numbers import coerce_decimal, parse_numeric_input

logger = logging.getLogger(__name__)


class EditableField(Enum):
    """Month fields the user can type into."""
    VOLUME_AVG_POWER = "volume_avg_power"
    VOLUME_ENERGY = "volume_energy"
    VOLUME_SEASONALIZED = "volume_seasonalized"
    BASE_PRICE = "base_price"
    ADJUSTED_PRICE = "adjusted_price"


class PricingEditor:
    """Edit/recompute controller for a contract's price-and-volume grid."""

    def __init__(
        self,
        year_tabs: List[YearTab],
        flexibility: Optional[FlexibilityParams] = None,
        index_table: Optional[IndexTable] = None,
    ):
        self.flexibility = flexibility or FlexibilityParams()
        self._index_table = IndexTable()
        self.index_state = IndexState.LOADING
        self._set_tabs(year_tabs)

        if index_table is not None:
            self.load_index_table(index_table)

    @classmethod
    def for_contract(
        cls,
        start,
        end,
        persisted: Optional[PricePeriods] = None,
        flexibility: Optional[FlexibilityParams] = None,
        index_table: Optional[IndexTable] = None,
        today=None,
    ) -> "PricingEditor":
        """Build the grid for a contract window and open an editor on it."""
        tabs = build_year_tabs(start, end, persisted=persisted, flexibility=flexibility, today=today)
        return cls(tabs, flexibility=flexibility, index_table=index_table)

    def _set_tabs(self, year_tabs: List[YearTab]) -> None:
        self.year_tabs = year_tabs
        # Rows indexed by month key; months never repeat across tabs
        self._rows: Dict[str, MonthRow] = {row.month: row for tab in year_tabs for row in tab.months}
        self._pending: Dict[Tuple[str, EditableField], str] = {}
        self.active_year = year_tabs[0].year if year_tabs else None

    def reset_window(self, start, end, persisted: Optional[PricePeriods] = None, today=None) -> None:
        """Rebuild the grid from scratch after the validity window changes."""
        self._set_tabs(build_year_tabs(start, end, persisted=persisted, flexibility=self.flexibility, today=today))
        if self.index_state != IndexState.LOADING:
            self._apply_index_table()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def rows(self) -> Iterator[MonthRow]:
        for tab in self.year_tabs:
            yield from tab.months

    def get_row(self, month: str) -> Optional[MonthRow]:
        return self._rows.get(month)

    def get_tab(self, year: int) -> Optional[YearTab]:
        for tab in self.year_tabs:
            if tab.year == year:
                return tab
        return None

    def select_year(self, year: int) -> bool:
        """Make a year tab the active one (target of fill_year)."""
        if self.get_tab(year) is None:
            return False
        self.active_year = year
        return True

    def _require_row(self, month: str) -> Optional[MonthRow]:
        row = self._rows.get(month)
        if row is None:
            logger.debug(f"Ignoring edit for month outside the grid: {month}")
        return row

    def _coerce(self, month: str, value: Any) -> Tuple[bool, Optional[Decimal]]:
        """(accepted, value) for a committed edit. Non-numeric values are rejected."""
        if value is None:
            return True, None
        number = coerce_decimal(value)
        if number is None:
            logger.warning(f"Ignoring non-numeric value for {month}: {value!r}")
            return False, None
        return True, number

    # ------------------------------------------------------------------
    # Committed single-field edits
    # ------------------------------------------------------------------

    def set_volume_avg_power(self, month: str, value: Any) -> bool:
        row = self._require_row(month)
        if row is None:
            return False
        accepted, value = self._coerce(month, value)
        if not accepted:
            return False
        self._apply_avg_power(row, value)
        return True

    def set_volume_energy(self, month: str, value: Any) -> bool:
        row = self._require_row(month)
        if row is None:
            return False
        accepted, value = self._coerce(month, value)
        if not accepted:
            return False
        self._apply_energy(row, value)
        return True

    def set_volume_seasonalized(self, month: str, value: Any) -> bool:
        row = self._require_row(month)
        if row is None:
            return False
        accepted, value = self._coerce(month, value)
        if not accepted:
            return False
        row.volume_seasonalized = value
        row.apply_flexibility(self.flexibility)
        return True

    def set_base_price(self, month: str, value: Any) -> bool:
        row = self._require_row(month)
        if row is None:
            return False
        accepted, value = self._coerce(month, value)
        if not accepted:
            return False
        self._apply_base_price(row, value)
        return True

    def set_adjusted_price(self, month: str, value: Any) -> bool:
        """Manually set an adjusted price.

        Only allowed while no index data is available, and only on months
        with a base price. Clearing the value drops the manual override.
        """
        row = self._require_row(month)
        if row is None:
            return False
        accepted, value = self._coerce(month, value)
        if not accepted:
            return False
        if not self.manual_adjustment_allowed:
            logger.warning(f"Adjusted price for {month} is derived from the index, ignoring manual value")
            return False
        if value is None:
            row.adjusted_price_manual = False
            row.adjusted_price = adjusted_price(row.base_price, self._index_table, row.month)
            return True
        if row.base_price is None:
            logger.warning(f"Cannot set adjusted price for {month} without a base price")
            return False
        row.adjusted_price = value
        row.adjusted_price_manual = True
        return True

    def set_value(self, month: str, field: EditableField, value: Any) -> bool:
        """Commit a parsed value to any editable field."""
        setters = {
            EditableField.VOLUME_AVG_POWER: self.set_volume_avg_power,
            EditableField.VOLUME_ENERGY: self.set_volume_energy,
            EditableField.VOLUME_SEASONALIZED: self.set_volume_seasonalized,
            EditableField.BASE_PRICE: self.set_base_price,
            EditableField.ADJUSTED_PRICE: self.set_adjusted_price,
        }
        return setters[field](month, value)

    def get_value(self, month: str, field: EditableField) -> Optional[Decimal]:
        row = self._rows.get(month)
        if row is None:
            return None
        return getattr(row, field.value)

    def _apply_avg_power(self, row: MonthRow, value: Optional[Decimal]) -> None:
        if value is None:
            self._clear_volume(row)
            return
        row.volume_avg_power = value
        row.volume_energy = to_energy(value, row.hours_in_month)
        row.volume_seasonalized = row.volume_energy
        row.volume_source = VolumeSource.AVG_POWER
        row.apply_flexibility(self.flexibility)

    def _apply_energy(self, row: MonthRow, value: Optional[Decimal]) -> None:
        if value is None:
            self._clear_volume(row)
            return
        row.volume_energy = value
        row.volume_avg_power = to_avg_power(value, row.hours_in_month)
        row.volume_seasonalized = value
        row.volume_source = VolumeSource.ENERGY
        row.apply_flexibility(self.flexibility)

    def _clear_volume(self, row: MonthRow) -> None:
        row.volume_avg_power = None
        row.volume_energy = None
        row.volume_seasonalized = None
        row.volume_source = None
        row.apply_flexibility(self.flexibility)

    def _apply_base_price(self, row: MonthRow, value: Optional[Decimal]) -> None:
        row.base_price = value
        row.adjusted_price_manual = False
        row.adjusted_price = adjusted_price(value, self._index_table, row.month)

    # ------------------------------------------------------------------
    # Raw text editing
    # ------------------------------------------------------------------

    def input_text(self, month: str, field: EditableField, text: Optional[str]) -> bool:
        """Handle text typed into a field.

        Empty text clears the field. Parseable text is committed at once.
        Anything else is held as pending text and the committed value is
        left untouched.

        Returns True if a value was committed.
        """
        if month not in self._rows:
            return False
        key = (month, field)
        if text is None or not text.strip():
            self._pending.pop(key, None)
            return self.set_value(month, field, None)

        value = parse_numeric_input(text)
        if value is None:
            self._pending[key] = text
            return False

        self._pending.pop(key, None)
        return self.set_value(month, field, value)

    def blur(self, month: str, field: EditableField) -> Optional[Decimal]:
        """Field lost focus: discard pending text, return the committed value."""
        discarded = self._pending.pop((month, field), None)
        if discarded is not None:
            logger.debug(f"Discarding unparsable input {discarded!r} for {month} {field.value}")
        return self.get_value(month, field)

    def pending_text(self, month: str, field: EditableField) -> Optional[str]:
        return self._pending.get((month, field))

    def display_value(self, month: str, field: EditableField) -> str:
        """Text to show in a field: pending input, else the committed value."""
        pending = self._pending.get((month, field))
        if pending is not None:
            return pending
        value = self.get_value(month, field)
        if value is None:
            return ""
        return format(value.normalize(), "f")

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def fill_year(self, year: Optional[int] = None) -> int:
        """Copy the first filled month of a year to every month of that year.

        Returns the number of months updated.
        """
        tab = self.get_tab(year if year is not None else self.active_year)
        if tab is None:
            return 0
        source = next((row for row in tab.months if not row.is_empty), None)
        if source is None:
            return 0
        return self._propagate(source, tab.months)

    def fill_all_years(self) -> int:
        """Copy the very first month of the first year to every month of every year."""
        if not self.year_tabs or not self.year_tabs[0].months:
            return 0
        source = self.year_tabs[0].months[0]
        if source.is_empty:
            return 0
        return self._propagate(source, list(self.rows()))

    def _propagate(self, source: MonthRow, targets: List[MonthRow]) -> int:
        avg_power = source.volume_avg_power
        energy = source.volume_energy
        seasonalized = source.volume_seasonalized
        base_price = source.base_price
        manual_adjusted = source.adjusted_price if source.adjusted_price_manual else None
        by_energy = source.volume_source == VolumeSource.ENERGY

        updated = 0
        for row in targets:
            if row is source:
                continue
            # Hours differ per month, so convert per row rather than copying both
            if by_energy and energy is not None:
                self._apply_energy(row, energy)
            elif avg_power is not None:
                self._apply_avg_power(row, avg_power)
            elif energy is not None:
                self._apply_energy(row, energy)
            elif seasonalized is not None:
                row.volume_seasonalized = seasonalized
                row.apply_flexibility(self.flexibility)

            if base_price is not None:
                self._apply_base_price(row, base_price)
                if manual_adjusted is not None and self.manual_adjustment_allowed:
                    row.adjusted_price = manual_adjusted
                    row.adjusted_price_manual = True

            self._drop_pending(row.month)
            updated += 1

        logger.debug(f"Filled {updated} months from {source.month}")
        return updated

    def _drop_pending(self, month: str) -> None:
        for key in [key for key in self._pending if key[0] == month]:
            del self._pending[key]

    def set_flexibility(self, params: FlexibilityParams) -> None:
        """Contract flexibility changed: recompute bounds for every month."""
        self.flexibility = params
        for row in self.rows():
            row.apply_flexibility(params)

    def set_default_price(self, year: Optional[int], value: Any) -> int:
        """Set a year's default price and apply it to its months without a price.

        Clearing the default leaves month prices as they are. Returns the
        number of months that received the default.
        """
        tab = self.get_tab(year if year is not None else self.active_year)
        if tab is None:
            return 0
        accepted, value = self._coerce(f"default {tab.year}", value)
        if not accepted:
            return 0

        tab.default_price = value
        if value is None:
            return 0

        filled = 0
        for row in tab.months:
            if row.base_price is not None:
                continue
            self._apply_base_price(row, value)
            self._pending.pop((row.month, EditableField.BASE_PRICE), None)
            self._pending.pop((row.month, EditableField.ADJUSTED_PRICE), None)
            filled += 1
        logger.debug(f"Default price {value} applied to {filled} months of {tab.year}")
        return filled

    def clear_year(self, year: Optional[int] = None) -> int:
        """Clear every value of a year tab, including its default price.

        Returns the number of months that had values.
        """
        tab = self.get_tab(year if year is not None else self.active_year)
        if tab is None:
            return 0
        cleared = 0
        for row in tab.months:
            if not row.is_empty:
                cleared += 1
            self._clear_volume(row)
            self._apply_base_price(row, None)
            self._drop_pending(row.month)
        tab.default_price = None
        logger.info(f"Cleared {cleared} months of {tab.year}")
        return cleared

    # ------------------------------------------------------------------
    # Index table
    # ------------------------------------------------------------------

    @property
    def index_table(self) -> IndexTable:
        return self._index_table

    @property
    def manual_adjustment_allowed(self) -> bool:
        return self.index_state == IndexState.UNAVAILABLE

    def begin_index_load(self) -> None:
        """Index fetch started; existing adjusted prices stay as they are."""
        self.index_state = IndexState.LOADING

    def load_index_table(self, table: Optional[IndexTable]) -> None:
        """Index table arrived (or None/empty if there is none).

        Re-derives the adjusted price of every month in one pass.
        """
        self._index_table = table if table is not None else IndexTable()
        self.index_state = IndexState.UNAVAILABLE if self._index_table.is_empty else IndexState.AVAILABLE
        self._apply_index_table()
        logger.info(f"Index table loaded: {len(self._index_table)} months, state={self.index_state.value}")

    def index_load_failed(self, error: Union[Exception, str, None] = None) -> None:
        """Index fetch failed; behaves exactly like an empty table."""
        logger.warning(f"Index table unavailable: {error}")
        self.load_index_table(None)

    def _apply_index_table(self) -> None:
        table = self._index_table
        for row in self.rows():
            if row.base_price is None:
                row.adjusted_price = None
                row.adjusted_price_manual = False
                continue
            has_index = table.has_entry(row.month) and table.lookup(row.month) != NEUTRAL_MULTIPLIER
            if row.adjusted_price_manual and not has_index:
                continue
            row.adjusted_price = adjusted_price(row.base_price, table, row.month)
            row.adjusted_price_manual = False

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def serialize(self) -> PricePeriods:
        return serialize(self.year_tabs)

    def summary(self) -> PricePeriodsSummary:
        return summarize(self.serialize())

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            "year_tabs": [tab.to_dict() for tab in self.year_tabs],
            "active_year": self.active_year,
            "flexibility": {
                "upper_pct": float(self.flexibility.upper_pct),
                "lower_pct": float(self.flexibility.lower_pct),
            },
            "index_state": self.index_state.value,
            "manual_adjustment_allowed": self.manual_adjustment_allowed,
            "summary": self.summary().to_dict(),
        }
