# Contract price-and-volume periodization engine

from src.engine.calendar_utils import (
    DEFAULT_HOURS_IN_MONTH,
    MonthRange,
    hours_in_month,
    hours_for_month_key,
    months_between,
    normalize_year_month,
    parse_year_month,
)

from src.engine.volume import (
    VolumeSource,
    to_energy,
    to_avg_power,
)

from src.engine.flexibility import (
    FlexibilityParams,
    flex_max,
    flex_min,
    calculate_bounds,
)

from src.engine.index_adjustment import (
    IndexMultiplier,
    IndexState,
    IndexTable,
    IndexVariation,
    adjusted_price,
    build_index_multipliers,
)

from src.engine.price_periods import (
    PricePeriod,
    PricePeriodMonth,
    PricePeriods,
    clone_price_periods,
    parse_price_periods,
)

from src.engine.periods import (
    MonthRow,
    YearTab,
    build_year_tabs,
)

from src.engine.summary import (
    PricePeriodsSummary,
    calculate_price_difference,
    serialize,
    summarize,
)

from src.engine.pricing_editor import (
    EditableField,
    PricingEditor,
)

__all__ = [
    # Calendar
    "DEFAULT_HOURS_IN_MONTH",
    "MonthRange",
    "hours_in_month",
    "hours_for_month_key",
    "months_between",
    "normalize_year_month",
    "parse_year_month",
    # Volume
    "VolumeSource",
    "to_energy",
    "to_avg_power",
    # Flexibility
    "FlexibilityParams",
    "flex_max",
    "flex_min",
    "calculate_bounds",
    # Index
    "IndexMultiplier",
    "IndexState",
    "IndexTable",
    "IndexVariation",
    "adjusted_price",
    "build_index_multipliers",
    # Persisted structure
    "PricePeriod",
    "PricePeriodMonth",
    "PricePeriods",
    "clone_price_periods",
    "parse_price_periods",
    # Grid
    "MonthRow",
    "YearTab",
    "build_year_tabs",
    # Summary
    "PricePeriodsSummary",
    "calculate_price_difference",
    "serialize",
    "summarize",
    # Editor
    "EditableField",
    "PricingEditor",
]
