"""
Pydantic schemas for the pricing endpoints.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional


EditableFieldName = Literal[
    "volume_avg_power",
    "volume_energy",
    "volume_seasonalized",
    "base_price",
    "adjusted_price",
]


class GridOperation(BaseModel):
    """One user action replayed against the pricing grid.

    - edit: text typed into a month field (then the field loses focus)
    - fill_year: copy the first filled month of `year` across that year
    - fill_all_years: copy the first month of the grid across all years
    - set_flexibility: contract flexibility percentages changed
    - set_default_price: `text` becomes the default price of `year`
    - clear_year: clear every value of `year`
    """
    op: Literal[
        "edit",
        "fill_year",
        "fill_all_years",
        "set_flexibility",
        "set_default_price",
        "clear_year",
    ] = "edit"
    month: Optional[str] = None
    field: Optional[EditableFieldName] = None
    text: Optional[str] = None
    year: Optional[int] = None
    flex_upper_pct: Optional[float] = Field(ge=0, default=None)
    flex_lower_pct: Optional[float] = Field(ge=0, default=None)


class IndexMultiplierItem(BaseModel):
    """A (month, multiplier) pair supplied by the caller."""
    month: str = Field(pattern=r"^\d{4}-\d{2}$", description="YYYY-MM format")
    multiplier: float = Field(gt=0)


class RecomputeRequest(BaseModel):
    """Stateless grid recompute: build, replay operations, return the result."""
    start: str = Field(description="Contract start, YYYY-MM or finer")
    end: str = Field(description="Contract end, YYYY-MM or finer")
    flex_upper_pct: float = Field(ge=0, default=0)
    flex_lower_pct: float = Field(ge=0, default=0)
    price_periods: Optional[Dict[str, Any]] = None
    operations: List[GridOperation] = []
    # When omitted the table is fetched from the index service
    index_multipliers: Optional[List[IndexMultiplierItem]] = None


class SummaryResponse(BaseModel):
    """Priced month count and average price."""
    filled_months: int
    average_price: Optional[float] = None


class PricePeriodsSaveResponse(BaseModel):
    """Result of saving a contract's price periods."""
    contract_id: int
    summary: SummaryResponse
    price_periods: Dict[str, Any]
