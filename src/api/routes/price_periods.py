"""
Contract price-period API endpoints.

- Open the monthly price/volume grid of a contract (with index adjustment)
- Save a grid back to the contract, normalized through the engine
- Stateless recompute for replaying edits without touching the database
- Inflation index multiplier table for a window
"""

from fastapi import APIRouter, HTTPException
from typing import Dict, List, Optional
from decimal import Decimal
import logging

from src.api.routes.contracts import get_contract_or_404
from src.api.schemas import (
    GridOperation,
    PricePeriodsSaveResponse,
    RecomputeRequest,
    SummaryResponse,
)
from src.db.postgres import get_session
from src.engine.flexibility import FlexibilityParams
from src.engine.index_adjustment import IndexTable
from src.engine.price_periods import parse_price_periods
from src.engine.pricing_editor import EditableField, PricingEditor
from src.services.index_client import get_index_table
from src.utils.numbers import parse_numeric_input

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Price Periods"])


def _load_index(editor: PricingEditor, start, end) -> None:
    """Fetch the index table for the window and apply it to the grid."""
    editor.begin_index_load()
    try:
        table = get_index_table(start, end)
    except Exception as e:
        editor.index_load_failed(e)
        return
    editor.load_index_table(table)


def apply_operation(editor: PricingEditor, operation: GridOperation) -> None:
    """Replay one user action against the editor."""
    if operation.op == "fill_year":
        editor.fill_year(operation.year)
    elif operation.op == "fill_all_years":
        editor.fill_all_years()
    elif operation.op == "clear_year":
        editor.clear_year(operation.year)
    elif operation.op == "set_default_price":
        value = parse_numeric_input(operation.text)
        if value is None and operation.text and operation.text.strip():
            raise HTTPException(status_code=400, detail=f"Invalid default price: {operation.text!r}")
        editor.set_default_price(operation.year, value)
    elif operation.op == "set_flexibility":
        editor.set_flexibility(FlexibilityParams(
            upper_pct=operation.flex_upper_pct if operation.flex_upper_pct is not None else editor.flexibility.upper_pct,
            lower_pct=operation.flex_lower_pct if operation.flex_lower_pct is not None else editor.flexibility.lower_pct,
        ))
    else:
        if not operation.month or not operation.field:
            raise HTTPException(status_code=400, detail="Edit operations need a month and a field")
        field = EditableField(operation.field)
        editor.input_text(operation.month, field, operation.text)
        editor.blur(operation.month, field)


@router.get("/api/contracts/{contract_id}/price-periods")
def get_price_periods(contract_id: int):
    """Open the pricing grid for a contract."""
    with get_session() as db:
        c = get_contract_or_404(db, contract_id)
        start, end = c.start_month, c.end_month
        persisted = c.get_price_periods()
        flexibility = c.flexibility

    editor = PricingEditor.for_contract(start, end, persisted=persisted, flexibility=flexibility)
    _load_index(editor, start, end)

    result = editor.to_dict()
    result["contract_id"] = contract_id
    result["start"] = start
    result["end"] = end
    return result


@router.put("/api/contracts/{contract_id}/price-periods", response_model=PricePeriodsSaveResponse)
def save_price_periods(contract_id: int, payload: Dict):
    """Save price periods on a contract.

    The payload is fitted to the contract window: months outside it are
    dropped, flexibility bounds recomputed, and empty months removed.
    """
    with get_session() as db:
        c = get_contract_or_404(db, contract_id)

        editor = PricingEditor.for_contract(
            c.start_month,
            c.end_month,
            persisted=parse_price_periods(payload),
            flexibility=c.flexibility,
            index_table=IndexTable(),
        )
        periods = editor.serialize()
        c.set_price_periods(periods)
        db.commit()

        summary = editor.summary().to_dict()
        logger.info(f"Saved price periods for contract {contract_id}: {summary['filled_months']} priced months")

        return PricePeriodsSaveResponse(
            contract_id=contract_id,
            summary=SummaryResponse(**summary),
            price_periods=periods.to_dict(),
        )


@router.post("/api/price-periods/recompute")
def recompute_price_periods(request: RecomputeRequest):
    """Build a grid, replay the given operations and return the result."""
    try:
        flexibility = FlexibilityParams(request.flex_upper_pct, request.flex_lower_pct)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    editor = PricingEditor.for_contract(
        request.start,
        request.end,
        persisted=parse_price_periods(request.price_periods),
        flexibility=flexibility,
    )

    if request.index_multipliers is not None:
        editor.load_index_table(IndexTable.from_pairs(
            (item.month, Decimal(str(item.multiplier))) for item in request.index_multipliers
        ))
    else:
        _load_index(editor, request.start, request.end)

    for operation in request.operations:
        apply_operation(editor, operation)

    result = editor.to_dict()
    result["price_periods"] = editor.serialize().to_dict()
    return result


@router.get("/api/index/multipliers")
def get_index_multipliers(start: Optional[str] = None, end: Optional[str] = None) -> Dict[str, List]:
    """Cumulative inflation multipliers for a window (empty if unavailable)."""
    table = get_index_table(start, end)
    return {"multipliers": table.to_list()}
