"""
Energy Contract API endpoints.

Provides CRUD operations for energy-supply contracts:
- Contract identification (client, supplier, source)
- Validity window
- Flexibility band percentages
"""

from fastapi import APIRouter, HTTPException
from typing import List, Optional
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from datetime import date
import logging

from src.db.postgres import get_session
from src.models.contract import EnergyContract

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contracts", tags=["Contracts"])


# =============================================================================
# Pydantic Models
# =============================================================================

class ContractResponse(BaseModel):
    """Response model for an energy contract."""
    id: int
    code: str
    client: str
    supplier: Optional[str]
    energy_source: Optional[str]
    start_date: date
    end_date: date
    is_active: bool
    flex_upper_pct: float
    flex_lower_pct: float

    model_config = ConfigDict(from_attributes=True)


class ContractCreateRequest(BaseModel):
    """Request model for creating a contract."""
    code: str
    client: str
    supplier: Optional[str] = None
    energy_source: Optional[str] = None
    start_date: date
    end_date: date
    flex_upper_pct: float = Field(ge=0, default=0)
    flex_lower_pct: float = Field(ge=0, default=0)


class ContractUpdateRequest(BaseModel):
    """Request model for updating a contract."""
    client: Optional[str] = None
    supplier: Optional[str] = None
    energy_source: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    flex_upper_pct: Optional[float] = Field(ge=0, default=None)
    flex_lower_pct: Optional[float] = Field(ge=0, default=None)


def _to_response(c: EnergyContract) -> ContractResponse:
    return ContractResponse(
        id=c.id,
        code=c.code,
        client=c.client,
        supplier=c.supplier,
        energy_source=c.energy_source,
        start_date=c.start_date,
        end_date=c.end_date,
        is_active=bool(c.is_active),
        flex_upper_pct=float(c.flex_upper_pct or 0),
        flex_lower_pct=float(c.flex_lower_pct or 0),
    )


def get_contract_or_404(db, contract_id: int) -> EnergyContract:
    c = db.query(EnergyContract).filter(EnergyContract.id == contract_id).first()
    if not c:
        raise HTTPException(status_code=404, detail=f"Contract not found: {contract_id}")
    return c


# =============================================================================
# Contract Endpoints
# =============================================================================

@router.get("/", response_model=List[ContractResponse])
def list_contracts(
    client: Optional[str] = None,
    active_only: bool = False,
    year: Optional[int] = None,
):
    """List contracts with optional filtering.

    Args:
        client: Filter by client name (partial match)
        active_only: Only return active contracts
        year: Filter by contracts valid during this year
    """
    with get_session() as db:
        query = db.query(EnergyContract)

        if client:
            query = query.filter(EnergyContract.client.ilike(f"%{client}%"))

        if active_only:
            query = query.filter(EnergyContract.is_active == True)

        if year:
            query = query.filter(
                EnergyContract.start_date <= date(year, 12, 31),
                EnergyContract.end_date >= date(year, 1, 1),
            )

        return [_to_response(c) for c in query.order_by(EnergyContract.code).all()]


@router.get("/{contract_id}", response_model=ContractResponse)
def get_contract(contract_id: int):
    """Get a specific contract by ID."""
    with get_session() as db:
        return _to_response(get_contract_or_404(db, contract_id))


@router.post("/", response_model=ContractResponse)
def create_contract(request: ContractCreateRequest):
    """Create a new contract."""
    if request.end_date < request.start_date:
        raise HTTPException(status_code=400, detail="Contract end date is before its start date")

    with get_session() as db:
        existing = db.query(EnergyContract).filter(EnergyContract.code == request.code).first()
        if existing:
            raise HTTPException(status_code=400, detail=f"Contract code already exists: {request.code}")

        c = EnergyContract(
            code=request.code,
            client=request.client,
            supplier=request.supplier,
            energy_source=request.energy_source,
            start_date=request.start_date,
            end_date=request.end_date,
            is_active=True,
            flex_upper_pct=Decimal(str(request.flex_upper_pct)),
            flex_lower_pct=Decimal(str(request.flex_lower_pct)),
        )

        db.add(c)
        db.commit()
        db.refresh(c)
        logger.info(f"Created contract {c.code}")

        return _to_response(c)


@router.put("/{contract_id}", response_model=ContractResponse)
def update_contract(contract_id: int, request: ContractUpdateRequest):
    """Update an existing contract.

    Stored price periods are kept; they are re-fitted to the new window the
    next time the pricing grid is opened or saved.
    """
    with get_session() as db:
        c = get_contract_or_404(db, contract_id)

        # Update fields if provided
        if request.client is not None:
            c.client = request.client
        if request.supplier is not None:
            c.supplier = request.supplier
        if request.energy_source is not None:
            c.energy_source = request.energy_source
        if request.start_date is not None:
            c.start_date = request.start_date
        if request.end_date is not None:
            c.end_date = request.end_date
        if request.is_active is not None:
            c.is_active = request.is_active
        if request.flex_upper_pct is not None:
            c.flex_upper_pct = Decimal(str(request.flex_upper_pct))
        if request.flex_lower_pct is not None:
            c.flex_lower_pct = Decimal(str(request.flex_lower_pct))

        if c.end_date < c.start_date:
            raise HTTPException(status_code=400, detail="Contract end date is before its start date")

        db.commit()
        db.refresh(c)

        return _to_response(c)


@router.delete("/{contract_id}")
def delete_contract(contract_id: int):
    """Delete a contract."""
    with get_session() as db:
        c = get_contract_or_404(db, contract_id)
        db.delete(c)
        db.commit()
        logger.info(f"Deleted contract {contract_id}")
        return {"deleted": contract_id}
