"""Energy Contract model - stores energy-supply contracts and their pricing grid."""

from sqlalchemy import Column, Integer, String, Numeric, Date, Boolean, DateTime, JSON
from sqlalchemy.sql import func

from src.db.postgres import Base
from src.engine.calendar_utils import normalize_year_month
from src.engine.flexibility import FlexibilityParams
from src.engine.price_periods import PricePeriods, parse_price_periods


class EnergyContract(Base):
    """Energy supply contract."""

    __tablename__ = "energy_contracts"

    id = Column(Integer, primary_key=True, index=True)

    # Contract identification
    code = Column(String(50), nullable=False, unique=True, index=True)
    client = Column(String(150), nullable=False)
    supplier = Column(String(150), nullable=True)
    energy_source = Column(String(50), nullable=True)  # Convencional, Incentivada 50%, ...

    # Validity window
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True)

    # Flexibility band (percent)
    flex_upper_pct = Column(Numeric(6, 2), nullable=False, default=0)
    flex_lower_pct = Column(Numeric(6, 2), nullable=False, default=0)

    # Persisted price-periods structure
    price_periods = Column(JSON, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<EnergyContract(code='{self.code}', client='{self.client}')>"

    @property
    def start_month(self) -> str:
        return normalize_year_month(self.start_date)

    @property
    def end_month(self) -> str:
        return normalize_year_month(self.end_date)

    @property
    def flexibility(self) -> FlexibilityParams:
        """Contract flexibility percentages."""
        return FlexibilityParams(
            upper_pct=self.flex_upper_pct or 0,
            lower_pct=self.flex_lower_pct or 0,
        )

    def get_price_periods(self) -> PricePeriods:
        """Stored price periods, parsed (empty if none or malformed)."""
        return parse_price_periods(self.price_periods)

    def set_price_periods(self, value: PricePeriods) -> None:
        self.price_periods = value.to_dict()
