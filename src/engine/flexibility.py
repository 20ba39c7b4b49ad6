"""Contractual flexibility band calculation.

The contract allows the consumed energy to deviate from the seasonalized
volume by an upper and a lower percentage:
- max = seasonalized x (1 + upper% / 100)
- min = seasonalized x (1 - lower% / 100), never below zero
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple, Union

from src.utils.numbers import coerce_decimal

HUNDRED = Decimal("100")
ZERO = Decimal("0")
ONE = Decimal("1")

Number = Union[Decimal, int, float]


@dataclass(frozen=True)
class FlexibilityParams:
    """Upper/lower flexibility percentages owned by the contract."""
    upper_pct: Decimal = Decimal("0")
    lower_pct: Decimal = Decimal("0")

    def __post_init__(self):
        # Frozen dataclass: coerce through object.__setattr__
        object.__setattr__(self, "upper_pct", Decimal(str(self.upper_pct)))
        object.__setattr__(self, "lower_pct", Decimal(str(self.lower_pct)))
        if self.upper_pct < 0 or self.lower_pct < 0:
            raise ValueError(
                f"Flexibility percentages must be non-negative "
                f"(upper={self.upper_pct}, lower={self.lower_pct})"
            )


def _pct(value: Number) -> Decimal:
    return coerce_decimal(value) or ZERO


def flex_max(seasonal_volume: Optional[Number], upper_pct: Number) -> Optional[Decimal]:
    """Upper contractual bound for a month."""
    volume = coerce_decimal(seasonal_volume)
    if volume is None:
        return None
    return volume * (ONE + _pct(upper_pct) / HUNDRED)


def flex_min(seasonal_volume: Optional[Number], lower_pct: Number) -> Optional[Decimal]:
    """Lower contractual bound for a month, clamped at zero."""
    volume = coerce_decimal(seasonal_volume)
    if volume is None:
        return None
    return max(volume * (ONE - _pct(lower_pct) / HUNDRED), ZERO)


def calculate_bounds(
    seasonal_volume: Optional[Number],
    params: FlexibilityParams,
) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    """Return (max, min) for a seasonalized volume. Both None if it is absent."""
    return (
        flex_max(seasonal_volume, params.upper_pct),
        flex_min(seasonal_volume, params.lower_pct),
    )
