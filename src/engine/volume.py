"""Volume conversion between average power (MWm) and energy (MWh).

An average-power volume is a constant power level held for the whole month,
so energy = average power x hours in that month.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from src.utils.numbers import coerce_decimal

Number = Union[Decimal, int, float]


class VolumeSource(Enum):
    """Which volume field the user last typed into for a month."""
    AVG_POWER = "avg_power"
    ENERGY = "energy"


def to_energy(avg_power: Optional[Number], hours: int) -> Optional[Decimal]:
    """Convert average power to energy for a month.

    Returns None when the average power is absent or not a finite number.
    """
    value = coerce_decimal(avg_power)
    if value is None:
        return None
    return value * Decimal(hours)


def to_avg_power(energy: Optional[Number], hours: int) -> Optional[Decimal]:
    """Convert monthly energy to average power.

    `hours` comes from the calendar helpers and is never zero.
    """
    value = coerce_decimal(energy)
    if value is None:
        return None
    return value / Decimal(hours)
