"""SQLAlchemy models."""

from .contract import EnergyContract

__all__ = [
    'EnergyContract',
]
