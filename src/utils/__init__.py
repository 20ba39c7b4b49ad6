"""Utility functions and helpers."""

from .json_encoder import DecimalEncoder, json_dumps
from .numbers import coerce_decimal, parse_numeric_input, to_float

__all__ = [
    'DecimalEncoder',
    'json_dumps',
    'coerce_decimal',
    'parse_numeric_input',
    'to_float',
]
