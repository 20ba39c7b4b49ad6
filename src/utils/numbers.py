"""Locale-tolerant numeric parsing for user input and persisted payloads."""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional
import re

_NUMERIC_RE = re.compile(r"^[+-]?\d+$")


def parse_numeric_input(text: Optional[str]) -> Optional[Decimal]:
    """Parse typed text into a Decimal.

    Accepts comma or dot as decimal separator. When both appear, the last one
    is the decimal separator and the other groups thousands ("1.234,56" and
    "1,234.56" are both 1234.56). A separator repeated more than once with no
    other separator is a thousands separator ("1.234.567").

    Returns None for empty or unparsable text (e.g. "12," while typing).
    """
    if text is None:
        return None
    cleaned = re.sub(r"\s", "", str(text))
    if not cleaned:
        return None

    has_comma = "," in cleaned
    has_dot = "." in cleaned

    if has_comma and has_dot:
        decimal_sep = "," if cleaned.rfind(",") > cleaned.rfind(".") else "."
        group_sep = "." if decimal_sep == "," else ","
        if cleaned.count(decimal_sep) > 1:
            return None
        integer_part, fraction = cleaned.split(decimal_sep)
        integer_part = integer_part.replace(group_sep, "")
    elif has_comma or has_dot:
        sep = "," if has_comma else "."
        if cleaned.count(sep) > 1:
            integer_part, fraction = cleaned.replace(sep, ""), None
        else:
            integer_part, fraction = cleaned.split(sep)
    else:
        integer_part, fraction = cleaned, None

    if not _NUMERIC_RE.match(integer_part):
        return None
    if fraction is not None and not fraction.isdigit():
        return None

    literal = integer_part if fraction is None else f"{integer_part}.{fraction}"
    try:
        value = Decimal(literal)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def coerce_decimal(value: Any) -> Optional[Decimal]:
    """Coerce a persisted/JSON value (number, numeric string, Decimal) to Decimal."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return None
        return result if result.is_finite() else None
    if isinstance(value, str):
        return parse_numeric_input(value)
    return None


def to_float(value: Optional[Decimal]) -> Optional[float]:
    """Decimal to float for JSON output, preserving None."""
    return float(value) if value is not None else None
