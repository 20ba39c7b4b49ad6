"""Calendar helpers for monthly contract periods.

Month tokens are `YYYY-MM` strings. Anything finer (`YYYY-MM-DD`, ISO
datetimes, `date` objects) is accepted wherever a month is expected and
truncated to its month.
"""

from calendar import monthrange
from datetime import date, datetime
from typing import Iterator, Optional, Tuple
import re

# Conventional average month length (8760 / 12), used when a month is unknown
DEFAULT_HOURS_IN_MONTH = 730

_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})")


def hours_in_month(year: int, month: int) -> int:
    """Exact number of hours in a calendar month."""
    days = monthrange(year, month)[1]
    return days * 24


def parse_year_month(value) -> Optional[Tuple[int, int]]:
    """Parse a month-or-finer value into (year, month).

    Returns None if the value does not look like a year-month.
    """
    if isinstance(value, (date, datetime)):
        return value.year, value.month
    if not isinstance(value, str):
        return None

    match = _YEAR_MONTH_RE.match(value.strip())
    if not match:
        return None

    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def format_year_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def normalize_year_month(value) -> Optional[str]:
    """Normalize a month-or-finer value to a `YYYY-MM` token."""
    parsed = parse_year_month(value)
    if parsed is None:
        return None
    return format_year_month(*parsed)


def hours_for_month_key(ym: str) -> int:
    """Hours in the month named by a token, 730 if the token is unusable."""
    parsed = parse_year_month(ym)
    if parsed is None:
        return DEFAULT_HOURS_IN_MONTH
    return hours_in_month(*parsed)


class MonthRange:
    """Inclusive range of month tokens.

    Iteration is lazy and restartable: each `iter()` starts over from the
    first month. An unparsable bound or an inverted range is empty.
    """

    def __init__(self, start, end):
        self.start = parse_year_month(start)
        self.end = parse_year_month(end)

    def __iter__(self) -> Iterator[str]:
        if self.start is None or self.end is None:
            return
        year, month = self.start
        end_year, end_month = self.end
        while (year, month) <= (end_year, end_month):
            yield format_year_month(year, month)
            month += 1
            if month > 12:
                month = 1
                year += 1

    def __len__(self) -> int:
        if self.start is None or self.end is None:
            return 0
        count = (self.end[0] - self.start[0]) * 12 + (self.end[1] - self.start[1]) + 1
        return max(count, 0)

    def __contains__(self, ym) -> bool:
        parsed = parse_year_month(ym)
        if parsed is None or self.start is None or self.end is None:
            return False
        return self.start <= parsed <= self.end

    def __bool__(self) -> bool:
        return len(self) > 0

    def __repr__(self):
        return f"<MonthRange({self.start}..{self.end})>"


def months_between(start, end) -> MonthRange:
    """Months from `start` to `end` inclusive, one calendar month at a time."""
    return MonthRange(start, end)


def months_apart(start: str, end: str) -> Optional[int]:
    """Signed number of months from `start` to `end`."""
    a = parse_year_month(start)
    b = parse_year_month(end)
    if a is None or b is None:
        return None
    return (b[0] - a[0]) * 12 + (b[1] - a[1])
