from __future__ import annotations

import re
from calendar import monthrange
from datetime import date
from typing import TYPE_CHECKING

from timeaccount.exceptions import InvalidRangeError

if TYPE_CHECKING:
    from collections.abc import Iterator

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def month_key(day: date) -> str:
    """YYYY-MM key of the month containing day."""
    return f"{day.year:04d}-{day.month:02d}"


def iso_week_key(day: date) -> str:
    """ISO week key (YYYY-Www, weeks start on Monday)."""
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def parse_month(key: str) -> tuple[int, int]:
    """Parse a YYYY-MM key into (year, month)."""
    match = _MONTH_RE.match(key)
    if match is None:
        raise InvalidRangeError(f"Invalid month {key!r}, expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidRangeError(f"Invalid month {key!r}, expected YYYY-MM")
    return year, month


def month_bounds(key: str) -> tuple[date, date]:
    """First and last day of a month, inclusive."""
    year, month = parse_month(key)
    _, days_in_month = monthrange(year, month)
    return date(year, month, 1), date(year, month, days_in_month)


def iter_months(start: date, end: date) -> Iterator[str]:
    """Yield month keys from the month of start to the month of end inclusive."""
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield f"{year:04d}-{month:02d}"
        month += 1
        if month > 12:
            year, month = year + 1, 1
