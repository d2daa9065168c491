"""Calendar-date helpers shared by the holiday resolver and the balance engine."""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterator, Optional

from leave_planner.common.constants import WEEKEND_WEEKDAYS
from leave_planner.common.exceptions import InvalidDateError


def parse_iso_date(value: object, field: str = "date") -> date:
    """Parse a YYYY-MM-DD string (or pass a date through).

    Raises:
        InvalidDateError: value is not a calendar date.
    """
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(field, value)
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise InvalidDateError(field, value) from None


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every calendar date from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def next_weekday(day: date) -> date:
    """Move forward to the first date that is not Saturday or Sunday."""
    while day.weekday() in WEEKEND_WEEKDAYS:
        day += timedelta(days=1)
    return day


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    index = day.month - 1 + months
    year, month = day.year + index // 12, index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def month_day_in_year(month_day: str, year: int) -> date:
    """'MM-DD' in the given year; 29 Feb becomes 28 Feb outside leap years."""
    month, day = (int(p) for p in month_day.split("-"))
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def months_elapsed(year: int, as_of: Optional[date]) -> int:
    """Whole months of `year` started by `as_of` (12 when as_of is None)."""
    if as_of is None or as_of.year > year:
        return 12
    if as_of.year < year:
        return 0
    return as_of.month
