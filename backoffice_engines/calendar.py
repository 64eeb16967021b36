"""
Module: backoffice_engines.calendar
Responsibility:
    Calendar arithmetic shared by payroll and project costing: weekday
    counting, month lengths and bounds, window overlap, and splitting a
    date range into per-month segments.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Both endpoints of every range are inclusive.
    - ``working_days`` counts Monday..Friday only; holidays are not modelled.
    - A reversed range (end < start) or a missing bound is empty, never an
      error.

Failure modes:
    - InvalidPeriodError for a month outside 1..12 or a non-positive year.
"""

from __future__ import annotations

import calendar as _stdlib_calendar
from collections.abc import Iterator
from datetime import date, datetime, timedelta

from backoffice_kernel.exceptions import InvalidPeriodError

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def _as_date(value: date | datetime | None) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def validate_period(month: int, year: int) -> None:
    """Raise InvalidPeriodError unless ``month`` is 1..12 and ``year`` positive."""
    if isinstance(month, bool) or isinstance(year, bool):
        raise InvalidPeriodError(month, year)
    if not isinstance(month, int) or not isinstance(year, int):
        raise InvalidPeriodError(month, year)
    if not 1 <= month <= 12 or year < 1:
        raise InvalidPeriodError(month, year)


def calendar_days_in_month(month: int, year: int) -> int:
    validate_period(month, year)
    return _stdlib_calendar.monthrange(year, month)[1]


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """First and last day of the month."""
    days = calendar_days_in_month(month, year)
    return date(year, month, 1), date(year, month, days)


def month_name(month: int) -> str:
    if isinstance(month, int) and 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return "Unknown"


def working_days(start: date | datetime | None, end: date | datetime | None) -> int:
    """
    Count Monday..Friday dates in ``[start, end]``.

    Computed arithmetically over whole weeks, so long ranges cost O(1).
    """
    start_d = _as_date(start)
    end_d = _as_date(end)
    if start_d is None or end_d is None or end_d < start_d:
        return 0

    total_days = (end_d - start_d).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5
    first_weekday = start_d.weekday()
    for offset in range(remainder):
        if (first_weekday + offset) % 7 < 5:
            count += 1
    return count


def overlap(
    a_start: date | datetime | None,
    a_end: date | datetime | None,
    b_start: date | datetime | None,
    b_end: date | datetime | None,
) -> tuple[date, date] | None:
    """Intersection of two inclusive ranges, or None if they do not meet."""
    dates = [_as_date(a_start), _as_date(a_end), _as_date(b_start), _as_date(b_end)]
    if any(d is None for d in dates):
        return None
    start = max(dates[0], dates[2])
    end = min(dates[1], dates[3])
    if end < start:
        return None
    return start, end


def iter_month_segments(
    start: date | datetime | None,
    end: date | datetime | None,
) -> Iterator[tuple[int, int, date, date]]:
    """
    Yield ``(year, month, segment_start, segment_end)`` for every calendar
    month touched by ``[start, end]``.
    """
    start_d = _as_date(start)
    end_d = _as_date(end)
    if start_d is None or end_d is None or end_d < start_d:
        return

    cursor = start_d
    while cursor <= end_d:
        _, last = month_bounds(cursor.month, cursor.year)
        segment_end = min(last, end_d)
        yield cursor.year, cursor.month, cursor, segment_end
        cursor = segment_end + timedelta(days=1)
