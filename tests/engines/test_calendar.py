"""
Tests for calendar math.

Covers:
- Weekday counting over inclusive ranges
- Month lengths, bounds and names
- Range overlap and per-month segmentation
- Period validation
"""

from datetime import date, datetime

import pytest

from backoffice_engines.calendar import (
    calendar_days_in_month,
    iter_month_segments,
    month_bounds,
    month_name,
    overlap,
    validate_period,
    working_days,
)
from backoffice_kernel.exceptions import InvalidPeriodError


class TestWorkingDays:
    def test_single_weekday_counts_one(self):
        assert working_days(date(2023, 10, 16), date(2023, 10, 16)) == 1

    def test_single_weekend_day_counts_zero(self):
        assert working_days(date(2023, 10, 15), date(2023, 10, 15)) == 0

    def test_reversed_range_is_empty(self):
        assert working_days(date(2023, 10, 31), date(2023, 10, 1)) == 0

    def test_missing_bound_is_empty(self):
        assert working_days(None, date(2023, 10, 1)) == 0
        assert working_days(date(2023, 10, 1), None) == 0

    def test_full_week(self):
        # Monday to Sunday
        assert working_days(date(2023, 10, 16), date(2023, 10, 22)) == 5

    def test_october_2023_has_22_weekdays(self):
        assert working_days(date(2023, 10, 1), date(2023, 10, 31)) == 22

    def test_second_half_of_october_2023(self):
        assert working_days(date(2023, 10, 15), date(2023, 10, 31)) == 12

    def test_datetimes_are_reduced_to_dates(self):
        start = datetime(2023, 10, 16, 23, 59)
        end = datetime(2023, 10, 17, 0, 1)
        assert working_days(start, end) == 2


class TestMonths:
    @pytest.mark.parametrize(
        "month,year,expected",
        [(1, 2023, 31), (2, 2023, 28), (2, 2024, 29), (2, 1900, 28), (2, 2000, 29), (4, 2023, 30)],
    )
    def test_calendar_days_in_month(self, month, year, expected):
        assert calendar_days_in_month(month, year) == expected

    def test_invalid_month_raises(self):
        with pytest.raises(InvalidPeriodError) as exc_info:
            calendar_days_in_month(13, 2023)
        assert exc_info.value.month == 13
        assert exc_info.value.code == "INVALID_PERIOD"

    def test_month_bounds(self):
        assert month_bounds(2, 2024) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_month_name(self):
        assert month_name(10) == "October"
        assert month_name(0) == "Unknown"

    @pytest.mark.parametrize("month,year", [(0, 2023), (12.0, 2023), (True, 2023), (5, 0), ("5", 2023)])
    def test_validate_period_rejects(self, month, year):
        with pytest.raises(InvalidPeriodError):
            validate_period(month, year)


class TestOverlap:
    def test_partial_overlap(self):
        assert overlap(
            date(2023, 10, 15), date(2023, 11, 20), date(2023, 10, 1), date(2023, 10, 31)
        ) == (date(2023, 10, 15), date(2023, 10, 31))

    def test_disjoint_ranges(self):
        assert overlap(
            date(2023, 9, 1), date(2023, 9, 30), date(2023, 10, 1), date(2023, 10, 31)
        ) is None

    def test_missing_bound(self):
        assert overlap(None, date(2023, 9, 30), date(2023, 10, 1), date(2023, 10, 31)) is None


class TestMonthSegments:
    def test_range_spanning_two_months(self):
        segments = list(iter_month_segments(date(2023, 6, 20), date(2023, 7, 10)))
        assert segments == [
            (2023, 6, date(2023, 6, 20), date(2023, 6, 30)),
            (2023, 7, date(2023, 7, 1), date(2023, 7, 10)),
        ]

    def test_range_across_year_end(self):
        segments = list(iter_month_segments(date(2023, 12, 30), date(2024, 1, 2)))
        assert [(y, m) for y, m, _, _ in segments] == [(2023, 12), (2024, 1)]

    def test_reversed_range_yields_nothing(self):
        assert list(iter_month_segments(date(2023, 7, 10), date(2023, 6, 20))) == []
