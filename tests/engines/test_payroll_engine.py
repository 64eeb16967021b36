"""
Tests for the payroll earnings engine.

Covers:
- Category parsing
- Permanent earnings (full monthly salary)
- Consultant/contract earnings pro-rated on project windows
- Flat withholding tax and net totals
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from backoffice_engines.payroll import (
    AssignmentWindow,
    EmployeeCategory,
    compute_earnings,
    net_total,
    parse_category,
    tax_deduction,
)
from backoffice_kernel.exceptions import UnknownCategoryError


class TestParseCategory:
    def test_known_values(self):
        assert parse_category("permanent") is EmployeeCategory.PERMANENT
        assert parse_category(" Consultant ") is EmployeeCategory.CONSULTANT
        assert parse_category(EmployeeCategory.CONTRACT) is EmployeeCategory.CONTRACT

    def test_missing_category_is_none(self):
        assert parse_category(None) is None
        assert parse_category("") is None

    def test_unknown_category_raises(self):
        with pytest.raises(UnknownCategoryError) as exc_info:
            parse_category("intern")
        assert exc_info.value.category == "intern"


class TestPermanentEarnings:
    def test_full_salary_and_calendar_days(self):
        earnings = compute_earnings(EmployeeCategory.PERMANENT, Decimal("5000"), 10, 2023)

        assert earnings.basic_salary == Decimal("5000.00")
        assert earnings.working_days == 31
        assert earnings.project_id is None

    def test_missing_salary_earns_nothing(self):
        earnings = compute_earnings(EmployeeCategory.PERMANENT, None, 2, 2024)

        assert earnings.basic_salary == Decimal("0.00")
        assert earnings.working_days == 29


class TestProRataEarnings:
    def test_full_month_window(self):
        project_id = uuid4()
        window = AssignmentWindow(project_id, date(2023, 1, 1), date(2023, 12, 31))

        earnings = compute_earnings(
            EmployeeCategory.CONSULTANT, Decimal("6600"), 10, 2023, [window],
        )

        assert earnings.basic_salary == Decimal("6600.00")
        assert earnings.working_days == 22
        assert earnings.daily_rate == Decimal("300")
        assert earnings.project_id == project_id

    def test_window_from_mid_month(self):
        window = AssignmentWindow(uuid4(), date(2023, 10, 15), date(2023, 12, 31))

        earnings = compute_earnings(
            EmployeeCategory.CONSULTANT, Decimal("6600"), 10, 2023, [window],
        )

        assert earnings.working_days == 12
        assert earnings.basic_salary == Decimal("3600.00")
        assert earnings.basic_salary < Decimal("6600.00")

    def test_no_windows_earns_nothing(self):
        earnings = compute_earnings(EmployeeCategory.CONTRACT, Decimal("6600"), 10, 2023)

        assert earnings.basic_salary == Decimal("0.00")
        assert earnings.working_days == 0
        assert earnings.project_id is None

    def test_windows_outside_month_are_ignored(self):
        window = AssignmentWindow(uuid4(), date(2023, 11, 1), date(2023, 11, 30))

        earnings = compute_earnings(EmployeeCategory.CONTRACT, Decimal("6600"), 10, 2023, [window])

        assert earnings.basic_salary == Decimal("0.00")

    def test_last_overlapping_window_tags_project(self):
        first_project, second_project = uuid4(), uuid4()
        windows = [
            AssignmentWindow(first_project, date(2023, 10, 2), date(2023, 10, 6)),
            AssignmentWindow(second_project, date(2023, 10, 16), date(2023, 10, 20)),
        ]

        earnings = compute_earnings(EmployeeCategory.CONSULTANT, Decimal("2200"), 10, 2023, windows)

        assert earnings.working_days == 10
        assert earnings.basic_salary == Decimal("1000.00")
        assert earnings.project_id == second_project

    def test_custom_divisor(self):
        window = AssignmentWindow(uuid4(), date(2023, 10, 1), date(2023, 10, 31))

        earnings = compute_earnings(
            EmployeeCategory.CONSULTANT, Decimal("6000"), 10, 2023, [window], divisor=20,
        )

        assert earnings.basic_salary == Decimal("6600.00")

    def test_non_positive_divisor_rejected(self):
        with pytest.raises(ValueError):
            compute_earnings(EmployeeCategory.CONSULTANT, Decimal("6000"), 10, 2023, divisor=0)


class TestTaxAndTotals:
    def test_five_percent_tax(self):
        assert tax_deduction(Decimal("5000.00")) == Decimal("250.00")
        assert tax_deduction(Decimal("6600.00")) == Decimal("330.00")

    def test_tax_includes_additions(self):
        assert tax_deduction(Decimal("5000.00"), Decimal("200.00")) == Decimal("260.00")

    def test_tax_rounds_half_up(self):
        # 0.05 * 10.10 = 0.505
        assert tax_deduction(Decimal("10.10")) == Decimal("0.51")

    def test_net_total(self):
        assert net_total(Decimal("5000"), Decimal("200"), Decimal("260")) == Decimal("4940.00")
