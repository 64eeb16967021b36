"""
Tests for the project cost engine: labor, consumables and rental rolled
into one breakdown.
"""

from datetime import date
from decimal import Decimal

from backoffice_engines.payroll import EmployeeCategory
from backoffice_engines.project_cost import (
    ConsumableInput,
    LaborInput,
    ProjectCostBreakdown,
    RentalInput,
    build_breakdown,
    consumable_cost,
    labor_cost,
)


class TestLaborCost:
    def test_permanent_costs_the_monthly_salary(self):
        assert labor_cost(EmployeeCategory.PERMANENT, Decimal("5000"), 3) == Decimal("5000")

    def test_consultant_costs_daily_rate_times_days(self):
        assert labor_cost(EmployeeCategory.CONSULTANT, Decimal("6600"), 10) == Decimal("3000")

    def test_negative_days_cost_nothing(self):
        assert labor_cost(EmployeeCategory.CONTRACT, Decimal("6600"), -4) == Decimal("0")


class TestConsumableCost:
    def test_average_cost_is_preferred(self):
        assert consumable_cost(Decimal("4"), Decimal("10"), Decimal("12.5")) == Decimal("50.0")

    def test_unit_cost_used_without_average(self):
        assert consumable_cost(Decimal("4"), Decimal("10"), None) == Decimal("40")

    def test_zero_average_falls_back_to_unit_cost(self):
        assert consumable_cost(Decimal("4"), Decimal("10"), Decimal("0")) == Decimal("40")


class TestBuildBreakdown:
    def test_components_and_total(self):
        breakdown = build_breakdown(
            labor=[
                LaborInput(EmployeeCategory.PERMANENT, Decimal("5000"), 22),
                LaborInput(EmployeeCategory.CONSULTANT, Decimal("6600"), 5),
            ],
            consumables=[ConsumableInput(Decimal("3"), unit_cost=Decimal("19.99"))],
            rentals=[RentalInput(date(2023, 6, 20), date(2023, 7, 10), Decimal("3000"))],
        )

        assert breakdown.labor == Decimal("6500.00")
        assert breakdown.consumables == Decimal("59.97")
        assert breakdown.asset_rental == Decimal("2067.74")
        assert breakdown.total == Decimal("8627.71")

    def test_empty_project(self):
        assert build_breakdown([], [], []) == ProjectCostBreakdown.of(
            Decimal("0"), Decimal("0"), Decimal("0")
        )
