"""
Module: backoffice_engines.project_cost
Responsibility:
    Cost components of a project: labor per assigned employee, consumables
    drawn from inventory, and asset rental.  ``build_breakdown`` combines
    them into a ``ProjectCostBreakdown``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    ``backoffice_modules.project.service.ProjectCostService`` gathers the
    inputs from the database and persists the total.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from backoffice_engines.payroll import DEFAULT_CONSULTANT_DIVISOR, EmployeeCategory
from backoffice_engines.rental import rental_cost
from backoffice_engines.tracer import traced_engine
from backoffice_kernel.domain.values import ZERO, round_money, to_decimal


@dataclass(frozen=True)
class LaborInput:
    category: EmployeeCategory
    monthly_salary: Decimal
    working_days: int


@dataclass(frozen=True)
class ConsumableInput:
    quantity: Decimal
    unit_cost: Decimal | None = None
    average_cost: Decimal | None = None


@dataclass(frozen=True)
class RentalInput:
    start: date | None
    end: date | None
    monthly_rate: Decimal


@dataclass(frozen=True)
class ProjectCostBreakdown:
    labor: Decimal
    consumables: Decimal
    asset_rental: Decimal
    total: Decimal

    @classmethod
    def of(cls, labor: Decimal, consumables: Decimal, asset_rental: Decimal) -> ProjectCostBreakdown:
        labor = round_money(labor)
        consumables = round_money(consumables)
        asset_rental = round_money(asset_rental)
        return cls(
            labor=labor,
            consumables=consumables,
            asset_rental=asset_rental,
            total=labor + consumables + asset_rental,
        )


def labor_cost(
    category: EmployeeCategory,
    monthly_salary: Decimal | int | str | None,
    working_days_on_project: int,
    divisor: int = DEFAULT_CONSULTANT_DIVISOR,
) -> Decimal:
    """Permanent staff cost a full month; others cost ``salary / divisor`` per working day."""
    salary = to_decimal(monthly_salary)
    if not category.is_pro_rata:
        return salary
    return salary / Decimal(divisor) * Decimal(max(working_days_on_project, 0))


def consumable_cost(
    quantity: Decimal | int | str | None,
    unit_cost: Decimal | int | str | None,
    average_cost: Decimal | int | str | None,
) -> Decimal:
    """``quantity * unit price``, preferring the item's average cost over the row's unit cost."""
    price = to_decimal(average_cost)
    if price <= ZERO:
        price = to_decimal(unit_cost)
    return to_decimal(quantity) * price


@traced_engine("project_cost", "1.0")
def build_breakdown(
    labor: Iterable[LaborInput],
    consumables: Iterable[ConsumableInput],
    rentals: Iterable[RentalInput],
    divisor: int = DEFAULT_CONSULTANT_DIVISOR,
) -> ProjectCostBreakdown:
    labor_total = sum(
        (labor_cost(item.category, item.monthly_salary, item.working_days, divisor) for item in labor),
        ZERO,
    )
    consumable_total = sum(
        (consumable_cost(c.quantity, c.unit_cost, c.average_cost) for c in consumables),
        ZERO,
    )
    rental_total = sum(
        (rental_cost(r.start, r.end, r.monthly_rate) for r in rentals),
        ZERO,
    )
    return ProjectCostBreakdown.of(labor_total, consumable_total, rental_total)
