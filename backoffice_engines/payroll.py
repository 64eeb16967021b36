"""
Module: backoffice_engines.payroll
Responsibility:
    Monthly earnings per employment category and the flat withholding tax.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The DB-backed
    ``backoffice_modules.payroll.computer`` loads employees and project
    windows and hands them to ``compute_earnings``.

Invariants enforced:
    - Category dispatch goes through ``_EARNINGS_RULES``; adding a category
      means adding an enum member and a rule, nothing else.
    - Earnings and tax are rounded to cents with ROUND_HALF_UP.

Rules:
    permanent            basic = monthly salary; working_days = calendar days
    consultant/contract  basic = sum(salary / divisor * weekdays in overlap)
                         over the project windows that touch the month;
                         the last overlapping window's project is kept as
                         the cost tag.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from backoffice_engines.calendar import (
    calendar_days_in_month,
    month_bounds,
    overlap,
    working_days,
)
from backoffice_engines.tracer import traced_engine
from backoffice_kernel.domain.values import ZERO, round_money, to_decimal
from backoffice_kernel.exceptions import UnknownCategoryError

DEFAULT_TAX_RATE = Decimal("0.05")
DEFAULT_CONSULTANT_DIVISOR = 22


class EmployeeCategory(str, Enum):
    PERMANENT = "permanent"
    CONSULTANT = "consultant"
    CONTRACT = "contract"

    @property
    def is_pro_rata(self) -> bool:
        return self is not EmployeeCategory.PERMANENT


def parse_category(raw: str | EmployeeCategory | None) -> EmployeeCategory | None:
    """
    Map a stored category string to the enum.

    Missing values return None (the employee is skipped); unrecognised
    values raise UnknownCategoryError.
    """
    if raw is None:
        return None
    if isinstance(raw, EmployeeCategory):
        return raw
    text = str(raw).strip().lower()
    if not text:
        return None
    try:
        return EmployeeCategory(text)
    except ValueError:
        raise UnknownCategoryError(str(raw)) from None


@dataclass(frozen=True)
class AssignmentWindow:
    """A consultant's presence on a project, both bounds already defaulted."""

    project_id: UUID | None
    start: date
    end: date


@dataclass(frozen=True)
class Earnings:
    basic_salary: Decimal
    working_days: int
    project_id: UUID | None = None
    daily_rate: Decimal | None = None


def _permanent_earnings(
    salary: Decimal,
    month: int,
    year: int,
    assignments: Sequence[AssignmentWindow],
    divisor: int,
) -> Earnings:
    return Earnings(
        basic_salary=round_money(salary),
        working_days=calendar_days_in_month(month, year),
    )


def _pro_rata_earnings(
    salary: Decimal,
    month: int,
    year: int,
    assignments: Sequence[AssignmentWindow],
    divisor: int,
) -> Earnings:
    first, last = month_bounds(month, year)
    daily_rate = salary / Decimal(divisor)

    total = ZERO
    days = 0
    project_id = None
    for window in assignments:
        hit = overlap(window.start, window.end, first, last)
        if hit is None:
            continue
        window_days = working_days(*hit)
        total += daily_rate * window_days
        days += window_days
        project_id = window.project_id

    return Earnings(
        basic_salary=round_money(total),
        working_days=days,
        project_id=project_id,
        daily_rate=daily_rate,
    )


_EARNINGS_RULES: dict[
    EmployeeCategory,
    Callable[[Decimal, int, int, Sequence[AssignmentWindow], int], Earnings],
] = {
    EmployeeCategory.PERMANENT: _permanent_earnings,
    EmployeeCategory.CONSULTANT: _pro_rata_earnings,
    EmployeeCategory.CONTRACT: _pro_rata_earnings,
}


@traced_engine(
    "payroll_earnings",
    "1.0",
    fingerprint_fields=("category", "salary", "month", "year"),
)
def compute_earnings(
    category: EmployeeCategory,
    salary: Decimal | int | str | None,
    month: int,
    year: int,
    assignments: Sequence[AssignmentWindow] = (),
    divisor: int = DEFAULT_CONSULTANT_DIVISOR,
) -> Earnings:
    """Earnings for one employee in one period."""
    if divisor <= 0:
        raise ValueError(f"divisor must be positive, got {divisor}")
    rule = _EARNINGS_RULES[category]
    return rule(to_decimal(salary), month, year, tuple(assignments), divisor)


def tax_deduction(
    basic_salary: Decimal,
    total_additions: Decimal = ZERO,
    rate: Decimal = DEFAULT_TAX_RATE,
) -> Decimal:
    """Flat withholding on total earnings, rounded to cents."""
    return round_money((to_decimal(basic_salary) + to_decimal(total_additions)) * to_decimal(rate))


def net_total(
    basic_salary: Decimal,
    total_additions: Decimal,
    total_deductions: Decimal,
) -> Decimal:
    """``basic + additions - deductions``, each term rounded to cents first."""
    return (
        round_money(basic_salary)
        + round_money(total_additions)
        - round_money(total_deductions)
    )
