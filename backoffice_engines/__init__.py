"""
Module: backoffice_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines: calendar
    arithmetic, rental pro-rating, payroll earnings and project cost.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import backoffice_kernel domain values and exceptions.
    MUST NOT import backoffice_modules.

Invariants enforced:
    - Purity: engines never read the clock; dates are passed in.
    - Decimal-only arithmetic for all monetary amounts.
    - Determinism: identical inputs always produce identical outputs.
"""

from backoffice_engines.calendar import (
    calendar_days_in_month,
    iter_month_segments,
    month_bounds,
    month_name,
    overlap,
    validate_period,
    working_days,
)
from backoffice_engines.payroll import (
    AssignmentWindow,
    EmployeeCategory,
    Earnings,
    compute_earnings,
    net_total,
    parse_category,
    tax_deduction,
)
from backoffice_engines.project_cost import (
    ConsumableInput,
    LaborInput,
    ProjectCostBreakdown,
    RentalInput,
    build_breakdown,
    consumable_cost,
    labor_cost,
)
from backoffice_engines.rental import rental_cost
from backoffice_engines.tracer import traced_engine

__all__ = [
    "AssignmentWindow",
    "ConsumableInput",
    "Earnings",
    "EmployeeCategory",
    "LaborInput",
    "ProjectCostBreakdown",
    "RentalInput",
    "build_breakdown",
    "calendar_days_in_month",
    "compute_earnings",
    "consumable_cost",
    "iter_month_segments",
    "labor_cost",
    "month_bounds",
    "month_name",
    "net_total",
    "overlap",
    "parse_category",
    "rental_cost",
    "tax_deduction",
    "traced_engine",
    "validate_period",
    "working_days",
]
