"""
Payroll Domain Models (``backoffice_modules.payroll.models``).

Responsibility
--------------
Frozen dataclass value objects for the nouns of monthly payroll:
employees, payroll entries, their additions and deductions, and the
results of generation and clearing.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Returned by
``PayrollService`` to callers.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class PayrollEntryStatus(str, Enum):
    GENERATED = "generated"
    PAID = "paid"


class AdditionKind(str, Enum):
    """``project_fee`` rows mirror consultant earnings and are not summed into totals."""

    MANUAL = "manual"
    PROJECT_FEE = "project_fee"


class DeductionKind(str, Enum):
    MANUAL = "manual"
    TAX = "tax"


@dataclass(frozen=True)
class Employee:
    id: UUID
    employee_code: str
    first_name: str
    last_name: str
    category: str | None
    salary: Decimal | None
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class PayrollEntry:
    id: UUID
    employee_id: UUID
    month: int
    year: int
    working_days: int
    basic_salary: Decimal
    total_additions: Decimal
    total_deductions: Decimal
    total_amount: Decimal
    status: PayrollEntryStatus
    project_id: UUID | None = None
    generated_at: datetime | None = None
    paid_at: datetime | None = None

    @property
    def earnings(self) -> Decimal:
        return self.basic_salary + self.total_additions


@dataclass(frozen=True)
class PayrollAddition:
    id: UUID
    payroll_entry_id: UUID
    description: str
    amount: Decimal
    kind: AdditionKind = AdditionKind.MANUAL
    note: str | None = None


@dataclass(frozen=True)
class PayrollDeduction:
    id: UUID
    payroll_entry_id: UUID
    description: str
    amount: Decimal
    kind: DeductionKind = DeductionKind.MANUAL
    note: str | None = None


@dataclass(frozen=True)
class ComputedPayroll:
    """One employee's computed earnings for a period, before persistence."""

    employee: Employee
    basic_salary: Decimal
    working_days: int
    project_id: UUID | None
    is_pro_rata: bool


@dataclass(frozen=True)
class ClearPeriodResult:
    deleted_payroll_entries: int
    deleted_general_ledger_entries: int
