"""Monthly payroll: computation, lifecycle and salary ledger postings."""

from backoffice_modules.payroll.computer import PayrollComputer
from backoffice_modules.payroll.config import PayrollConfig
from backoffice_modules.payroll.models import (
    AdditionKind,
    ClearPeriodResult,
    ComputedPayroll,
    DeductionKind,
    Employee,
    PayrollAddition,
    PayrollDeduction,
    PayrollEntry,
    PayrollEntryStatus,
)
from backoffice_modules.payroll.service import PayrollService
from backoffice_modules.payroll.workflows import PAYROLL_ENTRY_WORKFLOW

__all__ = [
    "AdditionKind",
    "ClearPeriodResult",
    "ComputedPayroll",
    "DeductionKind",
    "Employee",
    "PAYROLL_ENTRY_WORKFLOW",
    "PayrollAddition",
    "PayrollComputer",
    "PayrollConfig",
    "PayrollDeduction",
    "PayrollEntry",
    "PayrollEntryStatus",
    "PayrollService",
]
