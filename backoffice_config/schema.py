"""
Configuration Schema (``backoffice_config.schema``).

Responsibility
--------------
Frozen dataclasses describing the tunable constants of the payroll and
ledger engines.  Every instance validates itself in ``__post_init__``.

Architecture position
---------------------
**Config layer** -- pure data definitions.  No I/O; the loader produces
these objects from YAML.

Invariants enforced
-------------------
* Rates and tolerances are ``Decimal``.
* ``0 <= tax_rate < 1``; ``consultant_divisor > 0``;
  ``balance_tolerance >= 0``; account names are non-empty.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class PayrollSettings:
    tax_rate: Decimal = Decimal("0.05")
    consultant_divisor: int = 22
    tax_description: str = "Tax Deducted at Source"
    tax_note: str = "5% of total earnings"
    project_fee_description: str = "Project Consultant Fee"
    flush_chunk_size: int = 100
    active_project_statuses: tuple[str, ...] = ("in_progress", "planning", "not_started")

    def __post_init__(self) -> None:
        if not Decimal("0") <= self.tax_rate < Decimal("1"):
            raise ValueError(f"tax_rate must be in [0, 1), got {self.tax_rate}")
        if self.consultant_divisor <= 0:
            raise ValueError("consultant_divisor must be positive")
        if self.flush_chunk_size <= 0:
            raise ValueError("flush_chunk_size must be positive")
        if not self.active_project_statuses:
            raise ValueError("active_project_statuses must not be empty")
        for name in ("tax_description", "project_fee_description"):
            if not getattr(self, name).strip():
                raise ValueError(f"{name} must not be empty")


@dataclass(frozen=True)
class LedgerAccounts:
    salary_expense: str = "Salary Expense"
    salary_payable: str = "Salary Payable"
    cash: str = "Cash/Bank"
    accounts_receivable: str = "Accounts Receivable"
    sales_returns: str = "Sales Returns"

    def __post_init__(self) -> None:
        for name, value in self.__dict__.items():
            if not str(value).strip():
                raise ValueError(f"account name '{name}' must not be empty")


@dataclass(frozen=True)
class LedgerSettings:
    balance_tolerance: Decimal = Decimal("0.01")
    accounts: LedgerAccounts = field(default_factory=LedgerAccounts)

    def __post_init__(self) -> None:
        if self.balance_tolerance < 0:
            raise ValueError("balance_tolerance cannot be negative")


@dataclass(frozen=True)
class EngineConfig:
    """The assembled configuration plus the checksum of its source data."""

    payroll: PayrollSettings
    ledger: LedgerSettings
    checksum: str
    source: str = "defaults"
