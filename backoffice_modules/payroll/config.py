"""
Payroll Configuration Schema.

Defines the structure and defaults for payroll generation settings.
``PayrollConfig.from_engine_config`` builds it from the active
``backoffice_config`` so services receive one flat object.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Self

from backoffice_config import EngineConfig
from backoffice_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.config")

KNOWN_PROJECT_STATUSES = {
    "not_started",
    "planning",
    "in_progress",
    "on_hold",
    "completed",
    "cancelled",
}


@dataclass
class PayrollConfig:
    """
    Configuration for payroll generation and posting.

        config = PayrollConfig(tax_rate=Decimal("0.05"), consultant_divisor=22)
    """

    # Withholding
    tax_rate: Decimal = Decimal("0.05")
    tax_description: str = "Tax Deducted at Source"
    tax_note: str = "5% of total earnings"

    # Pro-rata earnings
    consultant_divisor: int = 22
    project_fee_description: str = "Project Consultant Fee"
    active_project_statuses: tuple[str, ...] = field(
        default_factory=lambda: ("in_progress", "planning", "not_started")
    )

    # Batch
    flush_chunk_size: int = 100

    # Ledger accounts
    salary_expense_account: str = "Salary Expense"
    salary_payable_account: str = "Salary Payable"
    cash_account: str = "Cash/Bank"
    balance_tolerance: Decimal = Decimal("0.01")

    def __post_init__(self):
        if not Decimal("0") <= self.tax_rate < Decimal("1"):
            raise ValueError(f"tax_rate must be in [0, 1), got {self.tax_rate}")
        if self.consultant_divisor <= 0:
            raise ValueError("consultant_divisor must be positive")
        if self.flush_chunk_size <= 0:
            raise ValueError("flush_chunk_size must be positive")
        unknown = set(self.active_project_statuses) - KNOWN_PROJECT_STATUSES
        if unknown:
            raise ValueError(f"unknown project statuses: {sorted(unknown)}")
        for name in ("salary_expense_account", "salary_payable_account", "cash_account"):
            if not getattr(self, name).strip():
                raise ValueError(f"{name} must not be empty")

        logger.debug(
            "payroll_config_initialized",
            extra={
                "tax_rate": str(self.tax_rate),
                "consultant_divisor": self.consultant_divisor,
                "active_project_statuses": list(self.active_project_statuses),
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from a dictionary (e.g. loaded from a settings table)."""
        logger.info(
            "payroll_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        kwargs = dict(data)
        for key in ("tax_rate", "balance_tolerance"):
            if key in kwargs:
                kwargs[key] = Decimal(str(kwargs[key]))
        if "active_project_statuses" in kwargs:
            kwargs["active_project_statuses"] = tuple(kwargs["active_project_statuses"])
        return cls(**kwargs)

    @classmethod
    def from_engine_config(cls, config: EngineConfig) -> Self:
        payroll = config.payroll
        accounts = config.ledger.accounts
        return cls(
            tax_rate=payroll.tax_rate,
            tax_description=payroll.tax_description,
            tax_note=payroll.tax_note,
            consultant_divisor=payroll.consultant_divisor,
            project_fee_description=payroll.project_fee_description,
            active_project_statuses=tuple(payroll.active_project_statuses),
            flush_chunk_size=payroll.flush_chunk_size,
            salary_expense_account=accounts.salary_expense,
            salary_payable_account=accounts.salary_payable,
            cash_account=accounts.cash,
            balance_tolerance=config.ledger.balance_tolerance,
        )
