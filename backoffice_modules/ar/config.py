"""
Accounts Receivable Configuration Schema.

Ledger accounts and defaults used when payments and credit notes are
posted against sales invoices.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from backoffice_config import EngineConfig
from backoffice_kernel.logging_config import get_logger

logger = get_logger("modules.ar.config")


@dataclass
class ARConfig:
    cash_account: str = "Cash/Bank"
    receivable_account: str = "Accounts Receivable"
    sales_returns_account: str = "Sales Returns"
    default_payment_method: str = "bank_transfer"
    balance_tolerance: Decimal = Decimal("0.01")

    def __post_init__(self):
        for name in ("cash_account", "receivable_account", "sales_returns_account"):
            if not getattr(self, name).strip():
                raise ValueError(f"{name} must not be empty")
        if self.balance_tolerance < 0:
            raise ValueError("balance_tolerance must not be negative")

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()

    @classmethod
    def from_engine_config(cls, config: EngineConfig) -> Self:
        accounts = config.ledger.accounts
        logger.debug("ar_config_from_engine_config", extra={"checksum": config.checksum})
        return cls(
            cash_account=accounts.cash,
            receivable_account=accounts.accounts_receivable,
            sales_returns_account=accounts.sales_returns,
            balance_tolerance=config.ledger.balance_tolerance,
        )
