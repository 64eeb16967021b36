"""Read-only selectors over kernel-owned tables."""

from backoffice_kernel.selectors.ledger_selector import (
    AccountBalance,
    GLEntryDTO,
    LedgerSelector,
    ReferenceTotals,
)

__all__ = [
    "AccountBalance",
    "GLEntryDTO",
    "LedgerSelector",
    "ReferenceTotals",
]
