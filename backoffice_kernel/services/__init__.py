"""Kernel services: ledger writes and error recording."""

from backoffice_kernel.services.error_log_service import ErrorLogSink
from backoffice_kernel.services.journal_service import (
    LedgerJournal,
    ProjectCostSink,
    validate_line,
)

__all__ = [
    "ErrorLogSink",
    "LedgerJournal",
    "ProjectCostSink",
    "validate_line",
]
