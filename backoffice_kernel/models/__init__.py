"""ORM models owned by the backoffice kernel."""

from backoffice_kernel.models.error_log import ErrorLogModel
from backoffice_kernel.models.general_ledger import GeneralLedgerEntryModel

__all__ = [
    "ErrorLogModel",
    "GeneralLedgerEntryModel",
]
