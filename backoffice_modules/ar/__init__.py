"""Accounts receivable: invoice payments, credit notes and their ledger postings."""

from backoffice_modules.ar.config import ARConfig
from backoffice_modules.ar.models import (
    CreditNote,
    CreditNoteStatus,
    InvoicePayment,
    InvoiceStatus,
    PaymentType,
    SalesInvoice,
)
from backoffice_modules.ar.service import ReconciliationService, derive_invoice_status
from backoffice_modules.ar.workflows import CREDIT_NOTE_WORKFLOW

__all__ = [
    "ARConfig",
    "CREDIT_NOTE_WORKFLOW",
    "CreditNote",
    "CreditNoteStatus",
    "InvoicePayment",
    "InvoiceStatus",
    "PaymentType",
    "ReconciliationService",
    "SalesInvoice",
    "derive_invoice_status",
]
