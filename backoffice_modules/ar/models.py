"""
Accounts Receivable Domain Models (``backoffice_modules.ar.models``).

Responsibility
--------------
Frozen dataclass value objects for sales invoices, the payments applied
to them, and credit notes.  Returned by ``ReconciliationService``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from backoffice_kernel.domain.values import ZERO


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"


class PaymentType(str, Enum):
    """``credit_note`` rows are the payment equivalent of an issued credit note."""

    PAYMENT = "payment"
    CREDIT_NOTE = "credit_note"


class CreditNoteStatus(str, Enum):
    DRAFT = "draft"
    ISSUED = "issued"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SalesInvoice:
    id: UUID
    invoice_number: str
    customer_id: UUID | None
    customer_name: str | None
    project_id: UUID | None
    status: InvoiceStatus
    invoice_date: date
    due_date: date
    total_amount: Decimal
    paid_amount: Decimal

    @property
    def balance_due(self) -> Decimal:
        return max(self.total_amount - self.paid_amount, ZERO)


@dataclass(frozen=True)
class InvoicePayment:
    id: UUID
    invoice_id: UUID
    amount: Decimal
    payment_date: date
    payment_method: str | None
    reference_number: str | None
    payment_type: PaymentType
    credit_note_id: UUID | None = None


@dataclass(frozen=True)
class CreditNote:
    id: UUID
    credit_note_number: str
    sales_invoice_id: UUID | None
    customer_id: UUID | None
    status: CreditNoteStatus
    credit_note_date: date
    total_amount: Decimal
    reason: str | None = None
