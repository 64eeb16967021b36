"""
GL line variants (``backoffice_kernel.domain.gl_lines``).

Responsibility
--------------
Closed, typed descriptions of the general-ledger rows the engine writes.
Each use case gets its own frozen dataclass carrying only the fields it
needs; the entry type and reference type are fixed by the variant rather
than passed around as loose strings.

    PayrollGLLine     -- salary accrual and salary payment rows
    PaymentGLLine     -- customer payment against a sales invoice
    CreditNoteGLLine  -- credit note issued against a sales invoice

``LedgerJournal`` accepts only these variants and flattens them with
``to_fields()`` into the column set of ``GeneralLedgerEntry``.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Variants are frozen; amounts are ``Decimal``.
* Validation of sides and amounts is NOT done here -- ``LedgerJournal``
  validates every line before anything is written, so malformed variants
  can be constructed and are rejected at the posting boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Union
from uuid import UUID

from backoffice_kernel.domain.values import ZERO


class EntryType(str, Enum):
    """Ledger classification of a row."""

    PAYABLE = "payable"
    RECEIVABLE = "receivable"
    EXPENSE = "expense"
    REVENUE = "revenue"
    ASSET = "asset"
    LIABILITY = "liability"


class ReferenceType(str, Enum):
    """What kind of document a row points back to via ``reference_id``."""

    MANUAL = "manual"
    PAYROLL_PAYMENT = "payroll_payment"
    CREDIT_NOTE = "credit_note"
    PAYMENT = "payment"


class GLStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    POSTED = "posted"


@dataclass(frozen=True)
class GLLineFields:
    """Flattened column values for one ``GeneralLedgerEntry`` row."""

    entry_type: EntryType
    reference_type: ReferenceType
    reference_id: UUID
    account_name: str
    description: str
    debit_amount: Decimal
    credit_amount: Decimal
    transaction_date: date | None
    entity_id: UUID | None = None
    entity_name: str | None = None
    project_id: UUID | None = None
    invoice_number: str | None = None
    due_date: date | None = None
    status: GLStatus = GLStatus.PENDING
    notes: str | None = None

    @property
    def is_debit(self) -> bool:
        return self.debit_amount != ZERO


@dataclass(frozen=True)
class PayrollGLLine:
    """
    One side of a salary accrual (``reference_type=manual``) or a salary
    payment (``reference_type=payroll_payment``).

    ``reference_id`` is the PayrollEntry id; ``project_id`` tags the cost
    to the last project that contributed earnings.
    """

    kind: ClassVar[str] = "payroll"
    ENTRY_TYPE: ClassVar[EntryType] = EntryType.PAYABLE

    payroll_entry_id: UUID
    account_name: str
    description: str
    transaction_date: date | None
    employee_id: UUID | None
    employee_name: str | None
    debit_amount: Decimal = ZERO
    credit_amount: Decimal = ZERO
    project_id: UUID | None = None
    is_payment: bool = False
    status: GLStatus = GLStatus.PENDING

    def to_fields(self) -> GLLineFields:
        return GLLineFields(
            entry_type=self.ENTRY_TYPE,
            reference_type=(
                ReferenceType.PAYROLL_PAYMENT if self.is_payment else ReferenceType.MANUAL
            ),
            reference_id=self.payroll_entry_id,
            account_name=self.account_name,
            description=self.description,
            debit_amount=self.debit_amount,
            credit_amount=self.credit_amount,
            transaction_date=self.transaction_date,
            entity_id=self.employee_id,
            entity_name=self.employee_name,
            project_id=self.project_id,
            status=self.status,
        )


@dataclass(frozen=True)
class PaymentGLLine:
    """One side of a customer payment recorded against a sales invoice."""

    kind: ClassVar[str] = "payment"
    ENTRY_TYPE: ClassVar[EntryType] = EntryType.RECEIVABLE

    payment_id: UUID
    account_name: str
    description: str
    transaction_date: date | None
    customer_id: UUID | None
    customer_name: str | None
    invoice_number: str | None
    debit_amount: Decimal = ZERO
    credit_amount: Decimal = ZERO
    project_id: UUID | None = None

    def to_fields(self) -> GLLineFields:
        return GLLineFields(
            entry_type=self.ENTRY_TYPE,
            reference_type=ReferenceType.PAYMENT,
            reference_id=self.payment_id,
            account_name=self.account_name,
            description=self.description,
            debit_amount=self.debit_amount,
            credit_amount=self.credit_amount,
            transaction_date=self.transaction_date,
            entity_id=self.customer_id,
            entity_name=self.customer_name,
            project_id=self.project_id,
            invoice_number=self.invoice_number,
            status=GLStatus.POSTED,
        )


@dataclass(frozen=True)
class CreditNoteGLLine:
    """One side of a credit note issued against a sales invoice."""

    kind: ClassVar[str] = "credit_note"
    ENTRY_TYPE: ClassVar[EntryType] = EntryType.RECEIVABLE

    credit_note_id: UUID
    account_name: str
    description: str
    transaction_date: date | None
    customer_id: UUID | None
    customer_name: str | None
    invoice_number: str | None
    debit_amount: Decimal = ZERO
    credit_amount: Decimal = ZERO
    notes: str | None = None

    def to_fields(self) -> GLLineFields:
        return GLLineFields(
            entry_type=self.ENTRY_TYPE,
            reference_type=ReferenceType.CREDIT_NOTE,
            reference_id=self.credit_note_id,
            account_name=self.account_name,
            description=self.description,
            debit_amount=self.debit_amount,
            credit_amount=self.credit_amount,
            transaction_date=self.transaction_date,
            entity_id=self.customer_id,
            entity_name=self.customer_name,
            invoice_number=self.invoice_number,
            status=GLStatus.POSTED,
            notes=self.notes,
        )


GLLine = Union[PayrollGLLine, PaymentGLLine, CreditNoteGLLine]
