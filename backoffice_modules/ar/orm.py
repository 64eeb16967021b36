"""
Accounts Receivable ORM Persistence Models (``backoffice_modules.ar.orm``).

Responsibility:
    SQLAlchemy ORM models for sales invoices, payments recorded against
    them and credit notes.  Each mirrors a DTO in
    ``backoffice_modules.ar.models`` and provides ``to_dto()``.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models.
    Inherits from ``TrackedBase`` (kernel DB base).

Invariants enforced:
    - All monetary fields use Decimal (maps to Numeric(38,9)) -- NEVER float.
    - ``SalesInvoiceModel.paid_amount`` is derived from its payment rows by
      ``ReconciliationService.recompute_invoice``; it is never edited directly.
    - At most one ``credit_note`` payment row per credit note.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice_kernel.db.base import TrackedBase


class SalesInvoiceModel(TrackedBase):
    __tablename__ = "sales_invoices"

    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)
    customer_id: Mapped[UUID | None] = mapped_column(nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    project_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("projects.id", ondelete="SET NULL"), nullable=True,
    )
    status: Mapped[str] = mapped_column(String(50), default="draft", nullable=False)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    payments: Mapped[list["InvoicePaymentModel"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("invoice_number", name="uq_sales_invoice_number"),
        Index("idx_sales_invoice_status", "status"),
        Index("idx_sales_invoice_customer", "customer_id"),
    )

    def to_dto(self):
        from backoffice_modules.ar.models import InvoiceStatus, SalesInvoice

        return SalesInvoice(
            id=self.id,
            invoice_number=self.invoice_number,
            customer_id=self.customer_id,
            customer_name=self.customer_name,
            project_id=self.project_id,
            status=InvoiceStatus(self.status),
            invoice_date=self.invoice_date,
            due_date=self.due_date,
            total_amount=self.total_amount,
            paid_amount=self.paid_amount,
        )

    def __repr__(self) -> str:
        return (
            f"<SalesInvoiceModel {self.invoice_number} "
            f"{self.paid_amount}/{self.total_amount} ({self.status})>"
        )


class InvoicePaymentModel(TrackedBase):
    __tablename__ = "invoice_payments"

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("sales_invoices.id", ondelete="CASCADE"), nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_type: Mapped[str] = mapped_column(String(50), default="payment", nullable=False)
    credit_note_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("credit_notes.id"), nullable=True,
    )

    invoice: Mapped["SalesInvoiceModel"] = relationship(back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_invoice_payment_amount_positive"),
        UniqueConstraint("credit_note_id", name="uq_invoice_payment_credit_note"),
        Index("idx_invoice_payment_invoice", "invoice_id"),
    )

    def to_dto(self):
        from backoffice_modules.ar.models import InvoicePayment, PaymentType

        return InvoicePayment(
            id=self.id,
            invoice_id=self.invoice_id,
            amount=self.amount,
            payment_date=self.payment_date,
            payment_method=self.payment_method,
            reference_number=self.reference_number,
            payment_type=PaymentType(self.payment_type),
            credit_note_id=self.credit_note_id,
        )


class CreditNoteModel(TrackedBase):
    __tablename__ = "credit_notes"

    credit_note_number: Mapped[str] = mapped_column(String(50), nullable=False)
    sales_invoice_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("sales_invoices.id"), nullable=True,
    )
    customer_id: Mapped[UUID | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(String(50), default="draft", nullable=False)
    credit_note_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    invoice: Mapped["SalesInvoiceModel"] = relationship()

    __table_args__ = (
        UniqueConstraint("credit_note_number", name="uq_credit_note_number"),
        Index("idx_credit_note_invoice", "sales_invoice_id"),
    )

    def to_dto(self):
        from backoffice_modules.ar.models import CreditNote, CreditNoteStatus

        return CreditNote(
            id=self.id,
            credit_note_number=self.credit_note_number,
            sales_invoice_id=self.sales_invoice_id,
            customer_id=self.customer_id,
            status=CreditNoteStatus(self.status),
            credit_note_date=self.credit_note_date,
            total_amount=self.total_amount,
            reason=self.reason,
        )

    def __repr__(self) -> str:
        return f"<CreditNoteModel {self.credit_note_number} {self.total_amount} ({self.status})>"
