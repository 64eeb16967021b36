"""
Module: backoffice_kernel.models.general_ledger
Responsibility: ORM persistence for general-ledger rows -- the double-entry
    record written by payroll accrual, payroll payment, customer payments
    and credit notes.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, or outer layers.

Invariants enforced:
    - Per row, debit_amount and credit_amount are both >= 0 and exactly one
      is non-zero (checked by LedgerJournal before insert; the CHECK
      constraint below is the database backstop for non-negativity).
    - Per (reference_type, reference_id) group, sum(debit) == sum(credit)
      within the balance tolerance (checked by LedgerJournal; verified on
      the read side by LedgerSelector.unbalanced_references()).

Failure modes:
    - IntegrityError if a negative amount reaches the database.

Audit relevance:
    reference_type + reference_id tie every row back to the document that
    produced it (PayrollEntry, InvoicePayment, CreditNote), so a period can
    be cleared or a payroll entry resynced without orphaning rows.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backoffice_kernel.db.base import TrackedBase, UUIDString


class GeneralLedgerEntryModel(TrackedBase):
    """
    One side of a double-entry transaction.

    Contract:
        Rows are only created through LedgerJournal.  Updates are limited to
        in-place amount/description resync of existing pairs; deletion only
        happens when the owning payroll period is cleared.
    """

    __tablename__ = "general_ledger_entries"

    __table_args__ = (
        CheckConstraint("debit_amount >= 0", name="ck_gl_debit_non_negative"),
        CheckConstraint("credit_amount >= 0", name="ck_gl_credit_non_negative"),
        Index("idx_gl_reference", "reference_type", "reference_id"),
        Index("idx_gl_account", "account_name"),
        Index("idx_gl_project", "project_id"),
    )

    entry_type: Mapped[str] = mapped_column(String(20), nullable=False)
    reference_type: Mapped[str] = mapped_column(String(30), nullable=False)

    # PayrollEntry / InvoicePayment / CreditNote id
    reference_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    account_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)

    debit_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    credit_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    # Employee or customer
    entity_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    entity_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    project_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    invoice_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def is_debit(self) -> bool:
        return (self.debit_amount or Decimal("0")) != Decimal("0")

    def __repr__(self) -> str:
        return (
            f"<GeneralLedgerEntry {self.reference_type}:{self.reference_id} "
            f"{self.account_name} Dr={self.debit_amount} Cr={self.credit_amount}>"
        )
