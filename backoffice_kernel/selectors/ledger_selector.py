"""
Module: backoffice_kernel.selectors.ledger_selector
Responsibility: Read-only queries over ``general_ledger_entries``: per
    document debit/credit totals, detection of unbalanced documents,
    trial-balance style account balances, and open payable/receivable rows.
Architecture position: Kernel > Selectors.  May import from models/ and
    selectors/base.py.

Invariants enforced:
    - No stored balances: every figure is aggregated from GL rows at query
      time.
    - All amounts are returned as Decimal (never float).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backoffice_kernel.domain.gl_lines import EntryType, GLStatus, ReferenceType
from backoffice_kernel.domain.values import BALANCE_TOLERANCE, ZERO, to_decimal
from backoffice_kernel.models.general_ledger import GeneralLedgerEntryModel
from backoffice_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class ReferenceTotals:
    """Debit/credit totals for one (reference_type, reference_id) group."""

    reference_type: str
    reference_id: UUID
    debit_total: Decimal
    credit_total: Decimal
    line_count: int

    @property
    def imbalance(self) -> Decimal:
        return self.debit_total - self.credit_total

    def is_balanced(self, tolerance: Decimal = BALANCE_TOLERANCE) -> bool:
        return abs(self.imbalance) <= tolerance


@dataclass(frozen=True)
class AccountBalance:
    """Trial-balance row for one account name."""

    account_name: str
    debit_total: Decimal
    credit_total: Decimal
    line_count: int

    @property
    def balance(self) -> Decimal:
        """Net balance (debits - credits)."""
        return self.debit_total - self.credit_total


@dataclass(frozen=True)
class GLEntryDTO:
    id: UUID
    entry_type: str
    reference_type: str
    reference_id: UUID
    account_name: str
    description: str
    debit_amount: Decimal
    credit_amount: Decimal
    entity_id: UUID | None
    entity_name: str | None
    project_id: UUID | None
    invoice_number: str | None
    transaction_date: date
    due_date: date | None
    status: str


def to_gl_dto(row: GeneralLedgerEntryModel) -> GLEntryDTO:
    return GLEntryDTO(
        id=row.id,
        entry_type=row.entry_type,
        reference_type=row.reference_type,
        reference_id=row.reference_id,
        account_name=row.account_name,
        description=row.description,
        debit_amount=to_decimal(row.debit_amount),
        credit_amount=to_decimal(row.credit_amount),
        entity_id=row.entity_id,
        entity_name=row.entity_name,
        project_id=row.project_id,
        invoice_number=row.invoice_number,
        transaction_date=row.transaction_date,
        due_date=row.due_date,
        status=row.status,
    )


class LedgerSelector(BaseSelector[GeneralLedgerEntryModel]):
    """
    Aggregating read path over GL rows.

    Guarantees:
        - A balanced ledger yields an empty ``unbalanced_references()``.
        - ``account_balances()`` debit and credit columns sum to the same
          totals as ``totals_by_reference()``.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def totals_by_reference(
        self,
        reference_type: ReferenceType | str | None = None,
    ) -> list[ReferenceTotals]:
        GL = GeneralLedgerEntryModel
        stmt = (
            select(
                GL.reference_type,
                GL.reference_id,
                func.sum(GL.debit_amount).label("debit_total"),
                func.sum(GL.credit_amount).label("credit_total"),
                func.count(GL.id).label("line_count"),
            )
            .group_by(GL.reference_type, GL.reference_id)
            .order_by(GL.reference_type, GL.reference_id)
        )
        if reference_type is not None:
            value = reference_type.value if isinstance(reference_type, ReferenceType) else reference_type
            stmt = stmt.where(GL.reference_type == value)

        return [
            ReferenceTotals(
                reference_type=row.reference_type,
                reference_id=row.reference_id,
                debit_total=to_decimal(row.debit_total),
                credit_total=to_decimal(row.credit_total),
                line_count=row.line_count,
            )
            for row in self.session.execute(stmt).all()
        ]

    def unbalanced_references(
        self,
        tolerance: Decimal = BALANCE_TOLERANCE,
    ) -> list[ReferenceTotals]:
        """Groups whose debits and credits differ by more than ``tolerance``."""
        return [t for t in self.totals_by_reference() if not t.is_balanced(tolerance)]

    def account_balances(self, as_of_date: date | None = None) -> list[AccountBalance]:
        GL = GeneralLedgerEntryModel
        stmt = (
            select(
                GL.account_name,
                func.sum(GL.debit_amount).label("debit_total"),
                func.sum(GL.credit_amount).label("credit_total"),
                func.count(GL.id).label("line_count"),
            )
            .group_by(GL.account_name)
            .order_by(GL.account_name)
        )
        if as_of_date is not None:
            stmt = stmt.where(GL.transaction_date <= as_of_date)

        return [
            AccountBalance(
                account_name=row.account_name,
                debit_total=to_decimal(row.debit_total),
                credit_total=to_decimal(row.credit_total),
                line_count=row.line_count,
            )
            for row in self.session.execute(stmt).all()
        ]

    def account_balance(self, account_name: str) -> Decimal:
        for balance in self.account_balances():
            if balance.account_name == account_name:
                return balance.balance
        return ZERO

    def open_items(self, entry_type: EntryType | str) -> list[GLEntryDTO]:
        """Rows of the given type that are not yet marked paid."""
        GL = GeneralLedgerEntryModel
        value = entry_type.value if isinstance(entry_type, EntryType) else entry_type
        stmt = (
            select(GL)
            .where(GL.entry_type == value, GL.status != GLStatus.PAID.value)
            .order_by(GL.transaction_date, GL.account_name)
        )
        return [to_gl_dto(row) for row in self.session.scalars(stmt).all()]

    def entries_for_reference(
        self,
        reference_type: ReferenceType | str,
        reference_id: UUID,
    ) -> list[GLEntryDTO]:
        GL = GeneralLedgerEntryModel
        value = reference_type.value if isinstance(reference_type, ReferenceType) else reference_type
        stmt = (
            select(GL)
            .where(GL.reference_type == value, GL.reference_id == reference_id)
            .order_by(GL.debit_amount.desc(), GL.account_name)
        )
        return [to_gl_dto(row) for row in self.session.scalars(stmt).all()]

    def count(self) -> int:
        return self.session.scalar(select(func.count(GeneralLedgerEntryModel.id))) or 0
