"""
LedgerJournal -- the single write path for general-ledger rows.

Responsibility:
    Validates typed GL line variants and persists them as
    ``GeneralLedgerEntryModel`` rows.  Multi-line transactions go through
    ``post_balanced_journal``, which refuses to write anything unless the
    lines balance.  Existing paired rows can be resynced in place when the
    amount of the source document changes.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes within the caller's
    transaction; the calling module service commits or rolls back.

Invariants enforced:
    - Per row: account name and description non-empty, transaction date
      present, both amounts >= 0, exactly one of debit/credit non-zero.
    - Per journal: ``|sum(debit) - sum(credit)| <= tolerance``.
    - Validation happens for ALL lines before the first row is added.

Failure modes:
    - InvalidLedgerLineError: a single line is malformed.
    - UnbalancedJournalError: a journal (or a resync) would not balance.

Side effects:
    A payable row tagged with a project adds its credit amount to that
    project's running cost through the injected ``ProjectCostSink``.  A
    resync sends the change in credit and a delete sends the removed credit
    negated, so the running cost follows the rows that exist.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy import delete, func, select

from backoffice_kernel.domain.gl_lines import (
    EntryType,
    GLLine,
    GLLineFields,
    GLStatus,
    ReferenceType,
)
from backoffice_kernel.domain.values import BALANCE_TOLERANCE, ZERO, to_decimal
from backoffice_kernel.exceptions import InvalidLedgerLineError, UnbalancedJournalError
from backoffice_kernel.logging_config import get_logger
from backoffice_kernel.models.general_ledger import GeneralLedgerEntryModel
from backoffice_kernel.services.base import BaseService

logger = get_logger("services.journal")


class ProjectCostSink(Protocol):
    """Receives payable amounts tagged with a project."""

    def apply_payable_cost(self, project_id: UUID, amount: Decimal) -> None:
        """``amount`` is signed; a negative value takes cost back off."""


def _line_amount(value, account: str | None = None) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError as exc:
        raise InvalidLedgerLineError(str(exc), account) from exc


def validate_line(fields: GLLineFields) -> None:
    """Raise InvalidLedgerLineError if a single line cannot be posted."""
    account = (fields.account_name or "").strip()
    if not account:
        raise InvalidLedgerLineError("account name is required")
    if not (fields.description or "").strip():
        raise InvalidLedgerLineError("description is required", account)
    if fields.transaction_date is None:
        raise InvalidLedgerLineError("transaction date is required", account)

    debit = _line_amount(fields.debit_amount, account)
    credit = _line_amount(fields.credit_amount, account)
    if debit < ZERO or credit < ZERO:
        raise InvalidLedgerLineError("amounts must not be negative", account)
    if (debit == ZERO) == (credit == ZERO):
        raise InvalidLedgerLineError(
            "exactly one of debit or credit must be non-zero", account
        )


def _ref_value(reference_type: ReferenceType | str) -> str:
    return reference_type.value if isinstance(reference_type, ReferenceType) else str(reference_type)


def _is_project_payable(row: GeneralLedgerEntryModel) -> bool:
    return (
        row.entry_type == EntryType.PAYABLE.value
        and row.project_id is not None
        and to_decimal(row.credit_amount) > ZERO
    )


class LedgerJournal(BaseService[GeneralLedgerEntryModel]):
    """
    Validating writer for general-ledger rows.

    Contract:
        Accepts only the closed set of GL line variants (PayrollGLLine,
        PaymentGLLine, CreditNoteGLLine).  Returns the persisted ORM rows.
    """

    def __init__(
        self,
        session,
        project_cost_sink: ProjectCostSink | None = None,
        tolerance: Decimal = BALANCE_TOLERANCE,
    ):
        super().__init__(session)
        self._project_cost_sink = project_cost_sink
        self._tolerance = tolerance

    # ------------------------------------------------------------------
    # Posting
    # ------------------------------------------------------------------

    def post_entry(self, line: GLLine, actor_id: UUID) -> GeneralLedgerEntryModel:
        """Validate and persist a single GL row."""
        fields = line.to_fields()
        validate_line(fields)
        return self._insert(fields, actor_id)

    def post_balanced_journal(
        self,
        lines: Sequence[GLLine],
        actor_id: UUID,
    ) -> list[GeneralLedgerEntryModel]:
        """
        Validate every line and the journal balance, then persist all rows.

        Nothing is added to the session unless the whole journal is valid.
        """
        if len(lines) < 2:
            raise InvalidLedgerLineError(
                f"a balanced journal needs at least 2 lines, got {len(lines)}"
            )

        all_fields = [line.to_fields() for line in lines]
        for fields in all_fields:
            validate_line(fields)

        debits = sum((to_decimal(f.debit_amount) for f in all_fields), ZERO)
        credits = sum((to_decimal(f.credit_amount) for f in all_fields), ZERO)
        if abs(debits - credits) > self._tolerance:
            logger.warning(
                "journal_unbalanced",
                extra={
                    "reference_id": str(all_fields[0].reference_id),
                    "debits": str(debits),
                    "credits": str(credits),
                },
            )
            raise UnbalancedJournalError(debits, credits, self._tolerance)

        rows = [self._insert(fields, actor_id) for fields in all_fields]
        logger.info(
            "journal_posted",
            extra={
                "reference_type": all_fields[0].reference_type.value,
                "reference_id": str(all_fields[0].reference_id),
                "line_count": len(rows),
                "total": str(debits),
            },
        )
        return rows

    def _insert(self, fields: GLLineFields, actor_id: UUID) -> GeneralLedgerEntryModel:
        row = GeneralLedgerEntryModel(
            entry_type=fields.entry_type.value,
            reference_type=fields.reference_type.value,
            reference_id=fields.reference_id,
            account_name=fields.account_name.strip(),
            description=fields.description.strip(),
            debit_amount=to_decimal(fields.debit_amount),
            credit_amount=to_decimal(fields.credit_amount),
            entity_id=fields.entity_id,
            entity_name=fields.entity_name,
            project_id=fields.project_id,
            invoice_number=fields.invoice_number,
            transaction_date=fields.transaction_date,
            due_date=fields.due_date,
            status=fields.status.value,
            notes=fields.notes,
            created_by_id=actor_id,
        )
        self.session.add(row)
        self.session.flush()

        if _is_project_payable(row):
            self._apply_project_cost(row.project_id, row.credit_amount)

        logger.debug(
            "gl_line_written",
            extra={
                "gl_entry_id": str(row.id),
                "account": row.account_name,
                "debit": str(row.debit_amount),
                "credit": str(row.credit_amount),
            },
        )
        return row

    def _apply_project_cost(self, project_id: UUID, amount: Decimal) -> None:
        if self._project_cost_sink is None or amount == ZERO:
            return
        self._project_cost_sink.apply_payable_cost(project_id, amount)

    # ------------------------------------------------------------------
    # Maintenance of existing rows
    # ------------------------------------------------------------------

    def entries_for_reference(
        self,
        reference_type: ReferenceType | str,
        reference_id: UUID,
    ) -> list[GeneralLedgerEntryModel]:
        """Rows for one source document, debit side first."""
        stmt = (
            select(GeneralLedgerEntryModel)
            .where(
                GeneralLedgerEntryModel.reference_type == _ref_value(reference_type),
                GeneralLedgerEntryModel.reference_id == reference_id,
            )
            .order_by(
                GeneralLedgerEntryModel.debit_amount.desc(),
                GeneralLedgerEntryModel.account_name,
            )
        )
        return list(self.session.scalars(stmt).all())

    def resync_entries_for_reference(
        self,
        reference_type: ReferenceType | str,
        reference_id: UUID,
        new_debit: Decimal,
        new_credit: Decimal,
        actor_id: UUID,
        new_description: str | None = None,
    ) -> int:
        """
        Update the existing paired rows of a document in place.

        Debit-side rows take ``new_debit`` and credit-side rows take
        ``new_credit``; row ids are preserved.  The resulting group must
        still balance and every row must remain a valid line.

        Both amounts must be positive.  To take a document's amount to zero,
        remove its rows with ``delete_entries_for_references``.

        Project-tagged payable credits send their change (new minus old) to
        the project cost sink.

        Returns:
            Number of rows updated (0 if the document has no rows).
        """
        rows = self.entries_for_reference(reference_type, reference_id)
        if not rows:
            return 0

        new_debit = _line_amount(new_debit)
        new_credit = _line_amount(new_credit)
        if new_debit <= ZERO or new_credit <= ZERO:
            raise InvalidLedgerLineError(
                "resynced amounts must be positive; delete the rows instead"
            )

        debit_rows = [r for r in rows if r.is_debit]
        credit_rows = [r for r in rows if not r.is_debit]
        total_debit = new_debit * len(debit_rows)
        total_credit = new_credit * len(credit_rows)
        if abs(total_debit - total_credit) > self._tolerance:
            raise UnbalancedJournalError(total_debit, total_credit, self._tolerance)

        if new_description is not None and not new_description.strip():
            raise InvalidLedgerLineError("description is required")

        cost_changes = [
            (row.project_id, new_credit - to_decimal(row.credit_amount))
            for row in credit_rows
            if _is_project_payable(row)
        ]

        for row in debit_rows:
            row.debit_amount = new_debit
            row.credit_amount = ZERO
        for row in credit_rows:
            row.credit_amount = new_credit
            row.debit_amount = ZERO
        for row in rows:
            row.updated_by_id = actor_id
            if new_description is not None:
                row.description = new_description.strip()

        self.session.flush()
        for project_id, change in cost_changes:
            self._apply_project_cost(project_id, change)
        logger.info(
            "journal_resynced",
            extra={
                "reference_type": _ref_value(reference_type),
                "reference_id": str(reference_id),
                "row_count": len(rows),
                "debit": str(new_debit),
                "credit": str(new_credit),
            },
        )
        return len(rows)

    def set_status_for_reference(
        self,
        reference_type: ReferenceType | str,
        reference_id: UUID,
        status: GLStatus,
        actor_id: UUID,
    ) -> int:
        """Set ``status`` on every row of one document; amounts are untouched."""
        rows = self.entries_for_reference(reference_type, reference_id)
        for row in rows:
            row.status = status.value
            row.updated_by_id = actor_id
        self.session.flush()
        return len(rows)

    def delete_entries_for_references(
        self,
        reference_type: ReferenceType | str,
        reference_ids: Iterable[UUID],
    ) -> int:
        """Delete all rows of the given type for the given documents.

        Project-tagged payable credits are taken back off their project's
        running cost.
        """
        ids = list(reference_ids)
        if not ids:
            return 0

        removed_cost = self.session.execute(
            select(
                GeneralLedgerEntryModel.project_id,
                func.sum(GeneralLedgerEntryModel.credit_amount),
            )
            .where(
                GeneralLedgerEntryModel.reference_type == _ref_value(reference_type),
                GeneralLedgerEntryModel.reference_id.in_(ids),
                GeneralLedgerEntryModel.entry_type == EntryType.PAYABLE.value,
                GeneralLedgerEntryModel.project_id.is_not(None),
                GeneralLedgerEntryModel.credit_amount > ZERO,
            )
            .group_by(GeneralLedgerEntryModel.project_id)
        ).all()

        stmt = (
            delete(GeneralLedgerEntryModel)
            .where(
                GeneralLedgerEntryModel.reference_type == _ref_value(reference_type),
                GeneralLedgerEntryModel.reference_id.in_(ids),
            )
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.execute(stmt)
        deleted = result.rowcount or 0
        for project_id, credit in removed_cost:
            self._apply_project_cost(project_id, -to_decimal(credit))
        logger.info(
            "journal_rows_deleted",
            extra={
                "reference_type": _ref_value(reference_type),
                "reference_count": len(ids),
                "deleted": deleted,
            },
        )
        return deleted
