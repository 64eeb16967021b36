"""
Accounts Receivable Reconciliation Service (``backoffice_modules.ar.service``).

Responsibility
--------------
Keeps sales invoices, the payments applied to them and the credit notes
issued against them consistent with each other and with the general
ledger.  An invoice's ``paid_amount`` and ``status`` are always derived
from its payment rows, never set by hand.

Architecture position
---------------------
**Modules layer** -- thin ERP glue.  Ledger rows are written only through
the kernel ``LedgerJournal``.

Invariants enforced
-------------------
* Each public method owns the transaction boundary.
* Every payment posts Debit Cash/Bank / Credit Accounts Receivable.
* Every issued credit note posts Debit Sales Returns / Credit Accounts
  Receivable exactly once; re-issuing is a no-op.
* ``paid_amount == sum(payment rows)`` after every mutation.

Usage::

    service = ReconciliationService(session, clock=clock)
    service.record_payment(invoice_id, Decimal("500.00"), date(2024, 3, 1), actor_id)
    service.issue_credit_note(credit_note_id, actor_id)
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backoffice_kernel.domain.clock import Clock, SystemClock
from backoffice_kernel.domain.gl_lines import CreditNoteGLLine, PaymentGLLine
from backoffice_kernel.domain.values import ZERO, round_money
from backoffice_kernel.exceptions import (
    CreditNoteNotFoundError,
    InvalidAmountError,
    InvoiceNotFoundError,
)
from backoffice_kernel.logging_config import LogContext, get_logger
from backoffice_kernel.services.error_log_service import ErrorLogSink
from backoffice_kernel.services.journal_service import LedgerJournal
from backoffice_modules._posting_helpers import (
    owned_transaction,
    positive_amount,
    require_transition,
)
from backoffice_modules.ar.config import ARConfig
from backoffice_modules.ar.models import (
    CreditNote,
    CreditNoteStatus,
    InvoicePayment,
    InvoiceStatus,
    PaymentType,
    SalesInvoice,
)
from backoffice_modules.ar.orm import CreditNoteModel, InvoicePaymentModel, SalesInvoiceModel
from backoffice_modules.ar.workflows import CREDIT_NOTE_WORKFLOW

logger = get_logger("modules.ar.service")

COMPONENT = "ar"


def derive_invoice_status(
    total: Decimal,
    paid: Decimal,
    due_date: date | None,
    as_of: date,
) -> InvoiceStatus:
    """
    Status of an invoice from its amounts alone.

    ``paid`` once fully settled, ``overdue`` when past due and not settled,
    ``partially_paid`` when something but not everything has been paid,
    otherwise ``unpaid``.
    """
    total = round_money(total)
    paid = round_money(paid)
    if paid >= total:
        return InvoiceStatus.PAID
    if due_date is not None and as_of > due_date:
        return InvoiceStatus.OVERDUE
    if paid > ZERO:
        return InvoiceStatus.PARTIALLY_PAID
    return InvoiceStatus.UNPAID


class ReconciliationService:
    """
    Links payments and credit notes to sales invoices and the ledger.

    Transaction boundary: this service commits on success and rolls back on
    failure.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ARConfig | None = None,
        error_sink: ErrorLogSink | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ARConfig.with_defaults()
        self._error_sink = error_sink
        self._journal = LedgerJournal(session, tolerance=self._config.balance_tolerance)

    # =========================================================================
    # Loading
    # =========================================================================

    def _load_invoice(self, invoice_id: UUID) -> SalesInvoiceModel:
        invoice = self._session.get(SalesInvoiceModel, invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    def _load_credit_note(self, credit_note_id: UUID) -> CreditNoteModel:
        note = self._session.get(CreditNoteModel, credit_note_id)
        if note is None:
            raise CreditNoteNotFoundError(credit_note_id)
        return note

    # =========================================================================
    # Payments
    # =========================================================================

    def record_payment(
        self,
        invoice_id: UUID,
        amount: Decimal,
        payment_date: date,
        actor_id: UUID,
        method: str | None = None,
        reference_number: str | None = None,
    ) -> InvoicePayment:
        """Apply a customer payment to an invoice and post it to the ledger."""
        with LogContext.bind(reference_id=invoice_id, actor_id=actor_id):
            with owned_transaction(
                self._session, "record_payment", COMPONENT, self._error_sink,
                {"invoice_id": invoice_id},
            ):
                invoice = self._load_invoice(invoice_id)
                value = positive_amount("payment", amount)

                payment = InvoicePaymentModel(
                    amount=value,
                    payment_date=payment_date,
                    payment_method=method or self._config.default_payment_method,
                    reference_number=reference_number,
                    payment_type=PaymentType.PAYMENT.value,
                    created_by_id=actor_id,
                )
                invoice.payments.append(payment)
                self._session.flush()

                self._journal.post_balanced_journal(
                    self._payment_lines(invoice, payment), actor_id,
                )
                self._recompute(invoice, self._clock.today(), actor_id)

                logger.info(
                    "invoice_payment_recorded",
                    extra={
                        "invoice_number": invoice.invoice_number,
                        "payment_id": str(payment.id),
                        "amount": str(value),
                        "invoice_status": invoice.status,
                    },
                )
                return payment.to_dto()

    def _payment_lines(
        self,
        invoice: SalesInvoiceModel,
        payment: InvoicePaymentModel,
    ) -> list[PaymentGLLine]:
        cfg = self._config
        common = dict(
            payment_id=payment.id,
            description=f"Payment received for invoice {invoice.invoice_number}",
            transaction_date=payment.payment_date,
            customer_id=invoice.customer_id,
            customer_name=invoice.customer_name,
            invoice_number=invoice.invoice_number,
        )
        return [
            PaymentGLLine(account_name=cfg.cash_account, debit_amount=payment.amount, **common),
            PaymentGLLine(
                account_name=cfg.receivable_account, credit_amount=payment.amount, **common,
            ),
        ]

    # =========================================================================
    # Credit notes
    # =========================================================================

    def issue_credit_note(self, credit_note_id: UUID, actor_id: UUID) -> CreditNote:
        """
        Draft -> Issued.

        Applies the note to its invoice as a ``credit_note`` payment row and
        posts Sales Returns / Accounts Receivable.  Issuing an already
        issued note returns it unchanged.
        """
        with LogContext.bind(reference_id=credit_note_id, actor_id=actor_id):
            with owned_transaction(
                self._session, "issue_credit_note", COMPONENT, self._error_sink,
                {"credit_note_id": credit_note_id},
            ):
                note = self._load_credit_note(credit_note_id)
                if note.status == CreditNoteStatus.ISSUED.value:
                    logger.info(
                        "credit_note_already_issued",
                        extra={"credit_note_number": note.credit_note_number},
                    )
                    return note.to_dto()

                require_transition(
                    CREDIT_NOTE_WORKFLOW, "credit_note", note.id, note.status, "issue",
                )
                total = round_money(note.total_amount)
                if total <= ZERO:
                    raise InvalidAmountError("credit_note", total)

                invoice = None
                if note.sales_invoice_id is not None:
                    invoice = self._load_invoice(note.sales_invoice_id)
                    invoice.payments.append(
                        InvoicePaymentModel(
                            amount=total,
                            payment_date=note.credit_note_date,
                            payment_method=PaymentType.CREDIT_NOTE.value,
                            reference_number=note.credit_note_number,
                            payment_type=PaymentType.CREDIT_NOTE.value,
                            credit_note_id=note.id,
                            created_by_id=actor_id,
                        )
                    )

                note.status = CreditNoteStatus.ISSUED.value
                note.updated_by_id = actor_id
                self._session.flush()

                self._journal.post_balanced_journal(
                    self._credit_note_lines(note, invoice, total), actor_id,
                )
                if invoice is not None:
                    self._recompute(invoice, self._clock.today(), actor_id)

                logger.info(
                    "credit_note_issued",
                    extra={
                        "credit_note_number": note.credit_note_number,
                        "amount": str(total),
                        "invoice_number": invoice.invoice_number if invoice else None,
                    },
                )
                return note.to_dto()

    def _credit_note_lines(
        self,
        note: CreditNoteModel,
        invoice: SalesInvoiceModel | None,
        amount: Decimal,
    ) -> list[CreditNoteGLLine]:
        cfg = self._config
        invoice_number = invoice.invoice_number if invoice is not None else None
        description = f"Credit note {note.credit_note_number}"
        if invoice_number:
            description += f" against invoice {invoice_number}"
        common = dict(
            credit_note_id=note.id,
            description=description,
            transaction_date=note.credit_note_date,
            customer_id=note.customer_id,
            customer_name=invoice.customer_name if invoice is not None else None,
            invoice_number=invoice_number,
            notes=note.reason,
        )
        return [
            CreditNoteGLLine(account_name=cfg.sales_returns_account, debit_amount=amount, **common),
            CreditNoteGLLine(account_name=cfg.receivable_account, credit_amount=amount, **common),
        ]

    def cancel_credit_note(self, credit_note_id: UUID, actor_id: UUID) -> CreditNote:
        """Draft -> Cancelled.  Issued notes have been posted and cannot be cancelled."""
        with owned_transaction(
            self._session, "cancel_credit_note", COMPONENT, self._error_sink,
            {"credit_note_id": credit_note_id},
        ):
            note = self._load_credit_note(credit_note_id)
            require_transition(
                CREDIT_NOTE_WORKFLOW, "credit_note", note.id, note.status, "cancel",
            )
            note.status = CreditNoteStatus.CANCELLED.value
            note.updated_by_id = actor_id
            self._session.flush()
            logger.info(
                "credit_note_cancelled",
                extra={"credit_note_number": note.credit_note_number},
            )
            return note.to_dto()

    # =========================================================================
    # Invoice status
    # =========================================================================

    def recompute_invoice(
        self,
        invoice_id: UUID,
        as_of: date | None = None,
        actor_id: UUID | None = None,
    ) -> SalesInvoice:
        """Re-derive ``paid_amount`` and ``status``, e.g. to roll invoices to overdue."""
        with owned_transaction(
            self._session, "recompute_invoice", COMPONENT, self._error_sink,
            {"invoice_id": invoice_id},
        ):
            invoice = self._load_invoice(invoice_id)
            self._recompute(invoice, as_of or self._clock.today(), actor_id)
            return invoice.to_dto()

    def _recompute(
        self,
        invoice: SalesInvoiceModel,
        as_of: date,
        actor_id: UUID | None,
    ) -> None:
        paid = self._session.scalar(
            select(func.coalesce(func.sum(InvoicePaymentModel.amount), 0)).where(
                InvoicePaymentModel.invoice_id == invoice.id,
            )
        )
        paid = round_money(paid)
        has_activity = paid > ZERO

        previous = invoice.status
        invoice.paid_amount = paid
        if invoice.status != InvoiceStatus.DRAFT.value or has_activity:
            invoice.status = derive_invoice_status(
                invoice.total_amount, paid, invoice.due_date, as_of,
            ).value
        if actor_id is not None:
            invoice.updated_by_id = actor_id
        self._session.flush()

        if paid > round_money(invoice.total_amount):
            logger.warning(
                "invoice_overpaid",
                extra={
                    "invoice_number": invoice.invoice_number,
                    "total_amount": str(invoice.total_amount),
                    "paid_amount": str(paid),
                },
            )
        if previous != invoice.status:
            logger.info(
                "invoice_status_changed",
                extra={
                    "invoice_number": invoice.invoice_number,
                    "from_status": previous,
                    "to_status": invoice.status,
                },
            )

    # =========================================================================
    # Queries
    # =========================================================================

    def get_invoice(self, invoice_id: UUID) -> SalesInvoice:
        return self._load_invoice(invoice_id).to_dto()

    def get_payments(self, invoice_id: UUID) -> list[InvoicePayment]:
        rows = self._session.scalars(
            select(InvoicePaymentModel)
            .where(InvoicePaymentModel.invoice_id == invoice_id)
            .order_by(InvoicePaymentModel.payment_date, InvoicePaymentModel.created_at)
        ).all()
        return [row.to_dto() for row in rows]

    def get_credit_note(self, credit_note_id: UUID) -> CreditNote:
        return self._load_credit_note(credit_note_id).to_dto()
