"""
Tests for ReconciliationService.

Covers:
- Invoice status derivation (paid / overdue / partially paid / unpaid)
- Customer payments: payment rows, ledger postings, status updates
- Credit notes: issue once, cancel from draft only, ledger postings
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from backoffice_kernel.domain.gl_lines import ReferenceType
from backoffice_kernel.exceptions import (
    CreditNoteNotFoundError,
    InvalidAmountError,
    InvalidTransitionError,
    InvoiceNotFoundError,
)
from backoffice_kernel.selectors.ledger_selector import LedgerSelector
from backoffice_modules.ar import (
    ARConfig,
    CreditNoteStatus,
    InvoiceStatus,
    PaymentType,
    ReconciliationService,
    derive_invoice_status,
)
from tests.conftest import TEST_ACTOR_ID

NOT_YET_DUE = date(2023, 11, 30)


@pytest.fixture
def ar_service(session, deterministic_clock, error_sink):
    return ReconciliationService(session, clock=deterministic_clock, error_sink=error_sink)


@pytest.fixture
def ledger(session):
    return LedgerSelector(session)


class TestDeriveInvoiceStatus:
    AS_OF = date(2023, 11, 5)

    @pytest.mark.parametrize(
        "paid,due,expected",
        [
            ("1000.00", date(2023, 10, 31), InvoiceStatus.PAID),
            ("1200.00", date(2023, 11, 30), InvoiceStatus.PAID),
            ("400.00", date(2023, 10, 31), InvoiceStatus.OVERDUE),
            ("0", date(2023, 10, 31), InvoiceStatus.OVERDUE),
            ("400.00", date(2023, 11, 30), InvoiceStatus.PARTIALLY_PAID),
            ("0", date(2023, 11, 30), InvoiceStatus.UNPAID),
            ("0", date(2023, 11, 5), InvoiceStatus.UNPAID),
            ("0", None, InvoiceStatus.UNPAID),
        ],
    )
    def test_status(self, paid, due, expected):
        assert derive_invoice_status(Decimal("1000.00"), Decimal(paid), due, self.AS_OF) == expected

    def test_half_cent_short_rounds_to_paid(self):
        assert derive_invoice_status(
            Decimal("1000.00"), Decimal("999.995"), None, self.AS_OF,
        ) == InvoiceStatus.PAID


class TestRecordPayment:
    def test_partial_payment(self, ar_service, ledger, create_invoice):
        invoice = create_invoice(total_amount=Decimal("1000.00"), due_date=NOT_YET_DUE)

        payment = ar_service.record_payment(
            invoice.id, Decimal("400"), date(2023, 11, 1), TEST_ACTOR_ID, reference_number="TRX-881",
        )

        assert payment.amount == Decimal("400.00")
        assert payment.payment_type == PaymentType.PAYMENT
        assert payment.payment_method == "bank_transfer"
        assert payment.reference_number == "TRX-881"

        refreshed = ar_service.get_invoice(invoice.id)
        assert refreshed.paid_amount == Decimal("400.00")
        assert refreshed.balance_due == Decimal("600.00")
        assert refreshed.status == InvoiceStatus.PARTIALLY_PAID

        rows = ledger.entries_for_reference(ReferenceType.PAYMENT, payment.id)
        assert [(r.account_name, r.debit_amount, r.credit_amount) for r in rows] == [
            ("Cash/Bank", Decimal("400.00"), Decimal("0")),
            ("Accounts Receivable", Decimal("0"), Decimal("400.00")),
        ]
        assert rows[0].description == f"Payment received for invoice {invoice.invoice_number}"
        assert rows[0].invoice_number == invoice.invoice_number
        assert rows[0].entity_name == "Gulf Marine LLC"
        assert rows[0].transaction_date == date(2023, 11, 1)
        assert rows[0].status == "posted"

    def test_settling_payments_mark_paid(self, ar_service, create_invoice):
        invoice = create_invoice(total_amount=Decimal("1000.00"), due_date=NOT_YET_DUE)

        ar_service.record_payment(invoice.id, Decimal("600"), date(2023, 11, 1), TEST_ACTOR_ID)
        ar_service.record_payment(invoice.id, Decimal("400"), date(2023, 11, 2), TEST_ACTOR_ID, method="cheque")

        refreshed = ar_service.get_invoice(invoice.id)
        assert refreshed.status == InvoiceStatus.PAID
        assert refreshed.paid_amount == Decimal("1000.00")
        assert [p.payment_method for p in ar_service.get_payments(invoice.id)] == ["bank_transfer", "cheque"]

    def test_past_due_partial_payment_is_overdue(self, ar_service, create_invoice):
        invoice = create_invoice(total_amount=Decimal("1000.00"), due_date=date(2023, 10, 31))

        ar_service.record_payment(invoice.id, Decimal("100"), date(2023, 11, 1), TEST_ACTOR_ID)

        assert ar_service.get_invoice(invoice.id).status == InvoiceStatus.OVERDUE

    def test_overpayment_allowed_and_logged(self, ar_service, create_invoice, captured_logs):
        invoice = create_invoice(total_amount=Decimal("1000.00"), due_date=NOT_YET_DUE)

        ar_service.record_payment(invoice.id, Decimal("1100"), date(2023, 11, 1), TEST_ACTOR_ID)

        refreshed = ar_service.get_invoice(invoice.id)
        assert refreshed.status == InvoiceStatus.PAID
        assert refreshed.balance_due == Decimal("0")
        assert any(r["message"] == "invoice_overpaid" for r in captured_logs())

    def test_payment_moves_draft_invoice(self, ar_service, create_invoice):
        invoice = create_invoice(status="draft", due_date=NOT_YET_DUE)

        ar_service.record_payment(invoice.id, Decimal("50"), date(2023, 11, 1), TEST_ACTOR_ID)

        assert ar_service.get_invoice(invoice.id).status == InvoiceStatus.PARTIALLY_PAID

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
    def test_non_positive_amount_rejected(self, session, ar_service, ledger, create_invoice, amount):
        invoice = create_invoice()
        session.commit()

        with pytest.raises(InvalidAmountError):
            ar_service.record_payment(invoice.id, amount, date(2023, 11, 1), TEST_ACTOR_ID)

        assert ar_service.get_payments(invoice.id) == []
        assert ledger.count() == 0

    @pytest.mark.parametrize("amount", ["abc", "NaN", Decimal("Infinity")])
    def test_malformed_amount_rejected(self, session, ar_service, ledger, create_invoice, amount):
        invoice = create_invoice()
        session.commit()

        with pytest.raises(InvalidAmountError) as exc_info:
            ar_service.record_payment(invoice.id, amount, date(2023, 11, 1), TEST_ACTOR_ID)

        assert exc_info.value.field == "payment"
        assert ar_service.get_payments(invoice.id) == []
        assert ledger.count() == 0

    def test_unknown_invoice(self, ar_service):
        with pytest.raises(InvoiceNotFoundError):
            ar_service.record_payment(uuid4(), Decimal("10"), date(2023, 11, 1), TEST_ACTOR_ID)


class TestRecomputeInvoice:
    def test_rolls_unpaid_invoice_to_overdue(self, ar_service, create_invoice):
        invoice = create_invoice(due_date=date(2023, 10, 31))

        result = ar_service.recompute_invoice(invoice.id, as_of=date(2023, 11, 1), actor_id=TEST_ACTOR_ID)

        assert result.status == InvoiceStatus.OVERDUE
        assert result.paid_amount == Decimal("0.00")

    def test_defaults_to_clock_date(self, ar_service, create_invoice):
        invoice = create_invoice(due_date=date(2023, 11, 10))

        assert ar_service.recompute_invoice(invoice.id).status == InvoiceStatus.UNPAID

    def test_draft_without_payments_stays_draft(self, ar_service, create_invoice):
        invoice = create_invoice(status="draft", due_date=date(2023, 10, 31))

        assert ar_service.recompute_invoice(invoice.id).status == InvoiceStatus.DRAFT

    def test_logs_status_change(self, ar_service, create_invoice, captured_logs):
        invoice = create_invoice(due_date=date(2023, 10, 31))

        ar_service.recompute_invoice(invoice.id)

        changes = [r for r in captured_logs() if r["message"] == "invoice_status_changed"]
        assert changes[0]["from_status"] == "unpaid"
        assert changes[0]["to_status"] == "overdue"


class TestCreditNotes:
    def test_issue_applies_to_invoice_and_posts(self, ar_service, ledger, create_invoice, create_credit_note):
        invoice = create_invoice(total_amount=Decimal("1000.00"), due_date=NOT_YET_DUE)
        note = create_credit_note(invoice, total_amount=Decimal("200.00"))

        issued = ar_service.issue_credit_note(note.id, TEST_ACTOR_ID)

        assert issued.status == CreditNoteStatus.ISSUED
        refreshed = ar_service.get_invoice(invoice.id)
        assert refreshed.paid_amount == Decimal("200.00")
        assert refreshed.status == InvoiceStatus.PARTIALLY_PAID

        payments = ar_service.get_payments(invoice.id)
        assert len(payments) == 1
        assert payments[0].payment_type == PaymentType.CREDIT_NOTE
        assert payments[0].credit_note_id == note.id
        assert payments[0].reference_number == note.credit_note_number
        assert payments[0].payment_date == date(2023, 10, 15)

        rows = ledger.entries_for_reference(ReferenceType.CREDIT_NOTE, note.id)
        assert [(r.account_name, r.debit_amount, r.credit_amount) for r in rows] == [
            ("Sales Returns", Decimal("200.00"), Decimal("0")),
            ("Accounts Receivable", Decimal("0"), Decimal("200.00")),
        ]
        assert rows[0].description == (
            f"Credit note {note.credit_note_number} against invoice {invoice.invoice_number}"
        )

    def test_reissue_is_a_no_op(self, ar_service, ledger, create_invoice, create_credit_note):
        invoice = create_invoice(due_date=NOT_YET_DUE)
        note = create_credit_note(invoice)
        ar_service.issue_credit_note(note.id, TEST_ACTOR_ID)
        count = ledger.count()

        again = ar_service.issue_credit_note(note.id, TEST_ACTOR_ID)

        assert again.status == CreditNoteStatus.ISSUED
        assert ledger.count() == count
        assert len(ar_service.get_payments(invoice.id)) == 1

    def test_credit_note_settles_remaining_balance(
        self, ar_service, create_invoice, create_credit_note,
    ):
        invoice = create_invoice(total_amount=Decimal("1000.00"), due_date=NOT_YET_DUE)
        ar_service.record_payment(invoice.id, Decimal("800"), date(2023, 11, 1), TEST_ACTOR_ID)

        ar_service.issue_credit_note(create_credit_note(invoice).id, TEST_ACTOR_ID)

        assert ar_service.get_invoice(invoice.id).status == InvoiceStatus.PAID

    def test_note_without_invoice_still_posts(self, ar_service, ledger, create_credit_note):
        note = create_credit_note(None, total_amount=Decimal("75.00"))

        ar_service.issue_credit_note(note.id, TEST_ACTOR_ID)

        rows = ledger.entries_for_reference(ReferenceType.CREDIT_NOTE, note.id)
        assert len(rows) == 2
        assert rows[0].description == f"Credit note {note.credit_note_number}"
        assert rows[0].invoice_number is None

    def test_zero_amount_note_rejected(self, session, ar_service, ledger, create_invoice, create_credit_note):
        note = create_credit_note(create_invoice(), total_amount=Decimal("0"))
        session.commit()

        with pytest.raises(InvalidAmountError):
            ar_service.issue_credit_note(note.id, TEST_ACTOR_ID)

        assert ar_service.get_credit_note(note.id).status == CreditNoteStatus.DRAFT
        assert ledger.count() == 0

    def test_cancel_draft(self, ar_service, ledger, create_invoice, create_credit_note):
        note = create_credit_note(create_invoice())

        cancelled = ar_service.cancel_credit_note(note.id, TEST_ACTOR_ID)

        assert cancelled.status == CreditNoteStatus.CANCELLED
        assert ledger.count() == 0

    def test_cancelled_note_cannot_be_issued(self, ar_service, create_invoice, create_credit_note):
        note = create_credit_note(create_invoice())
        ar_service.cancel_credit_note(note.id, TEST_ACTOR_ID)

        with pytest.raises(InvalidTransitionError):
            ar_service.issue_credit_note(note.id, TEST_ACTOR_ID)

    def test_issued_note_cannot_be_cancelled(self, ar_service, create_invoice, create_credit_note):
        note = create_credit_note(create_invoice(due_date=NOT_YET_DUE))
        ar_service.issue_credit_note(note.id, TEST_ACTOR_ID)

        with pytest.raises(InvalidTransitionError) as exc_info:
            ar_service.cancel_credit_note(note.id, TEST_ACTOR_ID)
        assert exc_info.value.current_state == "issued"

    def test_unknown_credit_note(self, ar_service):
        with pytest.raises(CreditNoteNotFoundError):
            ar_service.issue_credit_note(uuid4(), TEST_ACTOR_ID)


class TestConfiguredAccounts:
    def test_custom_account_names(self, session, deterministic_clock, ledger, create_invoice):
        service = ReconciliationService(
            session,
            clock=deterministic_clock,
            config=ARConfig(cash_account="Bank - Operating", receivable_account="Trade Debtors"),
        )
        invoice = create_invoice(due_date=NOT_YET_DUE)

        payment = service.record_payment(invoice.id, Decimal("10"), date(2023, 11, 1), TEST_ACTOR_ID)

        rows = ledger.entries_for_reference(ReferenceType.PAYMENT, payment.id)
        assert [r.account_name for r in rows] == ["Bank - Operating", "Trade Debtors"]

    def test_blank_account_rejected(self):
        with pytest.raises(ValueError):
            ARConfig(receivable_account=" ")
