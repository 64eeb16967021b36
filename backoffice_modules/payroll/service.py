"""
Payroll Module Service (``backoffice_modules.payroll.service``).

Responsibility
--------------
Lifecycle of monthly payroll entries: generation for a period, manual
additions and deductions, recalculation of totals, payment, and clearing
a period.  Every change to an entry's earnings is mirrored in its paired
Salary Expense / Salary Payable ledger rows.

Architecture position
---------------------
**Modules layer** -- thin ERP glue.  Earnings come from
``PayrollComputer`` (which uses ``backoffice_engines.payroll``); ledger
rows are written only through the kernel ``LedgerJournal``.

Invariants enforced
-------------------
* Each public method owns the transaction boundary (``commit`` on
  success, ``rollback`` and re-raise on failure).
* One entry per employee per period: in-transaction check backed by the
  UNIQUE(employee_id, month, year) constraint.
* After every mutation ``total_amount == basic_salary + total_additions -
  total_deductions`` (each rounded to cents).
* ``total_additions`` sums manual additions only; ``project_fee`` rows
  mirror consultant earnings that are already in ``basic_salary``.
* A paid entry is final: any further mutation raises
  ``PayrollEntryPaidError``.

Failure modes
-------------
* ``InvalidPeriodError`` / ``DuplicatePeriodError`` from ``generate``.
* ``PayrollEntryNotFoundError`` / ``PayrollAdjustmentNotFoundError``.
* Database errors are recorded to the error-log sink and re-raised.

Usage::

    service = PayrollService(session, clock=clock)
    entries = service.generate(10, 2023, actor_id)
    service.record_addition(entries[0].id, "Bonus", Decimal("200"), actor_id)
    service.mark_paid(entries[0].id, actor_id)
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice_engines.calendar import month_name, validate_period
from backoffice_engines.payroll import net_total, tax_deduction
from backoffice_kernel.domain.clock import Clock, SystemClock
from backoffice_kernel.domain.gl_lines import GLStatus, PayrollGLLine, ReferenceType
from backoffice_kernel.domain.values import ZERO, round_money, to_decimal
from backoffice_kernel.exceptions import (
    DuplicatePeriodError,
    PayrollAdjustmentNotFoundError,
    PayrollEntryNotFoundError,
    PayrollEntryPaidError,
    ValidationError,
)
from backoffice_kernel.logging_config import LogContext, get_logger
from backoffice_kernel.services.error_log_service import ErrorLogSink
from backoffice_kernel.services.journal_service import LedgerJournal, ProjectCostSink
from backoffice_modules._posting_helpers import (
    owned_transaction,
    positive_amount,
    require_transition,
)
from backoffice_modules.payroll.computer import PayrollComputer
from backoffice_modules.payroll.config import PayrollConfig
from backoffice_modules.payroll.models import (
    AdditionKind,
    ClearPeriodResult,
    ComputedPayroll,
    DeductionKind,
    PayrollAddition,
    PayrollDeduction,
    PayrollEntry,
    PayrollEntryStatus,
)
from backoffice_modules.payroll.orm import (
    EmployeeModel,
    PayrollAdditionModel,
    PayrollDeductionModel,
    PayrollEntryModel,
)
from backoffice_modules.payroll.workflows import PAYROLL_ENTRY_WORKFLOW
from backoffice_modules.project.service import ProjectCostService

logger = get_logger("modules.payroll.service")

COMPONENT = "payroll"
ENTITY_TYPE = "payroll_entry"


def _is_period_conflict(exc: IntegrityError) -> bool:
    text = str(exc.orig)
    return "uq_payroll_entry_period" in text or "payroll_entries.employee_id" in text


class PayrollService:
    """
    Orchestrates the payroll entry lifecycle.

    Transaction boundary: this service commits on success and rolls back on
    failure.  ``LedgerJournal`` flushes inside the same transaction, so an
    entry and its ledger rows are written together or not at all.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: PayrollConfig | None = None,
        error_sink: ErrorLogSink | None = None,
        project_cost_sink: ProjectCostSink | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or PayrollConfig.with_defaults()
        self._error_sink = error_sink
        if project_cost_sink is None:
            project_cost_sink = ProjectCostService(
                session,
                error_sink=error_sink,
                consultant_divisor=self._config.consultant_divisor,
            )
        self._journal = LedgerJournal(
            session,
            project_cost_sink=project_cost_sink,
            tolerance=self._config.balance_tolerance,
        )
        self._computer = PayrollComputer(session, self._config)

    # =========================================================================
    # Generation
    # =========================================================================

    def generate(self, month: int, year: int, actor_id: UUID) -> list[PayrollEntry]:
        """
        Generate payroll entries for every eligible employee in the period.

        All entries, child rows and ledger rows are written in one
        transaction.  Not resumable: after a failure nothing is kept; after
        a success the period must be cleared before regenerating.
        """
        validate_period(month, year)
        period = f"{year}-{month:02d}"

        with LogContext.bind(period=period, actor_id=actor_id):
            logger.info("payroll_generation_started", extra={"period": period})
            with owned_transaction(
                self._session, "generate_payroll", COMPONENT, self._error_sink,
                {"period": period},
            ):
                self._ensure_period_free(month, year)
                computed = self._computer.compute(month, year)

                entries: list[PayrollEntryModel] = []
                try:
                    for index, item in enumerate(computed, start=1):
                        entries.append(self._create_entry(item, month, year, actor_id))
                        if index % self._config.flush_chunk_size == 0:
                            self._session.flush()
                    self._session.flush()
                except IntegrityError as exc:
                    if _is_period_conflict(exc):
                        logger.warning(
                            "payroll_period_conflict",
                            extra={"period": period},
                        )
                        raise DuplicatePeriodError(month, year) from exc
                    raise

                result = [entry.to_dto() for entry in entries]

            logger.info(
                "payroll_generation_completed",
                extra={
                    "period": period,
                    "entry_count": len(result),
                    "total_basic": str(sum((e.basic_salary for e in result), ZERO)),
                },
            )
            return result

    def _ensure_period_free(self, month: int, year: int) -> None:
        existing = self._session.scalar(
            select(func.count(PayrollEntryModel.id)).where(
                PayrollEntryModel.month == month,
                PayrollEntryModel.year == year,
            )
        )
        if existing:
            logger.warning(
                "payroll_period_already_generated",
                extra={"month": month, "year": year, "existing": existing},
            )
            raise DuplicatePeriodError(month, year)

    def _create_entry(
        self,
        item: ComputedPayroll,
        month: int,
        year: int,
        actor_id: UUID,
    ) -> PayrollEntryModel:
        require_transition(
            PAYROLL_ENTRY_WORKFLOW, ENTITY_TYPE, item.employee.id, "not_generated", "generate",
        )
        cfg = self._config
        basic = round_money(item.basic_salary)
        tax = tax_deduction(basic, ZERO, cfg.tax_rate)

        entry = PayrollEntryModel(
            id=uuid4(),
            employee_id=item.employee.id,
            month=month,
            year=year,
            working_days=item.working_days,
            basic_salary=basic,
            total_additions=ZERO,
            total_deductions=tax,
            total_amount=net_total(basic, ZERO, tax),
            status=PayrollEntryStatus.GENERATED.value,
            project_id=item.project_id,
            generated_at=self._clock.now(),
            created_by_id=actor_id,
        )
        self._session.add(entry)

        if item.is_pro_rata and basic > ZERO:
            entry.additions.append(
                PayrollAdditionModel(
                    description=cfg.project_fee_description,
                    amount=basic,
                    kind=AdditionKind.PROJECT_FEE.value,
                    created_by_id=actor_id,
                )
            )
        if tax > ZERO:
            entry.deductions.append(
                PayrollDeductionModel(
                    description=cfg.tax_description,
                    amount=tax,
                    note=cfg.tax_note,
                    kind=DeductionKind.TAX.value,
                    created_by_id=actor_id,
                )
            )

        if basic > ZERO:
            self._journal.post_balanced_journal(
                self._accrual_lines(entry, basic, item.employee.full_name, item.employee.id),
                actor_id,
            )
        else:
            logger.info(
                "payroll_zero_earnings",
                extra={"employee_id": str(item.employee.id)},
            )

        logger.debug(
            "payroll_entry_created",
            extra={
                "entry_id": str(entry.id),
                "employee_id": str(item.employee.id),
                "basic_salary": str(basic),
                "tax": str(tax),
            },
        )
        return entry

    # =========================================================================
    # Ledger lines
    # =========================================================================

    def _accrual_lines(
        self,
        entry: PayrollEntryModel,
        amount: Decimal,
        employee_name: str,
        employee_id: UUID,
    ) -> list[PayrollGLLine]:
        cfg = self._config
        description = f"Salary for {employee_name} - {month_name(entry.month)} {entry.year}"
        common = dict(
            payroll_entry_id=entry.id,
            description=description,
            transaction_date=date(entry.year, entry.month, 1),
            employee_id=employee_id,
            employee_name=employee_name,
            project_id=entry.project_id,
        )
        return [
            PayrollGLLine(account_name=cfg.salary_expense_account, debit_amount=amount, **common),
            PayrollGLLine(account_name=cfg.salary_payable_account, credit_amount=amount, **common),
        ]

    def _payment_lines(
        self,
        entry: PayrollEntryModel,
        amount: Decimal,
    ) -> list[PayrollGLLine]:
        cfg = self._config
        employee = entry.employee
        common = dict(
            payroll_entry_id=entry.id,
            description=(
                f"Salary payment for {employee.full_name} - "
                f"{month_name(entry.month)} {entry.year}"
            ),
            transaction_date=self._clock.today(),
            employee_id=employee.id,
            employee_name=employee.full_name,
            is_payment=True,
            status=GLStatus.PAID,
        )
        return [
            PayrollGLLine(account_name=cfg.salary_payable_account, debit_amount=amount, **common),
            PayrollGLLine(account_name=cfg.cash_account, credit_amount=amount, **common),
        ]

    # =========================================================================
    # Additions / deductions
    # =========================================================================

    def _load_entry(self, entry_id: UUID) -> PayrollEntryModel:
        entry = self._session.get(PayrollEntryModel, entry_id)
        if entry is None:
            raise PayrollEntryNotFoundError(entry_id)
        return entry

    def _load_adjustable(self, entry_id: UUID, action: str) -> PayrollEntryModel:
        entry = self._load_entry(entry_id)
        self._require_adjustable(entry, action)
        return entry

    def _require_adjustable(self, entry: PayrollEntryModel, action: str) -> None:
        if not PAYROLL_ENTRY_WORKFLOW.can(entry.status, "adjust"):
            logger.warning(
                "payroll_entry_locked",
                extra={"entry_id": str(entry.id), "status": entry.status, "action": action},
            )
            raise PayrollEntryPaidError(str(entry.id), action)

    @staticmethod
    def _clean_description(description: str) -> str:
        text = (description or "").strip()
        if not text:
            raise ValidationError("description is required")
        return text

    def record_addition(
        self,
        entry_id: UUID,
        description: str,
        amount: Decimal,
        actor_id: UUID,
        note: str | None = None,
    ) -> PayrollAddition:
        with LogContext.bind(entry_id=entry_id, actor_id=actor_id):
            with owned_transaction(
                self._session, "record_addition", COMPONENT, self._error_sink,
                {"entry_id": entry_id},
            ):
                entry = self._load_adjustable(entry_id, "record_addition")
                addition = PayrollAdditionModel(
                    description=self._clean_description(description),
                    amount=positive_amount("addition", amount),
                    note=note,
                    kind=AdditionKind.MANUAL.value,
                    created_by_id=actor_id,
                )
                entry.additions.append(addition)
                self._session.flush()
                self._recalculate(entry, actor_id)
                logger.info(
                    "payroll_addition_recorded",
                    extra={"addition_id": str(addition.id), "amount": str(addition.amount)},
                )
                return addition.to_dto()

    def record_deduction(
        self,
        entry_id: UUID,
        description: str,
        amount: Decimal,
        actor_id: UUID,
        note: str | None = None,
    ) -> PayrollDeduction:
        with LogContext.bind(entry_id=entry_id, actor_id=actor_id):
            with owned_transaction(
                self._session, "record_deduction", COMPONENT, self._error_sink,
                {"entry_id": entry_id},
            ):
                entry = self._load_adjustable(entry_id, "record_deduction")
                deduction = PayrollDeductionModel(
                    description=self._clean_description(description),
                    amount=positive_amount("deduction", amount),
                    note=note,
                    kind=DeductionKind.MANUAL.value,
                    created_by_id=actor_id,
                )
                entry.deductions.append(deduction)
                self._session.flush()
                self._recalculate(entry, actor_id)
                logger.info(
                    "payroll_deduction_recorded",
                    extra={"deduction_id": str(deduction.id), "amount": str(deduction.amount)},
                )
                return deduction.to_dto()

    def update_addition(
        self,
        addition_id: UUID,
        actor_id: UUID,
        description: str | None = None,
        amount: Decimal | None = None,
        note: str | None = None,
    ) -> PayrollAddition:
        with owned_transaction(
            self._session, "update_addition", COMPONENT, self._error_sink,
            {"addition_id": addition_id},
        ):
            addition = self._session.get(PayrollAdditionModel, addition_id)
            if addition is None:
                raise PayrollAdjustmentNotFoundError(addition_id)
            entry = addition.entry
            self._require_adjustable(entry, "update_addition")
            if description is not None:
                addition.description = self._clean_description(description)
            if amount is not None:
                addition.amount = positive_amount("addition", amount)
            if note is not None:
                addition.note = note
            addition.updated_by_id = actor_id
            self._session.flush()
            self._recalculate(entry, actor_id)
            return addition.to_dto()

    def update_deduction(
        self,
        deduction_id: UUID,
        actor_id: UUID,
        description: str | None = None,
        amount: Decimal | None = None,
        note: str | None = None,
    ) -> PayrollDeduction:
        with owned_transaction(
            self._session, "update_deduction", COMPONENT, self._error_sink,
            {"deduction_id": deduction_id},
        ):
            deduction = self._session.get(PayrollDeductionModel, deduction_id)
            if deduction is None:
                raise PayrollAdjustmentNotFoundError(deduction_id)
            entry = deduction.entry
            self._require_adjustable(entry, "update_deduction")
            if description is not None:
                deduction.description = self._clean_description(description)
            if amount is not None:
                deduction.amount = positive_amount("deduction", amount)
            if note is not None:
                deduction.note = note
            deduction.updated_by_id = actor_id
            self._session.flush()
            self._recalculate(entry, actor_id)
            return deduction.to_dto()

    def delete_addition(self, addition_id: UUID, actor_id: UUID) -> PayrollEntry:
        with owned_transaction(
            self._session, "delete_addition", COMPONENT, self._error_sink,
            {"addition_id": addition_id},
        ):
            addition = self._session.get(PayrollAdditionModel, addition_id)
            if addition is None:
                raise PayrollAdjustmentNotFoundError(addition_id)
            entry = addition.entry
            self._require_adjustable(entry, "delete_addition")
            entry.additions.remove(addition)
            self._session.flush()
            return self._recalculate(entry, actor_id).to_dto()

    def delete_deduction(self, deduction_id: UUID, actor_id: UUID) -> PayrollEntry:
        with owned_transaction(
            self._session, "delete_deduction", COMPONENT, self._error_sink,
            {"deduction_id": deduction_id},
        ):
            deduction = self._session.get(PayrollDeductionModel, deduction_id)
            if deduction is None:
                raise PayrollAdjustmentNotFoundError(deduction_id)
            entry = deduction.entry
            self._require_adjustable(entry, "delete_deduction")
            entry.deductions.remove(deduction)
            self._session.flush()
            return self._recalculate(entry, actor_id).to_dto()

    # =========================================================================
    # Totals
    # =========================================================================

    def recalculate_totals(self, entry_id: UUID, actor_id: UUID) -> PayrollEntry:
        """Recompute totals from child rows and resync the accrual ledger rows."""
        with owned_transaction(
            self._session, "recalculate_totals", COMPONENT, self._error_sink,
            {"entry_id": entry_id},
        ):
            entry = self._load_adjustable(entry_id, "recalculate_totals")
            return self._recalculate(entry, actor_id).to_dto()

    def _recalculate(self, entry: PayrollEntryModel, actor_id: UUID) -> PayrollEntryModel:
        additions = sum(
            (to_decimal(a.amount) for a in entry.additions if a.kind == AdditionKind.MANUAL.value),
            ZERO,
        )
        deductions = sum((to_decimal(d.amount) for d in entry.deductions), ZERO)

        entry.total_additions = round_money(additions)
        entry.total_deductions = round_money(deductions)
        entry.total_amount = net_total(entry.basic_salary, entry.total_additions, entry.total_deductions)
        entry.updated_by_id = actor_id
        self._session.flush()

        earnings = round_money(to_decimal(entry.basic_salary) + entry.total_additions)
        existing = self._journal.entries_for_reference(ReferenceType.MANUAL, entry.id)
        if earnings > ZERO and existing:
            self._journal.resync_entries_for_reference(
                ReferenceType.MANUAL, entry.id, earnings, earnings, actor_id,
            )
        elif earnings > ZERO:
            employee = entry.employee
            self._journal.post_balanced_journal(
                self._accrual_lines(entry, earnings, employee.full_name, employee.id),
                actor_id,
            )
        elif existing:
            self._journal.delete_entries_for_references(ReferenceType.MANUAL, [entry.id])

        logger.info(
            "payroll_totals_recalculated",
            extra={
                "entry_id": str(entry.id),
                "basic_salary": str(entry.basic_salary),
                "total_additions": str(entry.total_additions),
                "total_deductions": str(entry.total_deductions),
                "total_amount": str(entry.total_amount),
            },
        )
        return entry

    # =========================================================================
    # Payment
    # =========================================================================

    def mark_paid(self, entry_id: UUID, actor_id: UUID) -> PayrollEntry:
        """
        Generated -> Paid.  Posts Salary Payable / Cash for ``total_amount``.

        Paying an already paid entry is a no-op.  A non-positive total
        changes the status without posting.
        """
        with LogContext.bind(entry_id=entry_id, actor_id=actor_id):
            with owned_transaction(
                self._session, "mark_paid", COMPONENT, self._error_sink,
                {"entry_id": entry_id},
            ):
                entry = self._load_entry(entry_id)
                if entry.status == PayrollEntryStatus.PAID.value:
                    logger.info("payroll_entry_already_paid", extra={"entry_id": str(entry_id)})
                    return entry.to_dto()

                require_transition(
                    PAYROLL_ENTRY_WORKFLOW, ENTITY_TYPE, entry.id, entry.status, "pay",
                )
                entry.status = PayrollEntryStatus.PAID.value
                entry.paid_at = self._clock.now()
                entry.updated_by_id = actor_id
                self._session.flush()

                total = round_money(entry.total_amount)
                if total > ZERO:
                    self._journal.post_balanced_journal(self._payment_lines(entry, total), actor_id)
                    self._journal.set_status_for_reference(
                        ReferenceType.MANUAL, entry.id, GLStatus.PAID, actor_id,
                    )
                else:
                    logger.info(
                        "payroll_paid_without_posting",
                        extra={"entry_id": str(entry_id), "total_amount": str(total)},
                    )

                logger.info(
                    "payroll_entry_paid",
                    extra={"entry_id": str(entry_id), "total_amount": str(total)},
                )
                return entry.to_dto()

    # =========================================================================
    # Clearing
    # =========================================================================

    def clear_period(self, month: int, year: int) -> ClearPeriodResult:
        """Delete every entry of the period with its child rows and ledger rows."""
        validate_period(month, year)
        period = f"{year}-{month:02d}"
        with LogContext.bind(period=period):
            with owned_transaction(
                self._session, "clear_period", COMPONENT, self._error_sink,
                {"period": period},
            ):
                entries = self._session.scalars(
                    select(PayrollEntryModel).where(
                        PayrollEntryModel.month == month,
                        PayrollEntryModel.year == year,
                    )
                ).all()
                ids = [entry.id for entry in entries]

                gl_deleted = self._journal.delete_entries_for_references(ReferenceType.MANUAL, ids)
                gl_deleted += self._journal.delete_entries_for_references(
                    ReferenceType.PAYROLL_PAYMENT, ids,
                )
                for entry in entries:
                    self._session.delete(entry)
                self._session.flush()

                result = ClearPeriodResult(
                    deleted_payroll_entries=len(entries),
                    deleted_general_ledger_entries=gl_deleted,
                )

            logger.info(
                "payroll_period_cleared",
                extra={
                    "period": period,
                    "deleted_payroll_entries": result.deleted_payroll_entries,
                    "deleted_general_ledger_entries": result.deleted_general_ledger_entries,
                },
            )
            return result

    # =========================================================================
    # Queries
    # =========================================================================

    def get_entries(self, month: int, year: int) -> list[PayrollEntry]:
        validate_period(month, year)
        rows = self._session.scalars(
            select(PayrollEntryModel)
            .join(EmployeeModel, PayrollEntryModel.employee_id == EmployeeModel.id)
            .where(PayrollEntryModel.month == month, PayrollEntryModel.year == year)
            .order_by(EmployeeModel.employee_code)
        ).all()
        return [row.to_dto() for row in rows]

    def get_entry(self, entry_id: UUID) -> PayrollEntry:
        return self._load_entry(entry_id).to_dto()

    def get_additions(self, entry_id: UUID) -> list[PayrollAddition]:
        return [a.to_dto() for a in self._load_entry(entry_id).additions]

    def get_deductions(self, entry_id: UUID) -> list[PayrollDeduction]:
        return [d.to_dto() for d in self._load_entry(entry_id).deductions]
