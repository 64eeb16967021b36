"""
Pytest fixtures for the backoffice test suite.

Provides:
- A session-scoped SQLite in-memory engine with the full schema
- Per-test sessions rolled back at teardown (join-transaction pattern)
- Deterministic clock and actor id
- Structured logging capture
- Opt-in factory fixtures for employees, projects, assets, invoices and
  credit notes

Environment Variables:
- DATABASE_URL: optional SQLAlchemy URL.  Defaults to in-memory SQLite.
"""

import json
import logging
import os
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from backoffice_kernel.db.engine import drop_tables, init_engine_from_url, reset_engine
from backoffice_kernel.domain.clock import DeterministicClock
from backoffice_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from backoffice_modules._orm_registry import create_all_tables
from backoffice_modules.ar.orm import CreditNoteModel, SalesInvoiceModel
from backoffice_modules.payroll.orm import EmployeeModel
from backoffice_modules.project.orm import (
    AssetModel,
    InventoryItemModel,
    ProjectConsumableModel,
    ProjectEmployeeModel,
    ProjectModel,
)

# Test actor ID for all test operations
TEST_ACTOR_ID = UUID("00000000-0000-4000-a000-0000000000ff")

DEFAULT_TEST_URL = "sqlite://"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture backoffice logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, payroll_service):
            payroll_service.generate(10, 2023, TEST_ACTOR_ID)
            logs = captured_logs()
            assert any(r["message"] == "payroll_generation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("backoffice")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture(scope="session")
def db_engine():
    engine = init_engine_from_url(os.environ.get("DATABASE_URL", DEFAULT_TEST_URL))
    yield engine
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    create_all_tables()
    yield
    drop_tables()


@pytest.fixture(scope="function")
def session(db_tables, db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    Uses the SQLAlchemy 2.0 ``join_transaction_mode`` pattern:
    - Opens a dedicated connection with an outer transaction
    - Creates a session that *joins* the outer transaction
    - Any ``session.commit()`` inside the test releases a savepoint; it
      does NOT actually commit to the database
    - At teardown the outer transaction is rolled back, undoing ALL data
      changes made during the test
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


@pytest.fixture
def test_actor_id() -> UUID:
    return TEST_ACTOR_ID


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(datetime(2023, 11, 5, 9, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Error sink
# =============================================================================


class RecordingErrorSink:
    """Collects ``record`` calls in memory instead of writing ``error_logs``.

    The real sink opens its own session, which on a single-connection SQLite
    engine would commit the test's outer transaction.
    """

    def __init__(self):
        self.records: list[dict] = []

    def record(self, message, component, exc=None, severity="error", context=None):
        self.records.append(
            {
                "message": message,
                "component": component,
                "exc": exc,
                "severity": severity,
                "context": context or {},
            }
        )
        return uuid4()


@pytest.fixture
def error_sink():
    return RecordingErrorSink()


# =============================================================================
# Factory fixtures
# =============================================================================


@pytest.fixture
def create_employee(session: Session):
    """Factory fixture to create employees."""
    counter = {"n": 0}

    def _create(
        category: str | None = "permanent",
        salary: Decimal | None = Decimal("5000.00"),
        first_name: str = "Test",
        last_name: str | None = None,
        employee_code: str | None = None,
        is_active: bool = True,
    ) -> EmployeeModel:
        counter["n"] += 1
        employee = EmployeeModel(
            employee_code=employee_code or f"EMP-{counter['n']:04d}",
            first_name=first_name,
            last_name=last_name or f"Employee{counter['n']}",
            category=category,
            salary=salary,
            is_active=is_active,
            created_by_id=TEST_ACTOR_ID,
        )
        session.add(employee)
        session.flush()
        return employee

    return _create


@pytest.fixture
def create_project(session: Session):
    """Factory fixture to create projects."""

    def _create(
        title: str = "Harbour Extension",
        status: str = "in_progress",
        start_date: date | None = date(2023, 1, 1),
        planned_end_date: date | None = date(2023, 12, 31),
        actual_cost: Decimal = Decimal("0"),
    ) -> ProjectModel:
        project = ProjectModel(
            title=title,
            status=status,
            start_date=start_date,
            planned_end_date=planned_end_date,
            actual_cost=actual_cost,
            created_by_id=TEST_ACTOR_ID,
        )
        session.add(project)
        session.flush()
        return project

    return _create


@pytest.fixture
def assign_employee(session: Session):
    """Factory fixture to put an employee on a project."""

    def _assign(
        project: ProjectModel,
        employee: EmployeeModel,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> ProjectEmployeeModel:
        row = ProjectEmployeeModel(
            project_id=project.id,
            employee_id=employee.id,
            start_date=start_date,
            end_date=end_date,
            created_by_id=TEST_ACTOR_ID,
        )
        session.add(row)
        session.flush()
        return row

    return _assign


@pytest.fixture
def create_asset(session: Session):
    def _create(name: str = "Crane 40t", monthly_rental_amount: Decimal = Decimal("3000.00")):
        asset = AssetModel(
            name=name,
            monthly_rental_amount=monthly_rental_amount,
            created_by_id=TEST_ACTOR_ID,
        )
        session.add(asset)
        session.flush()
        return asset

    return _create


@pytest.fixture
def add_consumable(session: Session):
    """Factory fixture drawing an inventory item onto a project."""
    counter = {"n": 0}

    def _add(
        project: ProjectModel,
        quantity: Decimal,
        unit_cost: Decimal | None = None,
        average_cost: Decimal | None = None,
    ) -> ProjectConsumableModel:
        counter["n"] += 1
        item = InventoryItemModel(
            sku=f"SKU-{counter['n']:04d}",
            name=f"Item {counter['n']}",
            average_cost=average_cost,
            created_by_id=TEST_ACTOR_ID,
        )
        session.add(item)
        session.flush()
        row = ProjectConsumableModel(
            project_id=project.id,
            item_id=item.id,
            quantity=quantity,
            unit_cost=unit_cost,
            created_by_id=TEST_ACTOR_ID,
        )
        session.add(row)
        session.flush()
        return row

    return _add


@pytest.fixture
def create_invoice(session: Session):
    """Factory fixture to create sales invoices."""
    counter = {"n": 0}

    def _create(
        total_amount: Decimal = Decimal("1000.00"),
        status: str = "unpaid",
        invoice_date: date = date(2023, 10, 1),
        due_date: date = date(2023, 10, 31),
        customer_name: str = "Gulf Marine LLC",
        project_id: UUID | None = None,
    ) -> SalesInvoiceModel:
        counter["n"] += 1
        invoice = SalesInvoiceModel(
            invoice_number=f"INV-2023-{counter['n']:04d}",
            customer_id=uuid4(),
            customer_name=customer_name,
            project_id=project_id,
            status=status,
            invoice_date=invoice_date,
            due_date=due_date,
            total_amount=total_amount,
            paid_amount=Decimal("0"),
            created_by_id=TEST_ACTOR_ID,
        )
        session.add(invoice)
        session.flush()
        return invoice

    return _create


@pytest.fixture
def create_credit_note(session: Session):
    """Factory fixture to create draft credit notes."""
    counter = {"n": 0}

    def _create(
        invoice: SalesInvoiceModel | None,
        total_amount: Decimal = Decimal("200.00"),
        status: str = "draft",
        credit_note_date: date = date(2023, 10, 15),
        reason: str | None = "Damaged goods returned",
    ) -> CreditNoteModel:
        counter["n"] += 1
        note = CreditNoteModel(
            credit_note_number=f"CN-2023-{counter['n']:04d}",
            sales_invoice_id=invoice.id if invoice is not None else None,
            customer_id=invoice.customer_id if invoice is not None else None,
            status=status,
            credit_note_date=credit_note_date,
            total_amount=total_amount,
            reason=reason,
            created_by_id=TEST_ACTOR_ID,
        )
        session.add(note)
        session.flush()
        return note

    return _create
