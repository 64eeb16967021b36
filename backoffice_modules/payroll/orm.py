"""
Payroll ORM Persistence Models (``backoffice_modules.payroll.orm``).

Responsibility:
    SQLAlchemy ORM models persisting employees, monthly payroll entries and
    their additions/deductions.  Each ORM class mirrors a DTO from
    ``backoffice_modules.payroll.models`` and provides ``to_dto()``.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models.
    Inherits from ``TrackedBase`` (kernel DB base).

Invariants enforced:
    - All monetary fields use Decimal (maps to Numeric(38,9)) -- NEVER float.
    - Enum fields stored as String(50) containing the enum .value string.
    - UNIQUE(employee_id, month, year): one entry per employee per period.
    - Additions and deductions are deleted with their entry (ON DELETE
      CASCADE plus ORM delete-orphan).
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice_kernel.db.base import TrackedBase


class EmployeeModel(TrackedBase):
    """
    ORM model for ``Employee``.

    Read-only to the payroll engine: maintained by the HR side of the back
    office.  A NULL category means the employee is skipped at generation.
    """

    __tablename__ = "payroll_employees"

    employee_code: Mapped[str] = mapped_column(String(50), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_code", name="uq_payroll_employee_code"),
        Index("idx_payroll_employee_active", "is_active"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dto(self):
        from backoffice_modules.payroll.models import Employee

        return Employee(
            id=self.id,
            employee_code=self.employee_code,
            first_name=self.first_name,
            last_name=self.last_name,
            category=self.category,
            salary=self.salary,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<EmployeeModel {self.employee_code}: {self.full_name} ({self.category})>"


class PayrollEntryModel(TrackedBase):
    """
    ORM model for ``PayrollEntry`` -- one employee's pay for one month.

    Guarantees:
        - ``total_amount == basic_salary + total_additions - total_deductions``
          after every service mutation.
        - ``status`` is "generated" or "paid".
    """

    __tablename__ = "payroll_entries"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False,
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    working_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    basic_salary: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    total_additions: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="generated", nullable=False)
    project_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("projects.id", ondelete="SET NULL"), nullable=True,
    )
    generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    employee: Mapped["EmployeeModel"] = relationship(lazy="joined")
    additions: Mapped[list["PayrollAdditionModel"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PayrollAdditionModel.created_at",
    )
    deductions: Mapped[list["PayrollDeductionModel"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PayrollDeductionModel.created_at",
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="uq_payroll_entry_period"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_payroll_entry_month"),
        Index("idx_payroll_entry_period", "year", "month"),
        Index("idx_payroll_entry_status", "status"),
    )

    def to_dto(self):
        from backoffice_modules.payroll.models import PayrollEntry, PayrollEntryStatus

        return PayrollEntry(
            id=self.id,
            employee_id=self.employee_id,
            month=self.month,
            year=self.year,
            working_days=self.working_days,
            basic_salary=self.basic_salary,
            total_additions=self.total_additions,
            total_deductions=self.total_deductions,
            total_amount=self.total_amount,
            status=PayrollEntryStatus(self.status),
            project_id=self.project_id,
            generated_at=self.generated_at,
            paid_at=self.paid_at,
        )

    def __repr__(self) -> str:
        return (
            f"<PayrollEntryModel {self.employee_id} {self.month}/{self.year} "
            f"{self.total_amount} ({self.status})>"
        )


class PayrollAdditionModel(TrackedBase):
    __tablename__ = "payroll_additions"

    payroll_entry_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_entries.id", ondelete="CASCADE"), nullable=False,
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    kind: Mapped[str] = mapped_column(String(50), default="manual", nullable=False)

    entry: Mapped["PayrollEntryModel"] = relationship(back_populates="additions")

    __table_args__ = (
        Index("idx_payroll_addition_entry", "payroll_entry_id"),
    )

    def to_dto(self):
        from backoffice_modules.payroll.models import AdditionKind, PayrollAddition

        return PayrollAddition(
            id=self.id,
            payroll_entry_id=self.payroll_entry_id,
            description=self.description,
            amount=self.amount,
            kind=AdditionKind(self.kind),
            note=self.note,
        )


class PayrollDeductionModel(TrackedBase):
    __tablename__ = "payroll_deductions"

    payroll_entry_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_entries.id", ondelete="CASCADE"), nullable=False,
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    kind: Mapped[str] = mapped_column(String(50), default="manual", nullable=False)

    entry: Mapped["PayrollEntryModel"] = relationship(back_populates="deductions")

    __table_args__ = (
        Index("idx_payroll_deduction_entry", "payroll_entry_id"),
    )

    def to_dto(self):
        from backoffice_modules.payroll.models import DeductionKind, PayrollDeduction

        return PayrollDeduction(
            id=self.id,
            payroll_entry_id=self.payroll_entry_id,
            description=self.description,
            amount=self.amount,
            kind=DeductionKind(self.kind),
            note=self.note,
        )
