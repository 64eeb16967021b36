"""
Project ORM Persistence Models (``backoffice_modules.project.orm``).

Responsibility:
    SQLAlchemy ORM models for projects and the cost sources attached to
    them: employee assignments, asset rental assignments, consumables drawn
    from inventory.  ``AssetModel`` and ``InventoryItemModel`` are read-only
    collaborators supplying rates and unit costs.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models.
    Inherits from ``TrackedBase`` (kernel DB base).

Invariants enforced:
    - All monetary fields use Decimal (maps to Numeric(38,9)) -- NEVER float.
    - ``ProjectAssetAssignmentModel.total_cost`` is the pro-rated rental for
      its window, recomputed on every create/update.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice_kernel.db.base import TrackedBase


class ProjectModel(TrackedBase):
    __tablename__ = "projects"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="not_started", nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    planned_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    __table_args__ = (
        Index("idx_project_status", "status"),
    )

    def to_dto(self):
        from backoffice_modules.project.models import Project, ProjectStatus

        return Project(
            id=self.id,
            title=self.title,
            status=ProjectStatus(self.status),
            start_date=self.start_date,
            planned_end_date=self.planned_end_date,
            actual_end_date=self.actual_end_date,
            actual_cost=self.actual_cost,
        )

    def __repr__(self) -> str:
        return f"<ProjectModel {self.title} ({self.status}) cost={self.actual_cost}>"


class ProjectEmployeeModel(TrackedBase):
    """An employee's assignment window on a project; either bound may be open."""

    __tablename__ = "project_employees"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False,
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    project: Mapped["ProjectModel"] = relationship(lazy="joined")

    __table_args__ = (
        Index("idx_project_employee_project", "project_id"),
        Index("idx_project_employee_employee", "employee_id"),
    )


class AssetModel(TrackedBase):
    __tablename__ = "assets"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    monthly_rental_amount: Mapped[Decimal | None] = mapped_column(nullable=True)


class ProjectAssetAssignmentModel(TrackedBase):
    __tablename__ = "project_asset_assignments"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False,
    )
    asset_id: Mapped[UUID] = mapped_column(ForeignKey("assets.id"), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    monthly_rate: Mapped[Decimal] = mapped_column(nullable=False)
    total_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    __table_args__ = (
        Index("idx_project_asset_project", "project_id"),
    )

    def to_dto(self):
        from backoffice_modules.project.models import AssetAssignment

        return AssetAssignment(
            id=self.id,
            project_id=self.project_id,
            asset_id=self.asset_id,
            start_date=self.start_date,
            end_date=self.end_date,
            monthly_rate=self.monthly_rate,
            total_cost=self.total_cost,
        )


class InventoryItemModel(TrackedBase):
    __tablename__ = "inventory_items"

    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    average_cost: Mapped[Decimal | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("sku", name="uq_inventory_item_sku"),
    )


class ProjectConsumableModel(TrackedBase):
    __tablename__ = "project_consumables"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False,
    )
    item_id: Mapped[UUID] = mapped_column(ForeignKey("inventory_items.id"), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit_cost: Mapped[Decimal | None] = mapped_column(nullable=True)

    item: Mapped["InventoryItemModel"] = relationship(lazy="joined")

    __table_args__ = (
        Index("idx_project_consumable_project", "project_id"),
    )
