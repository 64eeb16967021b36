"""
Project Cost Service (``backoffice_modules.project.service``).

Responsibility
--------------
Keeps ``ProjectModel.actual_cost`` in line with what the project consumes:
labor of assigned employees, consumables drawn from inventory, and
pro-rated asset rental.  Owns asset assignments, whose ``total_cost`` is
priced with the rental engine.  Also acts as the ``ProjectCostSink`` the
ledger journal notifies when a payable row is tagged with a project.

Architecture position
---------------------
**Modules layer** -- thin ERP glue.  Pure arithmetic lives in
``backoffice_engines.project_cost`` and ``backoffice_engines.rental``.

Invariants enforced
-------------------
* ``recalculate_project_cost`` is idempotent: it overwrites the total from
  source rows and never accumulates.
* Assignment end date must be after its start date; the monthly rate must
  match the asset's rental rate within 0.01.
* Public mutating methods own the transaction boundary; the sink hook
  ``apply_payable_cost`` only flushes, inside the caller's transaction.

Failure modes
-------------
* Missing project on recalculation  -> logged, returns None.
* Missing project/asset/assignment on explicit edits  -> NotFoundError
  subclasses.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice_engines.calendar import overlap, working_days
from backoffice_engines.payroll import DEFAULT_CONSULTANT_DIVISOR, parse_category
from backoffice_engines.project_cost import (
    ConsumableInput,
    LaborInput,
    ProjectCostBreakdown,
    RentalInput,
    build_breakdown,
)
from backoffice_engines.rental import rental_cost as _rental_cost
from backoffice_kernel.domain.values import round_money, to_decimal, within_tolerance
from backoffice_kernel.exceptions import (
    AssetAssignmentNotFoundError,
    AssetNotFoundError,
    InvalidAssetAssignmentError,
    ProjectNotFoundError,
    UnknownCategoryError,
)
from backoffice_kernel.logging_config import get_logger
from backoffice_kernel.services.error_log_service import ErrorLogSink
from backoffice_modules._posting_helpers import owned_transaction
from backoffice_modules.payroll.orm import EmployeeModel
from backoffice_modules.project.models import AssetAssignment, Project
from backoffice_modules.project.orm import (
    AssetModel,
    ProjectAssetAssignmentModel,
    ProjectConsumableModel,
    ProjectEmployeeModel,
    ProjectModel,
)

logger = get_logger("modules.project.service")

RATE_MATCH_TOLERANCE = Decimal("0.01")


class ProjectCostService:
    """
    Project cost aggregation and asset assignment maintenance.

    Transaction boundary: public mutating methods commit on success and
    roll back on failure.
    """

    def __init__(
        self,
        session: Session,
        error_sink: ErrorLogSink | None = None,
        consultant_divisor: int = DEFAULT_CONSULTANT_DIVISOR,
    ):
        self._session = session
        self._error_sink = error_sink
        self._divisor = consultant_divisor

    # =========================================================================
    # Cost aggregation
    # =========================================================================

    def rental_cost(self, start: date | None, end: date | None, monthly_rate) -> Decimal:
        return _rental_cost(start, end, monthly_rate)

    def recalculate_project_cost(self, project_id: UUID) -> ProjectCostBreakdown | None:
        """Recompute and store the project's total cost."""
        with owned_transaction(
            self._session,
            "recalculate_project_cost",
            "project",
            self._error_sink,
            {"project_id": project_id},
        ):
            return self._recalculate(project_id)

    def _recalculate(self, project_id: UUID) -> ProjectCostBreakdown | None:
        project = self._session.get(ProjectModel, project_id)
        if project is None:
            logger.warning(
                "project_cost_project_missing",
                extra={"project_id": str(project_id)},
            )
            return None

        breakdown = build_breakdown(
            self._labor_inputs(project),
            self._consumable_inputs(project_id),
            self._rental_inputs(project_id),
            self._divisor,
        )
        project.actual_cost = breakdown.total
        self._session.flush()

        logger.info(
            "project_cost_recalculated",
            extra={
                "project_id": str(project_id),
                "labor": str(breakdown.labor),
                "consumables": str(breakdown.consumables),
                "asset_rental": str(breakdown.asset_rental),
                "total": str(breakdown.total),
            },
        )
        return breakdown

    def _labor_inputs(self, project: ProjectModel) -> list[LaborInput]:
        project_end = project.actual_end_date or project.planned_end_date
        rows = self._session.execute(
            select(ProjectEmployeeModel, EmployeeModel)
            .join(EmployeeModel, ProjectEmployeeModel.employee_id == EmployeeModel.id)
            .where(ProjectEmployeeModel.project_id == project.id)
        ).all()

        inputs: list[LaborInput] = []
        for assignment, employee in rows:
            try:
                category = parse_category(employee.category)
            except UnknownCategoryError:
                logger.warning(
                    "project_labor_unknown_category",
                    extra={"employee_id": str(employee.id), "category": employee.category},
                )
                continue
            if category is None:
                continue

            window = overlap(
                assignment.start_date or project.start_date,
                assignment.end_date or project_end,
                project.start_date or assignment.start_date,
                project_end or assignment.end_date,
            )
            days = working_days(*window) if window else 0
            inputs.append(LaborInput(category, to_decimal(employee.salary), days))
        return inputs

    def _consumable_inputs(self, project_id: UUID) -> list[ConsumableInput]:
        rows = self._session.scalars(
            select(ProjectConsumableModel).where(ProjectConsumableModel.project_id == project_id)
        ).all()
        return [
            ConsumableInput(
                quantity=to_decimal(row.quantity),
                unit_cost=row.unit_cost,
                average_cost=row.item.average_cost if row.item is not None else None,
            )
            for row in rows
        ]

    def _rental_inputs(self, project_id: UUID) -> list[RentalInput]:
        rows = self._session.scalars(
            select(ProjectAssetAssignmentModel)
            .where(ProjectAssetAssignmentModel.project_id == project_id)
        ).all()
        return [RentalInput(row.start_date, row.end_date, row.monthly_rate) for row in rows]

    # =========================================================================
    # Ledger hook
    # =========================================================================

    def apply_payable_cost(self, project_id: UUID, amount: Decimal) -> None:
        """Add a signed payable amount to the project's running cost (flush only)."""
        project = self._session.get(ProjectModel, project_id)
        if project is None:
            logger.warning(
                "payable_cost_project_missing",
                extra={"project_id": str(project_id), "amount": str(amount)},
            )
            return
        project.actual_cost = round_money(to_decimal(project.actual_cost) + to_decimal(amount))
        self._session.flush()
        logger.debug(
            "payable_cost_applied",
            extra={"project_id": str(project_id), "amount": str(amount)},
        )

    # =========================================================================
    # Asset assignments
    # =========================================================================

    def _validated_rate(
        self,
        asset: AssetModel,
        start: date,
        end: date,
        monthly_rate,
    ) -> Decimal:
        if start is None or end is None:
            raise InvalidAssetAssignmentError("start and end dates are required")
        if end <= start:
            raise InvalidAssetAssignmentError("end date must be after start date")
        rate = to_decimal(monthly_rate)
        if rate <= 0:
            raise InvalidAssetAssignmentError("monthly rate must be positive")
        asset_rate = to_decimal(asset.monthly_rental_amount)
        if not within_tolerance(rate, asset_rate, RATE_MATCH_TOLERANCE):
            raise InvalidAssetAssignmentError(
                f"monthly rate mismatch: asset rate is {asset_rate}, provided rate is {rate}"
            )
        return rate

    def assign_asset(
        self,
        project_id: UUID,
        asset_id: UUID,
        start_date: date,
        end_date: date,
        monthly_rate,
        actor_id: UUID,
    ) -> AssetAssignment:
        with owned_transaction(
            self._session, "assign_asset", "project", self._error_sink,
            {"project_id": project_id, "asset_id": asset_id},
        ):
            if self._session.get(ProjectModel, project_id) is None:
                raise ProjectNotFoundError(project_id)
            asset = self._session.get(AssetModel, asset_id)
            if asset is None:
                raise AssetNotFoundError(asset_id)

            rate = self._validated_rate(asset, start_date, end_date, monthly_rate)
            assignment = ProjectAssetAssignmentModel(
                project_id=project_id,
                asset_id=asset_id,
                start_date=start_date,
                end_date=end_date,
                monthly_rate=rate,
                total_cost=_rental_cost(start_date, end_date, rate),
                created_by_id=actor_id,
            )
            self._session.add(assignment)
            self._session.flush()
            self._recalculate(project_id)

            logger.info(
                "asset_assigned",
                extra={
                    "assignment_id": str(assignment.id),
                    "project_id": str(project_id),
                    "asset_id": str(asset_id),
                    "total_cost": str(assignment.total_cost),
                },
            )
            return assignment.to_dto()

    def update_asset_assignment(
        self,
        assignment_id: UUID,
        start_date: date,
        end_date: date,
        monthly_rate,
        actor_id: UUID,
    ) -> AssetAssignment:
        with owned_transaction(
            self._session, "update_asset_assignment", "project", self._error_sink,
            {"assignment_id": assignment_id},
        ):
            assignment = self._session.get(ProjectAssetAssignmentModel, assignment_id)
            if assignment is None:
                raise AssetAssignmentNotFoundError(assignment_id)
            asset = self._session.get(AssetModel, assignment.asset_id)
            if asset is None:
                raise AssetNotFoundError(assignment.asset_id)

            rate = self._validated_rate(asset, start_date, end_date, monthly_rate)
            assignment.start_date = start_date
            assignment.end_date = end_date
            assignment.monthly_rate = rate
            assignment.total_cost = _rental_cost(start_date, end_date, rate)
            assignment.updated_by_id = actor_id
            self._session.flush()
            self._recalculate(assignment.project_id)

            logger.info(
                "asset_assignment_updated",
                extra={
                    "assignment_id": str(assignment_id),
                    "total_cost": str(assignment.total_cost),
                },
            )
            return assignment.to_dto()

    def remove_asset_assignment(self, assignment_id: UUID, actor_id: UUID) -> None:
        with owned_transaction(
            self._session, "remove_asset_assignment", "project", self._error_sink,
            {"assignment_id": assignment_id},
        ):
            assignment = self._session.get(ProjectAssetAssignmentModel, assignment_id)
            if assignment is None:
                raise AssetAssignmentNotFoundError(assignment_id)
            project_id = assignment.project_id
            self._session.delete(assignment)
            self._session.flush()
            self._recalculate(project_id)
            logger.info(
                "asset_assignment_removed",
                extra={
                    "assignment_id": str(assignment_id),
                    "project_id": str(project_id),
                    "actor_id": str(actor_id),
                },
            )

    # =========================================================================
    # Queries
    # =========================================================================

    def get_project(self, project_id: UUID) -> Project:
        project = self._session.get(ProjectModel, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project.to_dto()

    def get_asset_assignments(self, project_id: UUID) -> list[AssetAssignment]:
        rows = self._session.scalars(
            select(ProjectAssetAssignmentModel)
            .where(ProjectAssetAssignmentModel.project_id == project_id)
            .order_by(ProjectAssetAssignmentModel.start_date)
        ).all()
        return [row.to_dto() for row in rows]
