"""
Payroll Computer (``backoffice_modules.payroll.computer``).

Responsibility
--------------
Reads active employees and their project windows for a period and turns
them into ``ComputedPayroll`` records using the pure payroll engine.
Nothing is written.

Defaults applied to open-ended project windows (logged, never fatal):

* missing assignment start  -> first day of the target month
* missing assignment end    -> the project's planned end date, else the
                               last day of the target month
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice_engines.calendar import month_bounds
from backoffice_engines.payroll import (
    AssignmentWindow,
    EmployeeCategory,
    compute_earnings,
    parse_category,
)
from backoffice_kernel.exceptions import UnknownCategoryError
from backoffice_kernel.logging_config import get_logger
from backoffice_modules.payroll.config import PayrollConfig
from backoffice_modules.payroll.models import ComputedPayroll
from backoffice_modules.payroll.orm import EmployeeModel
from backoffice_modules.project.orm import ProjectEmployeeModel, ProjectModel

logger = get_logger("modules.payroll.computer")


class PayrollComputer:
    def __init__(self, session: Session, config: PayrollConfig | None = None):
        self._session = session
        self._config = config or PayrollConfig.with_defaults()

    def compute(self, month: int, year: int) -> list[ComputedPayroll]:
        employees = self._session.scalars(
            select(EmployeeModel)
            .where(EmployeeModel.is_active.is_(True))
            .order_by(EmployeeModel.employee_code)
        ).all()

        results: list[ComputedPayroll] = []
        for employee in employees:
            try:
                category = parse_category(employee.category)
            except UnknownCategoryError:
                logger.warning(
                    "payroll_employee_skipped",
                    extra={
                        "employee_id": str(employee.id),
                        "reason": "unknown_category",
                        "category": employee.category,
                    },
                )
                continue
            if category is None:
                logger.info(
                    "payroll_employee_skipped",
                    extra={"employee_id": str(employee.id), "reason": "missing_category"},
                )
                continue

            windows = (
                self._assignment_windows(employee, month, year)
                if category.is_pro_rata
                else ()
            )
            earnings = compute_earnings(
                category,
                employee.salary,
                month,
                year,
                windows,
                self._config.consultant_divisor,
            )
            results.append(
                ComputedPayroll(
                    employee=employee.to_dto(),
                    basic_salary=earnings.basic_salary,
                    working_days=earnings.working_days,
                    project_id=earnings.project_id,
                    is_pro_rata=category is not EmployeeCategory.PERMANENT,
                )
            )

        logger.info(
            "payroll_computed",
            extra={
                "period": f"{year}-{month:02d}",
                "active_employees": len(employees),
                "computed": len(results),
            },
        )
        return results

    def _assignment_windows(
        self,
        employee: EmployeeModel,
        month: int,
        year: int,
    ) -> list[AssignmentWindow]:
        first, last = month_bounds(month, year)
        rows = self._session.execute(
            select(ProjectEmployeeModel, ProjectModel)
            .join(ProjectModel, ProjectEmployeeModel.project_id == ProjectModel.id)
            .where(
                ProjectEmployeeModel.employee_id == employee.id,
                ProjectModel.status.in_(self._config.active_project_statuses),
            )
        ).all()

        windows: list[AssignmentWindow] = []
        for assignment, project in rows:
            start = assignment.start_date
            end = assignment.end_date
            if start is None:
                start = first
                logger.warning(
                    "assignment_start_defaulted",
                    extra={
                        "employee_id": str(employee.id),
                        "project_id": str(project.id),
                        "defaulted_to": start.isoformat(),
                    },
                )
            if end is None:
                end = project.planned_end_date or last
                logger.warning(
                    "assignment_end_defaulted",
                    extra={
                        "employee_id": str(employee.id),
                        "project_id": str(project.id),
                        "defaulted_to": end.isoformat(),
                    },
                )
            windows.append(AssignmentWindow(project.id, start, end))

        # The last overlapping window tags the cost, so order by start.
        windows.sort(key=lambda w: (w.start, w.end))
        return windows
