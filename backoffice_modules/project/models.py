"""
Project Domain Models (``backoffice_modules.project.models``).

Frozen value objects for projects and asset assignments as returned by
``ProjectCostService``.  Pure data, ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class ProjectStatus(str, Enum):
    NOT_STARTED = "not_started"
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Project:
    id: UUID
    title: str
    status: ProjectStatus
    start_date: date | None
    planned_end_date: date | None
    actual_end_date: date | None
    actual_cost: Decimal


@dataclass(frozen=True)
class AssetAssignment:
    id: UUID
    project_id: UUID
    asset_id: UUID
    start_date: date
    end_date: date
    monthly_rate: Decimal
    total_cost: Decimal
