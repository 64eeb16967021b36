"""Project costing: labor, consumables and asset rental rolled into ``actual_cost``."""

from backoffice_modules.project.models import AssetAssignment, Project, ProjectStatus
from backoffice_modules.project.service import ProjectCostService

__all__ = [
    "AssetAssignment",
    "Project",
    "ProjectCostService",
    "ProjectStatus",
]
