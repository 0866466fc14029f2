"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.bom import Bom, BomItem, BomOperation
from app.models.production_order import MaterialConsumption, ProductionOrder
from app.models.project import Project
from app.models.quality_control import InspectionResult, NonConformity, QualityControl
from app.models.session import UserSession
from app.models.task import Task, TaskDependency
from app.models.user import User, UserPermission
from app.models.work_center import WorkCenter

__all__ = [
    "Base",
    "Bom",
    "BomItem",
    "BomOperation",
    "InspectionResult",
    "MaterialConsumption",
    "NonConformity",
    "ProductionOrder",
    "Project",
    "QualityControl",
    "Task",
    "TaskDependency",
    "User",
    "UserPermission",
    "UserSession",
    "WorkCenter",
]
