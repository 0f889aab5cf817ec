"""SQLAlchemy ORM models."""

from orientation.models.audit import AuditLog
from orientation.models.base import Base
from orientation.models.preference import UserPreference
from orientation.models.program import Program, ProgramMembership
from orientation.models.task import OrientationTask
from orientation.models.template import ProgramTaskTemplate, ProgramTemplateLink
from orientation.models.user import Permission, Role, RolePermission, User, UserRole

__all__ = [
    "AuditLog",
    "Base",
    "OrientationTask",
    "Permission",
    "Program",
    "ProgramMembership",
    "ProgramTaskTemplate",
    "ProgramTemplateLink",
    "Role",
    "RolePermission",
    "User",
    "UserPreference",
    "UserRole",
]
