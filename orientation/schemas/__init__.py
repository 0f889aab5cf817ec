"""Pydantic request/response schemas."""

from orientation.schemas.audit import AuditEntryOut, AuditPage
from orientation.schemas.auth import CurrentUser, LoginRequest, MeResponse, TokenResponse
from orientation.schemas.common import OkResponse, PageMeta
from orientation.schemas.health import HealthResponse
from orientation.schemas.preferences import PreferencesOut, PreferencesUpdate
from orientation.schemas.programs import ProgramOut, ProgramPayload, ProgramsPage
from orientation.schemas.tasks import TaskCreate, TaskOut
from orientation.schemas.templates import (
    ProgramTemplateOut,
    ProgramTemplatesPage,
    TemplateOut,
    TemplatePayload,
    TemplatesPage,
)
from orientation.schemas.users import RolesUpdate, UserOut, UsersPage

__all__ = [
    "AuditEntryOut",
    "AuditPage",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "MeResponse",
    "OkResponse",
    "PageMeta",
    "PreferencesOut",
    "PreferencesUpdate",
    "ProgramOut",
    "ProgramPayload",
    "ProgramTemplateOut",
    "ProgramTemplatesPage",
    "ProgramsPage",
    "RolesUpdate",
    "TaskCreate",
    "TaskOut",
    "TemplateOut",
    "TemplatePayload",
    "TemplatesPage",
    "TokenResponse",
    "UserOut",
    "UsersPage",
]
