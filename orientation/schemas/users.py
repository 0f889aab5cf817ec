"""Schemas for user administration endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from orientation.schemas.common import PageMeta


class UserOut(BaseModel):
    """User entry for admin lists (no password hash)."""

    id: int
    username: str | None = None
    email: str | None = None
    full_name: str | None = None
    organization: str | None = None
    status: str
    provider: str | None = None
    roles: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    last_login_at: datetime | None = None


class UsersPage(BaseModel):
    data: list[UserOut]
    meta: PageMeta


class UserCreate(BaseModel):
    username: str = Field(..., max_length=255)
    password: str | None = Field(default=None, max_length=128)
    email: str | None = Field(default=None, max_length=320)
    full_name: str | None = Field(default=None, max_length=255)
    organization: str | None = None
    roles: list[str] = Field(default_factory=list)
    status: str = "active"


class UserUpdate(BaseModel):
    """Partial admin edit of another user's profile."""

    model_config = {"extra": "ignore"}

    full_name: Any = None
    name: Any = None
    email: Any = None
    username: Any = None
    organization: Any = None


class RolesUpdate(BaseModel):
    roles: list[str] = Field(default_factory=list, max_length=16)


class RolesResponse(BaseModel):
    id: int
    roles: list[str]


class StatusChange(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class ProgramAssignment(BaseModel):
    program_id: str = Field(..., min_length=1, max_length=255)


class AssignmentResponse(BaseModel):
    ok: bool = True
    created: int = 0


class UnassignmentResponse(BaseModel):
    ok: bool = True
    removed: int = 0


class UserProgramsResponse(BaseModel):
    user_id: int
    program_ids: list[str]


class UserActionsOut(BaseModel):
    """Which administration actions the caller may take on a user."""

    can_invite: bool
    can_edit: bool
    can_manage_roles: bool
    can_assign_programs: bool
    can_deactivate: bool
    can_reactivate: bool
    can_archive: bool
    toggleable_roles: list[str]
    locked_roles: list[str]
    manager_only: bool


class RoleOut(BaseModel):
    model_config = {"from_attributes": True}

    role_id: int
    role_key: str
    description: str | None = None
