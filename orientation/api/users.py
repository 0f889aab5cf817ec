"""User administration: list, create, edit, roles, status lifecycle and program assignment."""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from orientation.api.auth import get_current_user, require_permission
from orientation.api.errors import not_found
from orientation.core.database import get_db
from orientation.core.rbac import action_availability
from orientation.models import User
from orientation.schemas.auth import CurrentUser
from orientation.schemas.common import PageMeta
from orientation.schemas.users import (
    AssignmentResponse,
    ProgramAssignment,
    RolesResponse,
    RolesUpdate,
    StatusChange,
    UnassignmentResponse,
    UserActionsOut,
    UserCreate,
    UserOut,
    UserProgramsResponse,
    UsersPage,
    UserUpdate,
)
from orientation.services import programs as programs_service
from orientation.services import tasks as tasks_service
from orientation.services import users as users_service

router = APIRouter()


def user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        organization=user.organization,
        status=user.status,
        provider=user.provider,
        roles=users_service.role_keys(user),
        created_at=user.created_at,
        last_login_at=user.last_login_at,
    )


def load_user(db: Session, user_id: int) -> User:
    user = users_service.get_user(db, user_id)
    if user is None:
        raise not_found("user_not_found")
    return user


@router.get("", response_model=UsersPage)
def list_users(
    _actor: Annotated[CurrentUser, Depends(require_permission("user", "manageRoles"))],
    db: Annotated[Session, Depends(get_db)],
    limit: str | None = None,
    offset: str | None = None,
    query: str | None = None,
    role: str | None = None,
    status: str | None = None,
) -> UsersPage:
    """Users with their roles, ordered by full name. Admins and managers only."""
    page = users_service.list_users(db, limit, offset, query=query, role=role, status=status)
    return UsersPage(
        data=[user_out(u) for u in page.data],
        meta=PageMeta(total=page.total, limit=page.limit, offset=page.offset),
    )


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    _actor: Annotated[CurrentUser, Depends(require_permission("user", "create"))],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    user = users_service.create_user(
        db,
        username=body.username,
        password=body.password,
        email=body.email,
        full_name=body.full_name,
        organization=body.organization,
        roles=body.roles,
        status=body.status,
    )
    return user_out(user)


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    _actor: Annotated[CurrentUser, Depends(require_permission("user", "read"))],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    return user_out(load_user(db, user_id))


@router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    body: UserUpdate,
    _actor: Annotated[CurrentUser, Depends(require_permission("user", "update"))],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    """Trim and apply profile fields; 409 already_exists on duplicate username/email."""
    user = load_user(db, user_id)
    values = users_service.clean_profile(body.model_dump(exclude_unset=True))
    return user_out(users_service.update_profile(db, user, values))


@router.get("/{user_id}/actions", response_model=UserActionsOut)
def get_user_actions(
    user_id: int,
    actor: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserActionsOut:
    """Which administration buttons the caller may use for this user."""
    target = user_out(load_user(db, user_id))
    availability = action_availability(actor, target)
    return UserActionsOut(**asdict(availability))


def _replace_roles(user_id: int, body: RolesUpdate, actor: CurrentUser, db: Session) -> RolesResponse:
    user = load_user(db, user_id)
    roles = users_service.set_roles(db, actor, user, body.roles)
    return RolesResponse(id=user.id, roles=roles)


@router.post("/{user_id}/roles", response_model=RolesResponse)
def post_user_roles(
    user_id: int,
    body: RolesUpdate,
    actor: Annotated[CurrentUser, Depends(require_permission("user", "manageRoles"))],
    db: Annotated[Session, Depends(get_db)],
) -> RolesResponse:
    """
    Replace a user's roles. Managers may only grant viewer/trainee (403 for
    anything else) and the target's other roles are kept.
    """
    return _replace_roles(user_id, body, actor, db)


@router.put("/{user_id}/roles", response_model=RolesResponse)
def put_user_roles(
    user_id: int,
    body: RolesUpdate,
    actor: Annotated[CurrentUser, Depends(require_permission("user", "manageRoles"))],
    db: Annotated[Session, Depends(get_db)],
) -> RolesResponse:
    return _replace_roles(user_id, body, actor, db)


@router.post("/{user_id}/deactivate", response_model=UserOut)
def deactivate_user(
    user_id: int,
    _actor: Annotated[CurrentUser, Depends(require_permission("user", "deactivate"))],
    db: Annotated[Session, Depends(get_db)],
    body: StatusChange | None = None,
) -> UserOut:
    user = load_user(db, user_id)
    reason = body.reason if body is not None else None
    return user_out(users_service.set_status(db, user, "suspended", reason=reason))


@router.post("/{user_id}/reactivate", response_model=UserOut)
def reactivate_user(
    user_id: int,
    _actor: Annotated[CurrentUser, Depends(require_permission("user", "reactivate"))],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    user = load_user(db, user_id)
    return user_out(users_service.set_status(db, user, "active"))


@router.post("/{user_id}/archive", response_model=UserOut)
def archive_user(
    user_id: int,
    _actor: Annotated[CurrentUser, Depends(require_permission("user", "archive"))],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    user = load_user(db, user_id)
    return user_out(users_service.set_status(db, user, "archived"))


@router.get("/{user_id}/programs", response_model=UserProgramsResponse)
def list_user_programs(
    user_id: int,
    _actor: Annotated[CurrentUser, Depends(require_permission("user", "read"))],
    db: Annotated[Session, Depends(get_db)],
) -> UserProgramsResponse:
    user = load_user(db, user_id)
    return UserProgramsResponse(
        user_id=user.id,
        program_ids=programs_service.list_member_program_ids(db, user.id, "trainee"),
    )


@router.post("/{user_id}/programs", response_model=AssignmentResponse)
def assign_program(
    user_id: int,
    body: ProgramAssignment,
    _actor: Annotated[CurrentUser, Depends(require_permission("user", "assignPrograms"))],
    db: Annotated[Session, Depends(get_db)],
) -> AssignmentResponse:
    """Enroll the user in a program and copy its templates into their tasks."""
    user = load_user(db, user_id)
    created = tasks_service.assign_program(db, user, body.program_id)
    return AssignmentResponse(created=created)


@router.delete("/{user_id}/programs/{program_id}", response_model=UnassignmentResponse)
def unassign_program(
    user_id: int,
    program_id: str,
    _actor: Annotated[CurrentUser, Depends(require_permission("user", "assignPrograms"))],
    db: Annotated[Session, Depends(get_db)],
) -> UnassignmentResponse:
    user = load_user(db, user_id)
    removed = tasks_service.unassign_program(db, user, program_id)
    return UnassignmentResponse(removed=removed)
