"""
Routes kept at their historical paths outside ``/api``.

``/rbac/*`` is the original admin role manager: listing users and replacing
their roles is admin-only here, unlike ``/api/users`` which also lets
managers grant viewer/trainee.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orientation.api.auth import get_current_user, require_permission, require_roles
from orientation.api.errors import forbidden
from orientation.api.programs import apply_template_metadata
from orientation.api.users import load_user, user_out
from orientation.core.database import get_db
from orientation.core.rbac import has_role
from orientation.schemas.auth import CurrentUser
from orientation.schemas.programs import InstantiateResponse
from orientation.schemas.templates import MetadataUpdateRequest, MetadataUpdateResponse
from orientation.schemas.users import RolesResponse, RolesUpdate, UserOut
from orientation.services import programs as programs_service
from orientation.services import tasks as tasks_service
from orientation.services import users as users_service

router = APIRouter()


@router.get("/rbac/users", response_model=list[UserOut])
def rbac_list_users(
    _admin: Annotated[CurrentUser, Depends(require_roles("admin"))],
    db: Annotated[Session, Depends(get_db)],
) -> list[UserOut]:
    """Every user with roles, as a bare list (admin only)."""
    return [user_out(u) for u in users_service.all_users(db)]


@router.patch("/rbac/users/{user_id}/roles", response_model=RolesResponse)
def rbac_set_roles(
    user_id: int,
    body: RolesUpdate,
    admin: Annotated[CurrentUser, Depends(require_roles("admin"))],
    db: Annotated[Session, Depends(get_db)],
) -> RolesResponse:
    user = load_user(db, user_id)
    return RolesResponse(id=user.id, roles=users_service.set_roles(db, admin, user, body.roles))


@router.post(
    "/rbac/users/{user_id}/programs/{program_id}/instantiate",
    response_model=InstantiateResponse,
)
def rbac_instantiate(
    user_id: int,
    program_id: str,
    actor: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> InstantiateResponse:
    """Preload a program's templates into another user's tasks (admin, manager or program manager)."""
    if not (
        has_role(actor, "admin", "manager")
        or programs_service.is_program_manager(db, actor.id, program_id)
    ):
        raise forbidden()
    user = load_user(db, user_id)
    return InstantiateResponse(created=tasks_service.instantiate_program(db, user, program_id))


@router.patch("/programs/{program_id}/templates/metadata", response_model=MetadataUpdateResponse)
def legacy_template_metadata(
    program_id: str,
    body: MetadataUpdateRequest,
    actor: Annotated[CurrentUser, Depends(require_permission("template", "update"))],
    db: Annotated[Session, Depends(get_db)],
) -> MetadataUpdateResponse:
    return apply_template_metadata(program_id, body, actor, db)
