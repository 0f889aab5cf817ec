"""The signed-in user's own profile."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orientation.api.auth import get_current_user, to_current_user
from orientation.core.database import get_db
from orientation.schemas.auth import CurrentUser, MeResponse, ProfileUpdate
from orientation.services import users as users_service

router = APIRouter()


def _me(current: CurrentUser) -> MeResponse:
    return MeResponse(
        id=current.id,
        name=current.full_name,
        email=current.email,
        username=current.username,
        organization=current.organization,
        status=current.status,
        roles=current.roles,
        perms=current.perms,
    )


@router.get("", response_model=MeResponse)
def get_me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> MeResponse:
    return _me(current_user)


@router.patch("", response_model=MeResponse)
def update_me(
    body: ProfileUpdate,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MeResponse:
    """
    Edit your own name, email, username or organization. Strings are trimmed;
    a duplicate username or email returns 409 already_exists.
    """
    values = users_service.clean_profile(body.model_dump(exclude_unset=True))
    user = users_service.get_user(db, current_user.id)
    user = users_service.update_profile(db, user, values)
    return _me(to_current_user(db, user))
