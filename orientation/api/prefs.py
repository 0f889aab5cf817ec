"""Preferences endpoints: read and update your own, or those of a trainee you manage."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orientation.api.auth import get_current_user
from orientation.api.errors import forbidden, not_found
from orientation.core.database import get_db
from orientation.models import User
from orientation.schemas.auth import CurrentUser
from orientation.schemas.preferences import PreferencesOut, PreferencesUpdate
from orientation.services import preferences as preferences_service
from orientation.services import users as users_service
from orientation.services.coerce import optional_int

router = APIRouter()


def load_target(db: Session, actor: CurrentUser, raw_user_id: object) -> User:
    """The user named by user_id, or the caller when it is absent."""
    user_id = optional_int(raw_user_id, "invalid_user_id")
    user = users_service.get_user(db, user_id if user_id is not None else actor.id)
    if user is None:
        raise not_found("user_not_found")
    return user


@router.get("", response_model=PreferencesOut)
def get_preferences(
    actor: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    user_id: str | None = None,
) -> PreferencesOut:
    target = load_target(db, actor, user_id)
    if not preferences_service.can_access_preferences(db, actor, actor.id, target):
        raise forbidden()
    prefs = preferences_service.get_preferences(db, target.id)
    if prefs is None:
        return PreferencesOut(user_id=target.id)
    return PreferencesOut.model_validate(prefs)


@router.patch("", response_model=PreferencesOut)
def update_preferences(
    body: PreferencesUpdate,
    actor: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> PreferencesOut:
    """
    Only the fields present in the body change. Writing a program_id for
    someone else requires managing that program as well.
    """
    raw = body.model_dump(exclude_unset=True)
    target = load_target(db, actor, raw.pop("user_id", None))
    values = preferences_service.clean_preference_values(db, raw)
    if not preferences_service.can_access_preferences(
        db, actor, actor.id, target, program_id=values.get("program_id")
    ):
        raise forbidden()
    return PreferencesOut.model_validate(preferences_service.save_preferences(db, target.id, values))
