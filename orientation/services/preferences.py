"""Per-user preferences: the current program plus schedule settings."""

import logging
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from orientation.core.errors import InvalidInputError, NotFoundError
from orientation.core.rbac import HasRoles, has_role
from orientation.models import User, UserPreference
from orientation.services import programs as programs_service
from orientation.services.coerce import optional_int, optional_text
from orientation.services.users import role_keys

logger = logging.getLogger(__name__)

PREFERENCE_FIELDS: tuple[str, ...] = ("program_id", "start_date", "num_weeks", "trainee")


def get_preferences(db: Session, user_id: int) -> UserPreference | None:
    return db.get(UserPreference, user_id)


def _parse_start_date(value: object) -> date | None:
    if value is None or value == "":
        return None
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise InvalidInputError("invalid_start_date") from None


def clean_preference_values(db: Session, raw: dict[str, Any]) -> dict[str, Any]:
    """Coerce a preferences patch. A program_id must name an existing program."""
    values: dict[str, Any] = {}
    if "program_id" in raw:
        program_id = optional_text(raw["program_id"])
        if program_id is not None and programs_service.get_program(db, program_id) is None:
            raise NotFoundError("program_not_found")
        values["program_id"] = program_id
    if "start_date" in raw:
        values["start_date"] = _parse_start_date(raw["start_date"])
    if "num_weeks" in raw:
        weeks = optional_int(raw["num_weeks"], "invalid_num_weeks")
        if weeks is not None and weeks < 1:
            raise InvalidInputError("invalid_num_weeks")
        values["num_weeks"] = weeks
    if "trainee" in raw:
        values["trainee"] = optional_text(raw["trainee"])
    return values


def stage_preferences(db: Session, user_id: int, values: dict[str, Any]) -> UserPreference:
    """Insert or update the user's row in the session without committing."""
    prefs = get_preferences(db, user_id)
    if prefs is None:
        prefs = UserPreference(user_id=user_id)
        db.add(prefs)
    for key, value in values.items():
        if key in PREFERENCE_FIELDS:
            setattr(prefs, key, value)
    prefs.updated_at = datetime.now(timezone.utc)
    return prefs


def save_preferences(db: Session, user_id: int, values: dict[str, Any]) -> UserPreference:
    prefs = stage_preferences(db, user_id, values)
    db.commit()
    db.refresh(prefs)
    logger.info("Updated preferences for user %s", user_id)
    return prefs


def can_access_preferences(
    db: Session,
    actor: HasRoles,
    actor_id: int,
    target: User,
    program_id: str | None = None,
) -> bool:
    """
    Admins reach everyone's preferences and users always reach their own.

    Anyone else needs to manage the target's current program, and the
    program_id being written when one is given. An admin's preferences are
    never reachable by a non-admin.
    """
    if has_role(actor, "admin") or target.id == actor_id:
        return True
    if "admin" in role_keys(target):
        return False
    current = get_preferences(db, target.id)
    if current is None or not current.program_id:
        return False
    if not programs_service.is_program_manager(db, actor_id, current.program_id):
        return False
    if program_id is not None and not programs_service.is_program_manager(db, actor_id, program_id):
        return False
    return True
