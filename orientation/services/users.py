"""User accounts: listing, profile edits, role assignment and status lifecycle."""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orientation.core.errors import (
    DuplicateUserError,
    ForbiddenError,
    InvalidInputError,
)
from orientation.core.rbac import (
    HasRoles,
    disallowed_role_assignments,
    has_role,
    locked_roles,
)
from orientation.core.security import (
    hash_password,
    valid_email,
    valid_password,
    valid_username,
    verify_password,
)
from orientation.models import Role, RolePermission, User, UserRole
from orientation.models.user import USER_STATUSES
from orientation.services.pagination import Page, normalize_limit, normalize_offset, search_pattern

logger = logging.getLogger(__name__)


def role_keys(user: User) -> list[str]:
    return sorted(role.role_key for role in user.roles)


def permissions_for(db: Session, user_id: int) -> list[str]:
    """Permission keys granted to the user through any of their roles."""
    rows = (
        db.query(RolePermission.perm_key)
        .join(UserRole, UserRole.role_id == RolePermission.role_id)
        .filter(UserRole.user_id == user_id)
        .distinct()
        .all()
    )
    return sorted(perm for (perm,) in rows)


def list_users(
    db: Session,
    limit: object = None,
    offset: object = None,
    query: str | None = None,
    role: str | None = None,
    status: str | None = None,
) -> Page:
    lim = normalize_limit(limit)
    off = normalize_offset(offset)
    q = db.query(User)
    pattern = search_pattern(query)
    if pattern is not None:
        q = q.filter(
            or_(
                User.full_name.ilike(pattern, escape="\\"),
                User.username.ilike(pattern, escape="\\"),
                User.email.ilike(pattern, escape="\\"),
            )
        )
    if role:
        q = q.filter(User.roles.any(Role.role_key == role))
    if status in USER_STATUSES:
        q = q.filter(User.status == status)
    total = q.count()
    rows = (
        q.order_by(User.full_name.asc().nulls_last(), User.username.asc(), User.id.asc())
        .limit(lim)
        .offset(off)
        .all()
    )
    return Page(data=rows, total=total, limit=lim, offset=off)


def all_users(db: Session) -> list[User]:
    return (
        db.query(User)
        .order_by(User.full_name.asc().nulls_last(), User.username.asc(), User.id.asc())
        .all()
    )


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def _conflict_exists(
    db: Session, username: str | None, email: str | None, exclude_id: int | None = None
) -> bool:
    clauses = []
    if username:
        clauses.append(User.username == username)
    if email:
        clauses.append(User.email == email)
    if not clauses:
        return False
    q = db.query(User.id).filter(or_(*clauses))
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.first() is not None


def clean_profile(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Trim a profile patch and validate it.

    ``name`` is accepted as an alias for full_name. A blank organization is
    stored as null; a blank email clears it. Raises InvalidInputError
    (invalid_username, invalid_email, invalid_name).
    """
    values: dict[str, Any] = {}
    if "full_name" in raw or "name" in raw:
        full_name = raw.get("full_name", raw.get("name"))
        full_name = full_name.strip() if isinstance(full_name, str) else None
        if not full_name:
            raise InvalidInputError("invalid_name")
        values["full_name"] = full_name
    if "username" in raw:
        username = raw["username"].strip() if isinstance(raw["username"], str) else raw["username"]
        if not valid_username(username):
            raise InvalidInputError("invalid_username")
        values["username"] = username
    if "email" in raw:
        email = raw["email"].strip() if isinstance(raw["email"], str) else raw["email"]
        if email in (None, ""):
            values["email"] = None
        elif not valid_email(email):
            raise InvalidInputError("invalid_email")
        else:
            values["email"] = email
    if "organization" in raw:
        organization = raw["organization"]
        organization = organization.strip() if isinstance(organization, str) else None
        values["organization"] = organization or None
    return values


def update_profile(db: Session, user: User, values: dict[str, Any]) -> User:
    """Apply a cleaned profile patch. Raises DuplicateUserError on username/email clashes."""
    if not values:
        return user
    if _conflict_exists(db, values.get("username"), values.get("email"), exclude_id=user.id):
        raise DuplicateUserError()
    for key, value in values.items():
        setattr(user, key, value)
    user.updated_at = datetime.now(timezone.utc)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateUserError() from None
    db.refresh(user)
    return user


def _load_roles(db: Session, keys: Iterable[str]) -> list[Role]:
    wanted = sorted(set(keys))
    if not wanted:
        return []
    roles = db.query(Role).filter(Role.role_key.in_(wanted)).all()
    if len(roles) != len(wanted):
        raise InvalidInputError("invalid_roles")
    return roles


def create_user(
    db: Session,
    username: str,
    password: str | None = None,
    email: str | None = None,
    full_name: str | None = None,
    organization: str | None = None,
    roles: Iterable[str] = (),
    status: str = "active",
    password_rounds: int | None = None,
) -> User:
    """Create a local account with the given roles. Raises DuplicateUserError."""
    values = clean_profile(
        {
            "username": username,
            "email": email,
            "organization": organization,
            **({"full_name": full_name} if full_name else {}),
        }
    )
    if password is not None and not valid_password(password):
        raise InvalidInputError("invalid_password")
    if status not in USER_STATUSES:
        raise InvalidInputError("invalid_status")
    if _conflict_exists(db, values.get("username"), values.get("email")):
        raise DuplicateUserError()
    now = datetime.now(timezone.utc)
    user = User(
        username=values["username"],
        email=values.get("email"),
        full_name=values.get("full_name") or values["username"],
        organization=values.get("organization"),
        status=status,
        provider="local",
        created_at=now,
        updated_at=now,
    )
    if password is not None:
        user.password_hash = (
            hash_password(password, rounds=password_rounds) if password_rounds else hash_password(password)
        )
    user.roles = _load_roles(db, roles)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateUserError() from None
    db.refresh(user)
    logger.info("Created user %s with roles %s", user.username, role_keys(user))
    return user


def set_roles(db: Session, actor: HasRoles, target: User, requested: Iterable[str]) -> list[str]:
    """
    Replace the target's roles.

    Admins may assign any role. Managers may only grant viewer/trainee and
    cannot remove the target's other roles, which are kept as-is. Anyone
    else is refused. Unknown role keys raise InvalidInputError.
    """
    if not has_role(actor, "admin", "manager"):
        raise ForbiddenError()
    wanted = sorted({str(role).strip().lower() for role in requested if str(role).strip()})
    if disallowed_role_assignments(actor, wanted):
        raise ForbiddenError()
    kept = locked_roles(actor, role_keys(target))
    target.roles = _load_roles(db, set(wanted) | set(kept))
    target.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(target)
    keys = role_keys(target)
    logger.info("Roles for user %s set to %s", target.id, keys)
    return keys


def set_status(db: Session, user: User, status: str, reason: str | None = None) -> User:
    """Account lifecycle: active, pending, suspended or archived."""
    if status not in USER_STATUSES:
        raise InvalidInputError("invalid_status")
    previous = user.status
    user.status = status
    user.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    if reason:
        logger.info("User %s status %s -> %s (reason: %s)", user.id, previous, status, reason)
    else:
        logger.info("User %s status %s -> %s", user.id, previous, status)
    return user


def record_login(db: Session, user: User) -> None:
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password or "", user.password_hash):
        raise InvalidInputError("invalid_current_password")
    if not valid_password(new_password):
        raise InvalidInputError("invalid_password")
    user.password_hash = hash_password(new_password)
    user.updated_at = datetime.now(timezone.utc)
    db.commit()
    logger.info("Password changed for user %s", user.id)
