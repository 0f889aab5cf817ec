"""
Static role-based access control.

Use ``can(user, "create", "program")`` or ``has_role(user, "admin")``. The
policy table maps resource -> action -> roles allowed to perform it. There is
no role hierarchy: a role gets an action only if it is listed for it.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

ALL_ROLES: tuple[str, ...] = ("admin", "manager", "viewer", "trainee")
MANAGER_EDITABLE_ROLES: tuple[str, ...] = ("viewer", "trainee")
ROLE_KEYS: tuple[str, ...] = ALL_ROLES + ("auditor",)

POLICY: dict[str, dict[str, tuple[str, ...]]] = {
    "user": {
        "create": ("admin",),
        "read": ("admin", "manager", "viewer", "trainee"),
        "update": ("admin",),
        "manageRoles": ("admin", "manager"),
        "assignPrograms": ("admin", "manager"),
        "deactivate": ("admin",),
        "reactivate": ("admin",),
        "archive": ("admin",),
    },
    "program": {
        "create": ("admin", "manager"),
        "read": ("admin", "manager", "viewer", "trainee"),
        "update": ("admin", "manager"),
        "publish": ("admin", "manager"),
        "deprecate": ("admin", "manager"),
        "archive": ("admin",),
        "restore": ("admin",),
        "delete": ("admin",),
        "assignToUser": ("admin", "manager"),
    },
    "template": {
        "create": ("admin", "manager"),
        "read": ("admin", "manager", "viewer", "trainee"),
        "update": ("admin", "manager"),
        "delete": ("admin", "manager"),
    },
    # Everyone else needs a task.* grant from role_permissions.
    "task": {
        "create": ("admin",),
        "update": ("admin",),
        "assign": ("admin",),
        "delete": ("admin",),
    },
    "audit": {
        "read": ("admin", "auditor"),
    },
}


class HasRoles(Protocol):
    roles: list[str]


def has_role(user: HasRoles, *roles: str) -> bool:
    return any(role in user.roles for role in roles)


def can(user: HasRoles, action: str, resource: str) -> bool:
    """True if any of the user's roles is allowed ``action`` on ``resource``."""
    allowed = POLICY.get(resource, {}).get(action, ())
    return any(role in user.roles for role in allowed)


def permission_key(resource: str, action: str) -> str:
    """Key used in the role_permissions table, e.g. ``template.update``."""
    return f"{resource}.{action}"


def is_allowed(user: HasRoles, action: str, resource: str, perms: Iterable[str] = ()) -> bool:
    """Static policy check, extended by permission grants stored in the database."""
    if can(user, action, resource):
        return True
    return permission_key(resource, action) in set(perms)


def is_manager_only(user: HasRoles) -> bool:
    return has_role(user, "manager") and not has_role(user, "admin")


def disallowed_role_assignments(actor: HasRoles, requested: Iterable[str]) -> list[str]:
    """Roles in ``requested`` the actor may not grant (managers: viewer/trainee only)."""
    if has_role(actor, "admin"):
        return []
    if has_role(actor, "manager"):
        return [role for role in requested if role not in MANAGER_EDITABLE_ROLES]
    return list(requested)


def locked_roles(actor: HasRoles, target_roles: Iterable[str]) -> list[str]:
    """Target roles a manager-only actor can see but not toggle."""
    if not is_manager_only(actor):
        return []
    return [role for role in target_roles if role not in MANAGER_EDITABLE_ROLES]


@dataclass
class UserActionAvailability:
    """Which user-administration actions the actor may take on a target user."""

    can_invite: bool
    can_edit: bool
    can_manage_roles: bool
    can_assign_programs: bool
    can_deactivate: bool
    can_reactivate: bool
    can_archive: bool
    toggleable_roles: list[str] = field(default_factory=list)
    locked_roles: list[str] = field(default_factory=list)
    manager_only: bool = False


class UserLike(HasRoles, Protocol):
    status: str


def action_availability(actor: HasRoles, target: UserLike | None = None) -> UserActionAvailability:
    """Mirror of the admin UI's button gating, computed server-side."""
    can_manage = can(actor, "manageRoles", "user")
    manager_only = is_manager_only(actor)
    if not can_manage:
        toggleable: list[str] = []
    elif manager_only:
        toggleable = list(MANAGER_EDITABLE_ROLES)
    else:
        toggleable = list(ALL_ROLES)
    return UserActionAvailability(
        can_invite=can(actor, "create", "user"),
        can_edit=can(actor, "update", "user"),
        can_manage_roles=can_manage,
        can_assign_programs=can(actor, "assignPrograms", "user"),
        can_deactivate=bool(
            target is not None and target.status != "suspended" and can(actor, "deactivate", "user")
        ),
        can_reactivate=bool(
            target is not None and target.status == "suspended" and can(actor, "reactivate", "user")
        ),
        can_archive=bool(
            target is not None and target.status != "archived" and can(actor, "archive", "user")
        ),
        toggleable_roles=toggleable,
        locked_roles=locked_roles(actor, target.roles) if target is not None else [],
        manager_only=manager_only,
    )
