"""Settings, database sessions, domain errors, password/JWT helpers and the RBAC policy."""

from orientation.core.config import get_settings, settings
from orientation.core.database import get_db, session_scope
from orientation.core.errors import ServiceError
from orientation.core.rbac import POLICY, can, has_role

__all__ = [
    "POLICY",
    "ServiceError",
    "can",
    "get_db",
    "get_settings",
    "has_role",
    "session_scope",
    "settings",
]
