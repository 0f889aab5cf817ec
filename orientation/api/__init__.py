"""HTTP routes: the JSON API (mounted under API_PREFIX) and the legacy root routes."""

from fastapi import APIRouter

from orientation.api import (
    audit,
    auth,
    health,
    legacy,
    me,
    prefs,
    programs,
    roles,
    tasks,
    templates,
    users,
)

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth/local", tags=["auth"])
router.include_router(me.router, prefix="/me", tags=["me"])
router.include_router(prefs.router, prefix="/prefs", tags=["prefs"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(roles.router, prefix="/roles", tags=["roles"])
router.include_router(programs.router, prefix="/programs", tags=["programs"])
router.include_router(templates.router, prefix="/templates", tags=["templates"])
router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
router.include_router(audit.router, prefix="/audit", tags=["audit"])

# Historical paths served at the root, outside API_PREFIX.
legacy_router = APIRouter()
legacy_router.include_router(health.router, prefix="/health", tags=["health"])
legacy_router.include_router(auth.router, prefix="/auth/local", tags=["auth"])
legacy_router.include_router(me.router, prefix="/me", tags=["me"])
legacy_router.include_router(prefs.router, prefix="/prefs", tags=["prefs"])
legacy_router.include_router(legacy.router, tags=["legacy"])
