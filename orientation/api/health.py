"""Liveness check served at both /health and /api/health."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orientation.core.config import settings
from orientation.core.database import check_db_connected, get_db
from orientation.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    """Unauthenticated. ``ok`` stays true while the process serves requests, even if the database is down."""
    return HealthResponse(
        ok=True,
        environment=settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
    )
