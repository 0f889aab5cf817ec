"""Schemas for per-user preferences."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel


class PreferencesOut(BaseModel):
    model_config = {"from_attributes": True}

    user_id: int
    program_id: str | None = None
    start_date: date | None = None
    num_weeks: int | None = None
    trainee: str | None = None
    updated_at: datetime | None = None


class PreferencesUpdate(BaseModel):
    """Fields are loosely typed so bad values map to 400 error codes."""

    model_config = {"extra": "ignore"}

    user_id: Any = None
    program_id: Any = None
    start_date: Any = None
    num_weeks: Any = None
    trainee: Any = None
