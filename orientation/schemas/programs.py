"""Schemas for programs."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from orientation.schemas.common import PageMeta


class ProgramOut(BaseModel):
    model_config = {"from_attributes": True}

    program_id: str
    title: str
    description: str | None = None
    status: str
    total_weeks: int | None = None
    department: str | None = None
    discipline_type: str | None = None
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


class ProgramsPage(BaseModel):
    data: list[ProgramOut]
    meta: PageMeta


class ProgramPayload(BaseModel):
    """
    Create/update body. ``dept`` and ``discipline`` are accepted as aliases
    for department and discipline_type.
    """

    model_config = {"extra": "ignore"}

    program_id: Any = None
    title: Any = None
    description: Any = None
    total_weeks: Any = None
    department: Any = None
    dept: Any = None
    discipline_type: Any = None
    discipline: Any = None


class ProgramCloneRequest(BaseModel):
    program_id: str | None = Field(default=None, max_length=255)
    title: str | None = Field(default=None, max_length=1000)


class InstantiateResponse(BaseModel):
    ok: bool = True
    created: int
