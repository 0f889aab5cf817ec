"""Schemas for orientation tasks."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel


class TaskOut(BaseModel):
    model_config = {"from_attributes": True}

    task_id: int
    user_id: int | None = None
    trainee: str | None = None
    label: str
    scheduled_for: date | None = None
    scheduled_time: str | None = None
    done: bool
    program_id: str | None = None
    week_number: int | None = None
    notes: str | None = None
    journal_entry: str | None = None
    responsible_person: str | None = None
    type_delivery: str | None = None
    deleted: bool
    created_at: datetime | None = None


class TaskCreate(BaseModel):
    """New task; user_id defaults to the caller. ``time`` aliases scheduled_time."""

    model_config = {"extra": "ignore"}

    user_id: int | None = None
    label: Any = None
    scheduled_for: Any = None
    scheduled_time: Any = None
    time: Any = None
    done: Any = None
    program_id: Any = None
    week_number: Any = None
    notes: Any = None
    journal_entry: Any = None
    responsible_person: Any = None
    type_delivery: Any = None
