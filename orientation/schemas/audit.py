"""Schemas for the audit log."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from orientation.schemas.common import PageMeta


class AuditEntryOut(BaseModel):
    model_config = {"from_attributes": True}

    audit_id: int
    table_name: str
    operation: str
    record_id: str | None = None
    old_data: dict[str, Any] | None = None
    new_data: dict[str, Any] | None = None
    changed_at: datetime | None = None
    changed_by: str | None = None


class AuditPage(BaseModel):
    data: list[AuditEntryOut]
    meta: PageMeta
