"""Audit log reader (admins and auditors)."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orientation.api.auth import require_permission
from orientation.core.database import get_db
from orientation.schemas.audit import AuditEntryOut, AuditPage
from orientation.schemas.auth import CurrentUser
from orientation.schemas.common import PageMeta
from orientation.services.audit import list_audit_entries

router = APIRouter()


@router.get("", response_model=AuditPage)
def get_audit_log(
    _user: Annotated[CurrentUser, Depends(require_permission("audit", "read"))],
    db: Annotated[Session, Depends(get_db)],
    limit: str | None = None,
    offset: str | None = None,
    table_name: str | None = None,
    record_id: str | None = None,
) -> AuditPage:
    """Newest changes first, as recorded by the database trigger."""
    page = list_audit_entries(db, limit, offset, table_name=table_name, record_id=record_id)
    return AuditPage(
        data=[AuditEntryOut.model_validate(row) for row in page.data],
        meta=PageMeta(total=page.total, limit=page.limit, offset=page.offset),
    )
