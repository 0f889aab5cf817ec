"""Read-only access to the trigger-maintained audit log."""

from sqlalchemy.orm import Session

from orientation.models import AuditLog
from orientation.services.pagination import Page, normalize_limit, normalize_offset


def list_audit_entries(
    db: Session,
    limit: object = None,
    offset: object = None,
    table_name: str | None = None,
    record_id: str | None = None,
) -> Page:
    """Newest first, optionally narrowed to one table and/or record."""
    lim = normalize_limit(limit)
    off = normalize_offset(offset)
    q = db.query(AuditLog)
    if table_name:
        q = q.filter(AuditLog.table_name == table_name)
    if record_id:
        q = q.filter(AuditLog.record_id == str(record_id))
    total = q.count()
    rows = (
        q.order_by(AuditLog.changed_at.desc(), AuditLog.audit_id.desc())
        .limit(lim)
        .offset(off)
        .all()
    )
    return Page(data=rows, total=total, limit=lim, offset=off)
