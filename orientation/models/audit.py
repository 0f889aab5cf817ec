"""ORM model for the append-only audit log.

Rows are written by the ``audit_trigger`` database function installed by the
migrations; the application only reads them.
"""

from sqlalchemy import JSON, BigInteger, Column, DateTime, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB

from orientation.models.base import Base

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class AuditLog(Base):
    __tablename__ = "audit_log"

    audit_id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    table_name = Column(String(255), nullable=False, index=True)
    operation = Column(String(16), nullable=False)
    record_id = Column(Text, nullable=True, index=True)
    old_data = Column(JSONDocument, nullable=True)
    new_data = Column(JSONDocument, nullable=True)
    changed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    changed_by = Column(Text, nullable=True)
