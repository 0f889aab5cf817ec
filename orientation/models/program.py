"""ORM models for onboarding programs and their memberships."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from orientation.models.base import Base

PROGRAM_STATUSES = ("draft", "published", "deprecated", "archived")
MEMBERSHIP_ROLES = ("manager", "trainee")


class Program(Base):
    """
    An onboarding curriculum composed of linked task templates.

    Soft-deleted via deleted_at; lifecycle status is independent of deletion.
    """

    __tablename__ = "programs"

    program_id = Column(String(255), primary_key=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="draft", index=True)
    total_weeks = Column(Integer, nullable=True)
    department = Column(Text, nullable=True)
    discipline_type = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)


class ProgramMembership(Base):
    """Who manages (role='manager') or is enrolled in (role='trainee') a program."""

    __tablename__ = "program_memberships"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    program_id = Column(
        String(255), ForeignKey("programs.program_id", ondelete="CASCADE"), primary_key=True
    )
    role = Column(String(32), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
