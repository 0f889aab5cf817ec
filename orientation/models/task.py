"""ORM model for concrete orientation tasks assigned to a user."""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, func

from orientation.models.base import Base


class OrientationTask(Base):
    """
    A task instance for one user, usually instantiated from a program template.

    Soft-deleted via the ``deleted`` flag so it can be restored.
    """

    __tablename__ = "orientation_tasks"

    task_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    trainee = Column(Text, nullable=True)
    label = Column(Text, nullable=False)
    scheduled_for = Column(Date, nullable=True)
    scheduled_time = Column(String(16), nullable=True)
    done = Column(Boolean, nullable=False, default=False)
    program_id = Column(String(255), nullable=True, index=True)
    week_number = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    journal_entry = Column(Text, nullable=True)
    responsible_person = Column(Text, nullable=True)
    type_delivery = Column(Text, nullable=True)
    deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
