"""ORM model for per-user orientation preferences."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, func

from orientation.models.base import Base


class UserPreference(Base):
    """
    The user's current program and schedule settings (one row per user).

    program_id is updated whenever a program is instantiated for the user.
    """

    __tablename__ = "user_preferences"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    program_id = Column(
        String(255), ForeignKey("programs.program_id", ondelete="SET NULL"), nullable=True
    )
    start_date = Column(Date, nullable=True)
    num_weeks = Column(Integer, nullable=True)
    trainee = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, server_default=func.now())
