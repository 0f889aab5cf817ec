"""ORM models for reusable task templates and their program links."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)

from orientation.models.base import Base


class ProgramTaskTemplate(Base):
    """
    A reusable task definition that can be attached to many programs.

    status: 'draft', 'published' or 'deprecated'. Soft-deleted via deleted_at.
    """

    __tablename__ = "program_task_templates"

    template_id = Column(Integer, primary_key=True, autoincrement=True)
    week_number = Column(Integer, nullable=True)
    label = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    due_offset_days = Column(Integer, nullable=True)
    required = Column(Boolean, nullable=True)
    visibility = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=True)
    status = Column(String(32), nullable=False, default="draft", index=True)
    organization = Column(Text, nullable=True)
    sub_unit = Column(Text, nullable=True)
    discipline_type = Column(Text, nullable=True)
    type_delivery = Column(Text, nullable=True)
    department = Column(Text, nullable=True)
    external_link = Column(Text, nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)


class ProgramTemplateLink(Base):
    """
    Many-to-many link attaching a template to a program.

    Besides membership the link carries per-program overrides; a non-null
    override wins over the template's own value when the program is listed
    or instantiated.
    """

    __tablename__ = "program_template_links"
    __table_args__ = (
        UniqueConstraint("program_id", "template_id", name="program_template_links_program_template_key"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    program_id = Column(
        String(255),
        ForeignKey("programs.program_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    template_id = Column(
        Integer,
        ForeignKey("program_task_templates.template_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    week_number = Column(Integer, nullable=True)
    sort_order = Column(Integer, nullable=True)
    due_offset_days = Column(Integer, nullable=True)
    required = Column(Boolean, nullable=True)
    visibility = Column(Text, nullable=True)
    visible = Column(Boolean, nullable=True, default=True)
    notes = Column(Text, nullable=True)
    external_link = Column(Text, nullable=True)
    type_delivery = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=True, server_default=func.now(), onupdate=func.now()
    )
