"""Initial schema: users/RBAC, programs, templates, links, tasks and audit log.

Revision ID: 20261018000000
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "20261018000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("organization", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), server_default="active", nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("provider", sa.String(length=32), server_default="local", nullable=False),
        sa.Column("google_id", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("google_id"),
    )
    op.create_index(op.f("ix_users_username"), "users", ["username"], unique=True)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_status"), "users", ["status"], unique=False)

    op.create_table(
        "roles",
        sa.Column("role_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("role_key", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("role_id"),
        sa.UniqueConstraint("role_key"),
    )
    op.create_table(
        "permissions",
        sa.Column("perm_key", sa.String(length=128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("perm_key"),
    )
    op.create_table(
        "user_roles",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["role_id"], ["roles.role_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "role_id"),
    )
    op.create_table(
        "role_permissions",
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("perm_key", sa.String(length=128), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.role_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["perm_key"], ["permissions.perm_key"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("role_id", "perm_key"),
    )

    op.create_table(
        "programs",
        sa.Column("program_id", sa.String(length=255), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), server_default="draft", nullable=False),
        sa.Column("total_weeks", sa.Integer(), nullable=True),
        sa.Column("department", sa.Text(), nullable=True),
        sa.Column("discipline_type", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("program_id"),
        sa.CheckConstraint("total_weeks IS NULL OR total_weeks >= 1", name="programs_total_weeks_positive"),
    )
    op.create_index(op.f("ix_programs_status"), "programs", ["status"], unique=False)

    op.create_table(
        "program_memberships",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("program_id", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["program_id"], ["programs.program_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "program_id", "role"),
        sa.CheckConstraint("role IN ('manager', 'trainee')", name="program_memberships_role_check"),
    )

    op.create_table(
        "program_task_templates",
        sa.Column("template_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=True),
        sa.Column("label", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("due_offset_days", sa.Integer(), nullable=True),
        sa.Column("required", sa.Boolean(), nullable=True),
        sa.Column("visibility", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=32), server_default="draft", nullable=False),
        sa.Column("organization", sa.Text(), nullable=True),
        sa.Column("sub_unit", sa.Text(), nullable=True),
        sa.Column("discipline_type", sa.Text(), nullable=True),
        sa.Column("type_delivery", sa.Text(), nullable=True),
        sa.Column("department", sa.Text(), nullable=True),
        sa.Column("external_link", sa.Text(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("template_id"),
        sa.CheckConstraint(
            "status IN ('draft', 'published', 'deprecated')",
            name="program_task_templates_status_check",
        ),
    )
    op.create_index(
        op.f("ix_program_task_templates_status"), "program_task_templates", ["status"], unique=False
    )

    op.create_table(
        "program_template_links",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("program_id", sa.String(length=255), nullable=False),
        sa.Column("template_id", sa.Integer(), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=True),
        sa.Column("due_offset_days", sa.Integer(), nullable=True),
        sa.Column("required", sa.Boolean(), nullable=True),
        sa.Column("visibility", sa.Text(), nullable=True),
        sa.Column("visible", sa.Boolean(), server_default=sa.true(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("external_link", sa.Text(), nullable=True),
        sa.Column("type_delivery", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("updated_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["program_id"], ["programs.program_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["template_id"], ["program_task_templates.template_id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["updated_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "program_id", "template_id", name="program_template_links_program_template_key"
        ),
    )
    op.create_index(
        op.f("ix_program_template_links_program_id"), "program_template_links", ["program_id"], unique=False
    )
    op.create_index(
        op.f("ix_program_template_links_template_id"), "program_template_links", ["template_id"], unique=False
    )

    op.create_table(
        "orientation_tasks",
        sa.Column("task_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("trainee", sa.Text(), nullable=True),
        sa.Column("label", sa.Text(), nullable=False),
        sa.Column("scheduled_for", sa.Date(), nullable=True),
        sa.Column("scheduled_time", sa.String(length=16), nullable=True),
        sa.Column("done", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("program_id", sa.String(length=255), nullable=True),
        sa.Column("week_number", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("journal_entry", sa.Text(), nullable=True),
        sa.Column("responsible_person", sa.Text(), nullable=True),
        sa.Column("type_delivery", sa.Text(), nullable=True),
        sa.Column("deleted", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("task_id"),
    )
    op.create_index(op.f("ix_orientation_tasks_user_id"), "orientation_tasks", ["user_id"], unique=False)
    op.create_index(
        op.f("ix_orientation_tasks_program_id"), "orientation_tasks", ["program_id"], unique=False
    )

    op.create_table(
        "audit_log",
        sa.Column("audit_id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("table_name", sa.String(length=255), nullable=False),
        sa.Column("operation", sa.String(length=16), nullable=False),
        sa.Column("record_id", sa.Text(), nullable=True),
        sa.Column("old_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("new_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("changed_by", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("audit_id"),
    )
    op.create_index(op.f("ix_audit_log_table_name"), "audit_log", ["table_name"], unique=False)
    op.create_index(op.f("ix_audit_log_record_id"), "audit_log", ["record_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_audit_log_record_id"), table_name="audit_log")
    op.drop_index(op.f("ix_audit_log_table_name"), table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_index(op.f("ix_orientation_tasks_program_id"), table_name="orientation_tasks")
    op.drop_index(op.f("ix_orientation_tasks_user_id"), table_name="orientation_tasks")
    op.drop_table("orientation_tasks")
    op.drop_index(op.f("ix_program_template_links_template_id"), table_name="program_template_links")
    op.drop_index(op.f("ix_program_template_links_program_id"), table_name="program_template_links")
    op.drop_table("program_template_links")
    op.drop_index(op.f("ix_program_task_templates_status"), table_name="program_task_templates")
    op.drop_table("program_task_templates")
    op.drop_table("program_memberships")
    op.drop_index(op.f("ix_programs_status"), table_name="programs")
    op.drop_table("programs")
    op.drop_table("role_permissions")
    op.drop_table("user_roles")
    op.drop_table("permissions")
    op.drop_table("roles")
    op.drop_index(op.f("ix_users_status"), table_name="users")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_index(op.f("ix_users_username"), table_name="users")
    op.drop_table("users")
