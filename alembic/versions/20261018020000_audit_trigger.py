"""Install the row-change audit trigger on tracked tables (PostgreSQL only).

Revision ID: 20261018020000
Revises: 20261018010000
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op

revision: str = "20261018020000"
down_revision: Union[str, None] = "20261018010000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# (table, primary key column recorded as record_id)
TRACKED_TABLES = [
    ("users", "id"),
    ("user_roles", "user_id"),
    ("programs", "program_id"),
    ("program_memberships", "program_id"),
    ("program_task_templates", "template_id"),
    ("program_template_links", "id"),
    ("orientation_tasks", "task_id"),
]

AUDIT_FUNCTION = """
CREATE OR REPLACE FUNCTION audit_trigger()
RETURNS trigger
LANGUAGE plpgsql
AS $$
DECLARE
  pk_column text := TG_ARGV[0];
  row_data jsonb;
BEGIN
  IF TG_OP = 'DELETE' THEN
    row_data := to_jsonb(OLD);
  ELSE
    row_data := to_jsonb(NEW);
  END IF;
  INSERT INTO audit_log(table_name, operation, record_id, old_data, new_data, changed_by)
  VALUES (
    TG_TABLE_NAME,
    TG_OP,
    row_data ->> pk_column,
    CASE WHEN TG_OP IN ('UPDATE', 'DELETE') THEN to_jsonb(OLD) END,
    CASE WHEN TG_OP IN ('INSERT', 'UPDATE') THEN to_jsonb(NEW) END,
    coalesce(nullif(current_setting('app.current_user', true), ''), current_user)
  );
  IF TG_OP = 'DELETE' THEN
    RETURN OLD;
  END IF;
  RETURN NEW;
END
$$;
"""


def upgrade() -> None:
    if op.get_bind().dialect.name != "postgresql":
        return
    op.execute(AUDIT_FUNCTION)
    for table, pk_column in TRACKED_TABLES:
        op.execute(
            f"CREATE TRIGGER audit_{table} AFTER INSERT OR UPDATE OR DELETE ON {table} "
            f"FOR EACH ROW EXECUTE FUNCTION audit_trigger('{pk_column}')"
        )


def downgrade() -> None:
    if op.get_bind().dialect.name != "postgresql":
        return
    for table, _ in TRACKED_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS audit_{table} ON {table}")
    op.execute("DROP FUNCTION IF EXISTS audit_trigger()")
