"""Seed default roles, permissions and role grants.

Revision ID: 20261018010000
Revises: 20261018000000
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20261018010000"
down_revision: Union[str, None] = "20261018000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLES = [
    ("admin", "Superuser with all permissions"),
    ("manager", "Program manager"),
    ("viewer", "Read-only access"),
    ("trainee", "Trainee user"),
    ("auditor", "Audit log reader"),
]

PERMISSIONS = [
    ("program.create", "Create programs"),
    ("program.read", "View programs"),
    ("program.update", "Edit programs"),
    ("program.delete", "Delete programs"),
    ("template.create", "Create templates"),
    ("template.read", "View templates"),
    ("template.update", "Edit templates"),
    ("template.delete", "Delete program task templates"),
    ("task.create", "Create tasks"),
    ("task.update", "Edit tasks"),
    ("task.assign", "Assign tasks to dates/users"),
    ("task.delete", "Delete tasks"),
    ("audit.read", "Read the audit log"),
]

_FULL = [key for key, _ in PERMISSIONS if key != "audit.read"]

GRANTS = {
    "admin": _FULL + ["audit.read"],
    "manager": _FULL,
    "viewer": ["program.read", "template.read"],
    "trainee": ["task.create", "task.update"],
    "auditor": ["program.read", "template.read", "audit.read"],
}

roles_table = sa.table(
    "roles",
    sa.column("role_id", sa.Integer),
    sa.column("role_key", sa.String),
    sa.column("description", sa.Text),
)
permissions_table = sa.table(
    "permissions",
    sa.column("perm_key", sa.String),
    sa.column("description", sa.Text),
)


def upgrade() -> None:
    op.bulk_insert(roles_table, [{"role_key": k, "description": d} for k, d in ROLES])
    op.bulk_insert(permissions_table, [{"perm_key": k, "description": d} for k, d in PERMISSIONS])
    for role_key, perm_keys in GRANTS.items():
        for perm_key in perm_keys:
            op.execute(
                sa.text(
                    "INSERT INTO role_permissions (role_id, perm_key) "
                    "SELECT role_id, :perm_key FROM roles WHERE role_key = :role_key"
                ).bindparams(role_key=role_key, perm_key=perm_key)
            )


def downgrade() -> None:
    op.execute("DELETE FROM role_permissions")
    op.execute("DELETE FROM permissions")
    op.execute("DELETE FROM roles")
