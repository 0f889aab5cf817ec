"""ORM models for application users, roles and permissions (auth and RBAC)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from orientation.models.base import Base

USER_STATUSES = ("active", "pending", "suspended", "archived")


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    status: 'active', 'pending', 'suspended' or 'archived'. Roles are assigned
    through the user_roles join table.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=True, unique=True, index=True)
    email = Column(String(320), nullable=True, unique=True, index=True)
    full_name = Column(String(255), nullable=True)
    organization = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="active", index=True)
    password_hash = Column(String(255), nullable=True)
    provider = Column(String(32), nullable=False, default="local")
    google_id = Column(String(255), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, server_default=func.now())
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    roles = relationship("Role", secondary="user_roles", order_by="Role.role_key", lazy="selectin")


class Role(Base):
    """A named role (admin, manager, viewer, trainee, auditor)."""

    __tablename__ = "roles"

    role_id = Column(Integer, primary_key=True, autoincrement=True)
    role_key = Column(String(64), nullable=False, unique=True)
    description = Column(Text, nullable=True)


class Permission(Base):
    """A permission key such as 'template.update'."""

    __tablename__ = "permissions"

    perm_key = Column(String(128), primary_key=True)
    description = Column(Text, nullable=True)


class UserRole(Base):
    __tablename__ = "user_roles"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role_id = Column(Integer, ForeignKey("roles.role_id", ondelete="CASCADE"), primary_key=True)


class RolePermission(Base):
    __tablename__ = "role_permissions"

    role_id = Column(Integer, ForeignKey("roles.role_id", ondelete="CASCADE"), primary_key=True)
    perm_key = Column(
        String(128), ForeignKey("permissions.perm_key", ondelete="CASCADE"), primary_key=True
    )
