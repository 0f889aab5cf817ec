"""Shared fixture for API tests: in-memory SQLite database and a TestClient with get_db overridden."""

import unittest
from collections.abc import Iterable

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from orientation.core.database import get_db
from orientation.core.rbac import ROLE_KEYS
from orientation.core.security import create_access_token, hash_password
from orientation.main import app
from orientation.models import (
    Base,
    Permission,
    Program,
    ProgramMembership,
    ProgramTaskTemplate,
    Role,
    RolePermission,
    User,
)

TEST_PASSWORD = "passpass"
# Minimum bcrypt cost keeps user setup fast.
FAST_ROUNDS = 4


class ApiTestCase(unittest.TestCase):
    """Fresh schema per test with the default roles seeded."""

    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        self.db = self.SessionLocal()
        self.db.add_all([Role(role_key=key, description=key.title()) for key in ROLE_KEYS])
        self.db.commit()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.db.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def fresh(self):
        """The test session with identity map expired, so reads see API writes."""
        self.db.expire_all()
        return self.db

    def make_user(self, username: str, roles: Iterable[str] = (), **fields) -> User:
        user = User(
            username=username,
            full_name=fields.pop("full_name", username.title()),
            password_hash=hash_password(TEST_PASSWORD, rounds=FAST_ROUNDS),
            status=fields.pop("status", "active"),
            provider="local",
            **fields,
        )
        user.roles = self.db.query(Role).filter(Role.role_key.in_(list(roles))).all()
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def grant(self, role_key: str, perm_key: str) -> None:
        if self.db.get(Permission, perm_key) is None:
            self.db.add(Permission(perm_key=perm_key))
        role = self.db.query(Role).filter(Role.role_key == role_key).one()
        self.db.add(RolePermission(role_id=role.role_id, perm_key=perm_key))
        self.db.commit()

    def make_program(self, program_id: str, title: str = "Program", status: str = "draft", **fields) -> Program:
        program = Program(program_id=program_id, title=title, status=status, **fields)
        self.db.add(program)
        self.db.commit()
        return program

    def make_manager_of(self, user: User, program_id: str) -> None:
        self.db.add(ProgramMembership(user_id=user.id, program_id=program_id, role="manager"))
        self.db.commit()

    def make_template(self, label: str, **fields) -> ProgramTaskTemplate:
        fields.setdefault("status", "draft")
        template = ProgramTaskTemplate(label=label, **fields)
        self.db.add(template)
        self.db.commit()
        self.db.refresh(template)
        return template

    def auth(self, user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(sub=user.id)}"}
