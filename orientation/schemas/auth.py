"""Request/response schemas for auth and the signed-in user's profile."""

from typing import Any

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class RegisterRequest(BaseModel):
    """Self-service local account; validated against the username/password rules."""

    username: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)
    email: str | None = Field(default=None, max_length=320)
    full_name: str | None = Field(default=None, max_length=255)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., max_length=128)
    new_password: str = Field(..., max_length=128)


class TokenResponse(BaseModel):
    """JWT access token returned after successful login or registration."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class CurrentUser(BaseModel):
    """Authenticated user with roles and DB-granted permissions, for dependency injection."""

    model_config = {"from_attributes": True}

    id: int
    username: str | None = None
    full_name: str | None = None
    email: str | None = None
    organization: str | None = None
    status: str = "active"
    roles: list[str] = Field(default_factory=list)
    perms: list[str] = Field(default_factory=list)


class MeResponse(BaseModel):
    """Profile of the signed-in user as shown by GET /me."""

    id: int
    name: str | None = None
    email: str | None = None
    username: str | None = None
    organization: str | None = None
    status: str
    roles: list[str]
    perms: list[str]


class ProfileUpdate(BaseModel):
    """
    Partial profile edit. Values are trimmed server-side; a blank
    organization clears it. ``name`` is accepted as an alias for full_name.
    """

    model_config = {"extra": "ignore"}

    full_name: Any = None
    name: Any = None
    email: Any = None
    username: Any = None
    organization: Any = None
