"""Local login/registration and the auth dependencies (get_current_user, require_permission)."""

import logging
from collections.abc import Callable
from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from orientation.api.errors import bad_request, forbidden, http_error
from orientation.core.config import get_settings
from orientation.core.database import get_db
from orientation.core.rbac import has_role, is_allowed
from orientation.core.security import (
    create_access_token,
    decode_access_token,
    is_account_disabled,
    valid_password,
    valid_username,
    verify_password,
)
from orientation.models import User
from orientation.schemas.auth import (
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
)
from orientation.schemas.common import OkResponse
from orientation.services import users as users_service

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)

_BEARER = {"WWW-Authenticate": "Bearer"}


def _unauthenticated(code: str = "unauthenticated"):
    return http_error(status.HTTP_401_UNAUTHORIZED, code, headers=_BEARER)


def to_current_user(db: Session, user: User) -> CurrentUser:
    return CurrentUser(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        email=user.email,
        organization=user.organization,
        status=user.status,
        roles=users_service.role_keys(user),
        perms=users_service.permissions_for(db, user.id),
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer JWT and return the current user.

    Roles and permissions are read from the database on every request.
    Raises 401 if the token is missing or invalid, 403 if the account has
    been suspended or archived since the token was issued.
    """
    if credentials is None:
        raise _unauthenticated()
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise _unauthenticated("invalid_token")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthenticated("invalid_token")
    user = users_service.get_user(db, user_id)
    if user is None:
        raise _unauthenticated()
    if is_account_disabled(user.status):
        raise http_error(status.HTTP_403_FORBIDDEN, "account_disabled")
    return to_current_user(db, user)


def require_permission(resource: str, action: str) -> Callable[..., CurrentUser]:
    """
    Dependency factory: the static policy must allow ``action`` on ``resource``
    for one of the user's roles, or a role must carry the matching
    ``resource.action`` permission grant.
    """

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not is_allowed(current_user, action, resource, current_user.perms):
            raise forbidden()
        return current_user

    return dependency


def require_roles(*roles: str) -> Callable[..., CurrentUser]:
    """Dependency factory: the user must hold at least one of ``roles``."""

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not has_role(current_user, *roles):
            raise forbidden()
        return current_user

    return dependency


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    """
    Authenticate with username and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    user = users_service.get_user_by_username(db, body.username.strip())
    if user is None or not verify_password(body.password, user.password_hash):
        raise _unauthenticated("invalid_credentials")
    if is_account_disabled(user.status):
        logger.info("Refused login for disabled account %s", user.id)
        raise http_error(status.HTTP_403_FORBIDDEN, "account_disabled")
    users_service.record_login(db, user)
    return TokenResponse(access_token=create_access_token(sub=user.id), token_type="bearer")


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    """Create a local account with the configured default role and sign it in."""
    username = body.username.strip()
    if not valid_username(username):
        raise bad_request("invalid_username")
    if not valid_password(body.password):
        raise bad_request("invalid_password")
    user = users_service.create_user(
        db,
        username=username,
        password=body.password,
        email=body.email,
        full_name=body.full_name,
        roles=[get_settings().DEFAULT_ROLE],
    )
    users_service.record_login(db, user)
    return TokenResponse(access_token=create_access_token(sub=user.id), token_type="bearer")


@router.post("/change-password", response_model=OkResponse)
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> OkResponse:
    user = users_service.get_user(db, current_user.id)
    users_service.change_password(db, user, body.current_password, body.new_password)
    return OkResponse()
