"""Password hashing and JWT creation/verification for authentication."""

import re
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from orientation.core.config import settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Local account rules shared by register, login and profile edits.
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9._-]{3,32}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

DISABLED_STATUSES = frozenset({"suspended", "archived"})


def valid_username(username: object) -> bool:
    return isinstance(username, str) and bool(USERNAME_PATTERN.match(username))


def valid_password(password: object) -> bool:
    return isinstance(password, str) and PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN


def valid_email(email: object) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email))


def is_account_disabled(status: object) -> bool:
    """Suspended and archived accounts may not sign in."""
    return isinstance(status, str) and status.strip().lower() in DISABLED_STATUSES


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash."""
    if not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(sub: str | int) -> str:
    """Create a JWT access token with sub (user id) and exp.

    Roles are not embedded: they are reloaded from the database on every
    request so that role changes take effect immediately.
    """
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(sub),
        "exp": expire,
        "iat": now,
    }
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (sub, exp, iat).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
    )
