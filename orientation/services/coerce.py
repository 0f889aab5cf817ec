"""Coercion of loosely typed JSON input (numbers sent as strings, blank text)."""

import re

from orientation.core.errors import InvalidInputError

_INT_RE = re.compile(r"^-?\d+$")
_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


def optional_int(value: object, code: str) -> int | None:
    """None or blank -> None; integers (or integral strings/floats) -> int; anything else raises."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidInputError(code)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise InvalidInputError(code)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if _INT_RE.match(text):
            return int(text)
    raise InvalidInputError(code)


def optional_bool(value: object, code: str) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if not text:
            return None
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise InvalidInputError(code)


def optional_text(value: object) -> str | None:
    """Trim strings; blank or missing values become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_status(value: object) -> str | None:
    """Status filters are matched trimmed and lowercased; blank means no filter."""
    if not isinstance(value, str):
        return None
    return value.strip().lower() or None
