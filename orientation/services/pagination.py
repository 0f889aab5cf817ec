"""Bounded limit/offset pagination shared by the list endpoints."""

import math
from dataclasses import dataclass, field
from typing import Any

DEFAULT_LIMIT = 25
MAX_LIMIT = 100


@dataclass
class Page:
    """One page of rows plus the total matching the filters."""

    data: list[Any] = field(default_factory=list)
    total: int = 0
    limit: int = DEFAULT_LIMIT
    offset: int = 0


def _to_number(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def normalize_limit(value: object) -> int:
    """Non-numeric or non-positive -> DEFAULT_LIMIT; otherwise floored and capped at MAX_LIMIT."""
    number = _to_number(value)
    if number is None or number <= 0:
        return DEFAULT_LIMIT
    return min(math.floor(number), MAX_LIMIT)


def normalize_offset(value: object) -> int:
    """Non-numeric or negative -> 0; otherwise floored."""
    number = _to_number(value)
    if number is None or number < 0:
        return 0
    return math.floor(number)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user search text matches literally (escape char is backslash)."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_pattern(search: str | None) -> str | None:
    """Case-insensitive substring pattern for ``ilike``, or None for blank input."""
    if search is None:
        return None
    term = str(search).strip()
    if not term:
        return None
    return f"%{escape_like(term)}%"
