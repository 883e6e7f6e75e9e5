"""Lenient readers for loosely-typed Firestore document fields."""

from datetime import datetime
from typing import Any

from liftmosque_admin.shared.utils.datetime import ensure_utc, parse_rfc3339


def text(data: dict[str, Any], key: str) -> str | None:
    """Return a non-empty string field, or None when absent/blank/not a string."""
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


def timestamp(data: dict[str, Any], key: str) -> datetime | None:
    """Return a UTC datetime from a timestamp or ISO string field, else None."""
    value = data.get(key)
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        try:
            return parse_rfc3339(value)
        except ValueError:
            return None
    return None
