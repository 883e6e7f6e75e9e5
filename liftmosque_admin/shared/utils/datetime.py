"""
UTC datetime utilities for consistent timezone handling.

Every timestamp written to Firestore (createdAt, respondedAt) is a
timezone-aware UTC datetime. Use these helpers instead of datetime.now().
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_rfc3339(dt: datetime) -> str:
    """Format a datetime as the RFC 3339 'Z' string Firestore expects for timestampValue."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_rfc3339(value: str) -> datetime:
    """
    Parse a Firestore RFC 3339 timestamp into a UTC-aware datetime.

    Firestore returns up to nanosecond precision (9 fractional digits);
    datetime only keeps microseconds, so extra digits are truncated.
    """
    text = value.replace("Z", "+00:00")
    if "." in text:
        head, _, rest = text.partition(".")
        digits = ""
        for ch in rest:
            if not ch.isdigit():
                break
            digits += ch
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest[len(digits):]}"
    return ensure_utc(datetime.fromisoformat(text))
