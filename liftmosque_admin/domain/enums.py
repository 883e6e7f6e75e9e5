"""Domain enumerations for the console.

Enums represent fixed sets of domain values stored as strings in Firestore.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class AdminRole(_ValuesMixin, str, Enum):
    """Role of a console operator (Profile.role)."""

    GLOBAL_ADMIN = "global_admin"
    MOSQUE_ADMIN = "mosque_admin"


class ReportStatus(_ValuesMixin, str, Enum):
    """Report lifecycle. Only PENDING -> ALERTED is allowed, exactly once."""

    PENDING = "pending"
    ALERTED = "alerted"


class RecordKind(_ValuesMixin, str, Enum):
    """The four record types the console manages."""

    MOSQUE = "mosque"
    TRIP = "trip"
    USER = "user"
    REPORT = "report"


class MissingProfilePolicy(_ValuesMixin, str, Enum):
    """What to do when an authenticated identity has no profile document."""

    GLOBAL_ADMIN = "global_admin"
    DENY = "deny"


class SortDirection(_ValuesMixin, str, Enum):
    """Firestore structured query order direction."""

    ASCENDING = "ASCENDING"
    DESCENDING = "DESCENDING"
