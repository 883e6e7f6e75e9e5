"""User domain entity (the ``users`` collection, which also holds admin profiles)."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from liftmosque_admin.domain.entities._fields import text, timestamp


@dataclass(frozen=True)
class UserEntity:
    """An app user as listed by the console."""

    id: str
    first_name: str | None
    last_name: str | None
    email: str | None
    phone: str | None
    mosque_id: str | None = None
    role: str | None = None
    created_at: datetime | None = None

    @property
    def display_name(self) -> str:
        """'First Last', skipping missing parts; empty when both are missing."""
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def matches(self, term: str) -> bool:
        """Case-insensitive search on full name or email; substring match on phone.

        An empty term matches every user.
        """
        needle = term.strip().lower()
        if not needle:
            return True
        full_name = f"{self.first_name or ''} {self.last_name or ''}".lower()
        if needle in full_name:
            return True
        if self.email and needle in self.email.lower():
            return True
        return bool(self.phone and term.strip() in self.phone)

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "UserEntity":
        return cls(
            id=doc_id,
            first_name=text(data, "firstName"),
            last_name=text(data, "lastName"),
            email=text(data, "email"),
            phone=text(data, "phone"),
            mosque_id=text(data, "mosqueId"),
            role=text(data, "role"),
            created_at=timestamp(data, "createdAt"),
        )
