"""Operator profile: the role/scope record for an authenticated identity.

A profile is a tagged variant. A GlobalAdminProfile sees everything; a
MosqueAdminProfile always carries the mosque it is scoped to. Profiles live
in the ``users`` collection under the identity's uid.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar

from liftmosque_admin.domain.entities._fields import text, timestamp
from liftmosque_admin.domain.enums import AdminRole, MissingProfilePolicy
from liftmosque_admin.domain.exceptions import (
    AuthorizationException,
    ValidationException,
)


@dataclass(frozen=True)
class _ProfileBase:
    uid: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    created_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)


@dataclass(frozen=True)
class GlobalAdminProfile(_ProfileBase):
    """Unrestricted operator."""

    role: ClassVar[AdminRole] = AdminRole.GLOBAL_ADMIN

    @property
    def mosque_id(self) -> None:
        return None


@dataclass(frozen=True, kw_only=True)
class MosqueAdminProfile(_ProfileBase):
    """Operator scoped to exactly one mosque."""

    role: ClassVar[AdminRole] = AdminRole.MOSQUE_ADMIN
    mosque_id: str

    def __post_init__(self) -> None:
        if not self.mosque_id:
            raise ValidationException(
                "A mosque_admin profile requires a mosqueId", field="mosqueId"
            )


Profile = GlobalAdminProfile | MosqueAdminProfile


def profile_from_document(
    uid: str,
    data: dict[str, Any] | None,
    missing_policy: MissingProfilePolicy,
) -> Profile:
    """Resolve the profile for uid from its (possibly missing) document.

    A missing document, or one without a role, falls under missing_policy.
    Unknown roles and mosque_admin documents without a mosqueId are refused
    instead of being widened to unrestricted access.

    Raises:
        AuthorizationException: If the policy denies or the document is unusable.
    """
    data = data or {}
    common = {
        "uid": uid,
        "email": text(data, "email"),
        "first_name": text(data, "firstName"),
        "last_name": text(data, "lastName"),
        "phone": text(data, "phone"),
        "created_at": timestamp(data, "createdAt"),
    }
    role = text(data, "role")
    if role is None:
        if missing_policy == MissingProfilePolicy.GLOBAL_ADMIN:
            return GlobalAdminProfile(**common)
        raise AuthorizationException(
            message="No administrator profile exists for this account"
        )
    if role == AdminRole.GLOBAL_ADMIN.value:
        return GlobalAdminProfile(**common)
    if role == AdminRole.MOSQUE_ADMIN.value:
        mosque_id = text(data, "mosqueId")
        if mosque_id is None:
            raise AuthorizationException(
                message="Mosque administrator profile has no mosque assigned"
            )
        return MosqueAdminProfile(mosque_id=mosque_id, **common)
    raise AuthorizationException(message=f"Unsupported administrator role: {role!r}")


def mosque_admin_document(
    email: str,
    mosque_id: str,
    created_at: datetime,
    mosque_name: str | None = None,
) -> dict[str, Any]:
    """Profile document for a newly provisioned mosque administrator.

    Name fields are placeholders the new admin can change from the app.
    """
    return {
        "role": AdminRole.MOSQUE_ADMIN.value,
        "mosqueId": mosque_id,
        "email": email,
        "firstName": "Admin",
        "lastName": mosque_name or "",
        "phone": "",
        "createdAt": created_at,
    }


def is_admin_profile_document(data: dict[str, Any]) -> bool:
    """True when a users document carries a console role (an operator profile)."""
    return text(data, "role") is not None
