"""DTOs for authentication (no tokens leave the auth context)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """An authenticated principal: the operator or a freshly provisioned admin."""

    uid: str
    email: str | None


@dataclass(frozen=True)
class AdminProvisionResult:
    """Result of provisioning a mosque administrator. The password is never included."""

    uid: str
    email: str
    mosque_id: str
