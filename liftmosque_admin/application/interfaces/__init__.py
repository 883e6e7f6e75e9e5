"""Application ports (Protocols)."""

from liftmosque_admin.application.interfaces.identity import (
    IAuthContext,
    IdentityListener,
    IIdentityProvider,
)
from liftmosque_admin.application.interfaces.store import (
    ErrorCallback,
    IDocumentStore,
    ISubscription,
    SnapshotCallback,
)

__all__ = [
    "ErrorCallback",
    "IAuthContext",
    "IDocumentStore",
    "IIdentityProvider",
    "ISubscription",
    "IdentityListener",
    "SnapshotCallback",
]
