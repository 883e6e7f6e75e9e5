"""Document store interfaces (ports) for the application layer.

Protocols define the contract the Firestore implementation (and test fakes)
fulfill. Types reference application DTOs only.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from datetime import datetime

    from liftmosque_admin.application.dtos.store import CollectionQuery, StoredDocument

SnapshotCallback = Callable[[list["StoredDocument"]], None]
ErrorCallback = Callable[[Exception], None]


class ISubscription(Protocol):
    """Handle of a standing realtime read.

    stop() is synchronous and idempotent: calling it again, or after the
    subscription degraded, has no effect and never raises.
    """

    @property
    def active(self) -> bool:
        """True until stopped or degraded."""

    @property
    def error(self) -> Exception | None:
        """The failure that degraded this subscription, if any."""

    def stop(self) -> None:
        """Stop delivering snapshots and release the channel."""


class IDocumentStore(Protocol):
    """Protocol for the remote realtime document store."""

    def subscribe(
        self,
        query: CollectionQuery,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> ISubscription:
        """Deliver the complete ordered result list now and after every change."""

    async def list(self, query: CollectionQuery) -> list[StoredDocument]:
        """One-shot read of a query."""

    async def get(self, collection: str, document_id: str) -> StoredDocument | None:
        """Return the document, or None if it does not exist."""

    async def create(
        self,
        collection: str,
        fields: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        """Create a document (generated id unless given); fail if the id exists. Return the id."""

    async def update(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
        *,
        if_update_time: datetime | None = None,
    ) -> None:
        """Merge fields into an existing document.

        With if_update_time, the write only applies if the document was not
        modified since that time (raises StateConflictException otherwise).
        """

    async def delete(self, collection: str, document_id: str) -> None:
        """Delete the document. Irreversible; idempotent when already missing."""
