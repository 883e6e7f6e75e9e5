"""Firestore implementation of IDocumentStore.

Maps REST client errors to domain exceptions, runs standing queries through
PollingSubscription, and announces every successful write to local watchers
(and, when Redis is connected, to other console processes).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from liftmosque_admin.application.dtos.store import CollectionQuery, StoredDocument
from liftmosque_admin.application.interfaces.store import ErrorCallback, SnapshotCallback
from liftmosque_admin.domain.exceptions import (
    ResourceNotFoundException,
    StateConflictException,
)
from liftmosque_admin.infrastructure.firebase._rest_client import (
    DocumentExistsError,
    DocumentMissingError,
    DocumentSnapshot,
    FirestoreRESTClient,
    PreconditionFailedError,
)
from liftmosque_admin.infrastructure.firebase.watch import ChangeNotifier, PollingSubscription
from liftmosque_admin.shared.utils.generators import generate_document_id

if TYPE_CHECKING:
    from liftmosque_admin.infrastructure.messaging.redis_pubsub import (
        CollectionChangePublisher,
    )

logger = logging.getLogger(__name__)


def _stored(snapshot: DocumentSnapshot) -> StoredDocument:
    return StoredDocument(
        id=snapshot.id,
        data=snapshot.to_dict(),
        update_time=snapshot.update_time,
    )


class FirestoreDocumentStore:
    """Document store backed by the Firestore REST API."""

    def __init__(
        self,
        client: FirestoreRESTClient,
        *,
        notifier: ChangeNotifier | None = None,
        publisher: CollectionChangePublisher | None = None,
        poll_interval: float = 5.0,
    ) -> None:
        self.client = client
        self.notifier = notifier or ChangeNotifier()
        self.publisher = publisher
        self.poll_interval = poll_interval

    def subscribe(
        self,
        query: CollectionQuery,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> PollingSubscription:
        return PollingSubscription(
            query.collection,
            lambda: self.list(query),
            on_snapshot,
            on_error,
            self.notifier,
            self.poll_interval,
        )

    async def list(self, query: CollectionQuery) -> list[StoredDocument]:
        q = self.client.collection(query.collection).query()
        if query.where is not None:
            q = q.where(query.where.field, query.where.op, query.where.value)
        if query.order_by:
            q = q.order_by(query.order_by, query.direction)
        return [_stored(snapshot) for snapshot in await q.get()]

    async def get(self, collection: str, document_id: str) -> StoredDocument | None:
        snapshot = await self.client.collection(collection).document(document_id).get()
        return _stored(snapshot) if snapshot is not None else None

    async def create(
        self,
        collection: str,
        fields: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        """Create a document; a generated cuid2 id is used unless document_id is given.

        Raises:
            StateConflictException: If a document with that id already exists.
        """
        doc_id = document_id or generate_document_id()
        try:
            await self.client.collection(collection).create(doc_id, fields)
        except DocumentExistsError as e:
            raise StateConflictException(
                f"{collection}/{doc_id} already exists",
                collection=collection,
                document_id=doc_id,
            ) from e
        logger.info("Created %s/%s", collection, doc_id)
        await self._changed(collection, doc_id)
        return doc_id

    async def update(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
        *,
        if_update_time: datetime | None = None,
    ) -> None:
        """Merge fields into an existing document.

        Raises:
            ResourceNotFoundException: If the document does not exist.
            StateConflictException: If if_update_time is stale.
        """
        ref = self.client.collection(collection).document(document_id)
        try:
            await ref.update(fields, if_update_time=if_update_time)
        except DocumentMissingError as e:
            raise ResourceNotFoundException(collection, document_id) from e
        except PreconditionFailedError as e:
            raise StateConflictException(
                f"{collection}/{document_id} was modified concurrently",
                collection=collection,
                document_id=document_id,
            ) from e
        logger.info("Updated %s/%s", collection, document_id)
        await self._changed(collection, document_id)

    async def delete(self, collection: str, document_id: str) -> None:
        await self.client.collection(collection).document(document_id).delete()
        logger.info("Deleted %s/%s", collection, document_id)
        await self._changed(collection, document_id)

    async def _changed(self, collection: str, document_id: str) -> None:
        self.notifier.notify(collection)
        if self.publisher is not None:
            await self.publisher.publish(collection, document_id)
