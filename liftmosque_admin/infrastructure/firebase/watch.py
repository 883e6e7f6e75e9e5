"""Realtime channel for the Firestore REST store.

The REST API has no listen stream, so each subscription is a watcher task
that re-runs its query. A watcher runs its query again immediately when a
write to its collection is observed (local writes, or Redis change
notifications from other processes) and otherwise every poll interval.
Snapshots are delivered only when the result set changed, comparing
document ids, order and update times.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable

from liftmosque_admin.application.dtos.store import StoredDocument
from liftmosque_admin.application.interfaces.store import ErrorCallback, SnapshotCallback
from liftmosque_admin.shared.telemetry.tracing import add_span_event

logger = logging.getLogger(__name__)

Fetch = Callable[[], Awaitable[list[StoredDocument]]]


class ChangeNotifier:
    """Wake-up signals for the watchers of each collection in this process."""

    def __init__(self) -> None:
        self._events: dict[str, set[asyncio.Event]] = defaultdict(set)

    def register(self, collection: str) -> asyncio.Event:
        event = asyncio.Event()
        self._events[collection].add(event)
        return event

    def unregister(self, collection: str, event: asyncio.Event) -> None:
        watchers = self._events.get(collection)
        if watchers is None:
            return
        watchers.discard(event)
        if not watchers:
            del self._events[collection]

    def notify(self, collection: str) -> None:
        """Wake every watcher of collection."""
        for event in self._events.get(collection, ()):
            event.set()

    def watcher_count(self, collection: str) -> int:
        return len(self._events.get(collection, ()))


class PollingSubscription:
    """One standing query (implements ISubscription).

    Must be created inside a running event loop. The first result is always
    delivered. A failed fetch degrades the subscription: on_error is called
    once and no retry happens.
    """

    def __init__(
        self,
        collection: str,
        fetch: Fetch,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None,
        notifier: ChangeNotifier,
        interval: float,
    ) -> None:
        self._collection = collection
        self._fetch = fetch
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._notifier = notifier
        self._interval = interval
        self._active = True
        self._error: Exception | None = None
        self._wake = notifier.register(collection)
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"watch:{collection}"
        )

    @property
    def active(self) -> bool:
        return self._active

    @property
    def error(self) -> Exception | None:
        return self._error

    @property
    def collection(self) -> str:
        return self._collection

    def stop(self) -> None:
        """Stop the watcher. Synchronous and idempotent."""
        if not self._active:
            return
        self._active = False
        self._notifier.unregister(self._collection, self._wake)
        self._task.cancel()
        logger.debug("Stopped watcher on %s", self._collection)

    async def _run(self) -> None:
        last: list[tuple] | None = None
        try:
            while self._active:
                self._wake.clear()
                docs = await self._fetch()
                if not self._active:
                    return
                revisions = [doc.revision() for doc in docs]
                if revisions != last:
                    last = revisions
                    logger.debug(
                        "Snapshot of %s: %d documents", self._collection, len(docs)
                    )
                    self._on_snapshot(docs)
                try:
                    await asyncio.wait_for(self._wake.wait(), timeout=self._interval)
                except TimeoutError:
                    pass
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._degrade(e)

    def _degrade(self, error: Exception) -> None:
        if not self._active:
            return
        self._error = error
        self._active = False
        self._notifier.unregister(self._collection, self._wake)
        logger.warning("Watcher on %s degraded: %s", self._collection, error)
        add_span_event(
            "subscription.degraded",
            {"collection": self._collection, "error": type(error).__name__},
        )
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception:
            logger.exception("Subscription error handler failed for %s", self._collection)
