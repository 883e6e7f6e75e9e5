"""Live, scope-filtered record lists for the Presentation Layer.

One LiveCollection per record kind holds a standing store subscription and
the latest typed, scope-filtered list. LiveCollections follows the session:
every scope change stops the old subscriptions before opening new ones, and
sign-out stops them all. Listeners always receive the complete list.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from liftmosque_admin.application.dtos.layout import CollectionLayout
from liftmosque_admin.application.dtos.scope import UNRESTRICTED, ScopePredicate
from liftmosque_admin.application.dtos.store import CollectionQuery, StoredDocument
from liftmosque_admin.application.dtos.views import DashboardCounts, ReportView
from liftmosque_admin.application.interfaces.store import IDocumentStore, ISubscription
from liftmosque_admin.application.services.session_store import SessionSnapshot, SessionStore
from liftmosque_admin.domain.entities.mosque import MosqueEntity
from liftmosque_admin.domain.entities.report import ReportEntity
from liftmosque_admin.domain.entities.trip import TripEntity
from liftmosque_admin.domain.entities.user import UserEntity
from liftmosque_admin.domain.enums import RecordKind
from liftmosque_admin.domain.exceptions import ValidationException

logger = logging.getLogger(__name__)

T = TypeVar("T")

RecordMapper = Callable[[str, dict[str, Any]], T]

UNKNOWN_NAME = "Unknown"


class LiveCollection(Generic[T]):
    """Latest scope-filtered list of one collection, kept live by a subscription.

    Documents that cannot be mapped to records (e.g. a mosque without valid
    coordinates) are skipped with a warning instead of failing the list.
    """

    def __init__(
        self,
        store: IDocumentStore,
        layout: CollectionLayout,
        mapper: RecordMapper[T],
        *,
        pushdown: bool = False,
    ) -> None:
        self._store = store
        self.layout = layout
        self._mapper = mapper
        self._pushdown = pushdown
        self._records: list[T] = []
        self._listeners: list[Callable[[list[T]], None]] = []
        self._error_listeners: list[Callable[[Exception], None]] = []
        self._subscription: ISubscription | None = None
        self._scope: ScopePredicate | None = None
        self._generation = 0
        self._loaded = False

    @property
    def kind(self) -> RecordKind:
        return self.layout.kind

    @property
    def records(self) -> list[T]:
        return list(self._records)

    @property
    def scope(self) -> ScopePredicate | None:
        return self._scope

    @property
    def loaded(self) -> bool:
        """True once the first snapshot of the current subscription arrived."""
        return self._loaded

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def error(self) -> Exception | None:
        return self._subscription.error if self._subscription is not None else None

    @property
    def degraded(self) -> bool:
        return self.error is not None

    def subscribe(self, listener: Callable[[list[T]], None]) -> Callable[[], None]:
        """Register a list listener. Returns an idempotent unsubscribe."""
        return _register(self._listeners, listener)

    def on_error(self, listener: Callable[[Exception], None]) -> Callable[[], None]:
        """Register a listener for subscription failures. Returns an idempotent unsubscribe."""
        return _register(self._error_listeners, listener)

    def open(self, scope: ScopePredicate) -> None:
        """(Re)subscribe under scope, stopping any previous subscription first."""
        self.close()
        self._scope = scope
        self._generation += 1
        generation = self._generation
        where = scope.query_filter(self.layout.scope_field) if self._pushdown else None
        query = CollectionQuery(
            collection=self.layout.collection,
            order_by=self.layout.order_by,
            direction=self.layout.direction,
            where=where,
        )
        self._subscription = self._store.subscribe(
            query,
            lambda docs: self._deliver(generation, docs),
            lambda error: self._fail(generation, error),
        )

    def close(self) -> None:
        """Stop the subscription and clear the list. Idempotent."""
        self._generation += 1
        if self._subscription is not None:
            self._subscription.stop()
            self._subscription = None
        self._scope = None
        self._loaded = False
        if self._records:
            self._records = []
            self._notify()

    def _deliver(self, generation: int, docs: list[StoredDocument]) -> None:
        if generation != self._generation or self._scope is None:
            return
        field = self.layout.scope_field
        records: list[T] = []
        for doc in docs:
            if not self._scope.allows(doc.id, doc.data, field):
                continue
            try:
                records.append(self._mapper(doc.id, doc.data))
            except ValidationException as e:
                logger.warning(
                    "Skipping malformed %s %s: %s", self.layout.kind.value, doc.id, e.message
                )
        self._records = records
        self._loaded = True
        self._notify()

    def _fail(self, generation: int, error: Exception) -> None:
        if generation != self._generation:
            return
        logger.error("Live %s list degraded: %s", self.layout.kind.value, error)
        for listener in list(self._error_listeners):
            try:
                listener(error)
            except Exception:
                logger.exception("Error listener failed for %s", self.layout.kind.value)

    def _notify(self) -> None:
        records = self.records
        for listener in list(self._listeners):
            try:
                listener(records)
            except Exception:
                logger.exception("List listener failed for %s", self.layout.kind.value)


def _register(listeners: list, listener: Callable) -> Callable[[], None]:
    listeners.append(listener)

    def _unsubscribe() -> None:
        if listener in listeners:
            listeners.remove(listener)

    return _unsubscribe


class UserDirectory:
    """Unscoped id -> display name map, used to label report rows.

    The map is rebuilt once per users snapshot.
    """

    def __init__(self, users: LiveCollection[UserEntity]) -> None:
        self.users = users
        self._names: dict[str, str] = {}
        users.subscribe(self._rebuild)

    def _rebuild(self, users: list[UserEntity]) -> None:
        self._names = {user.id: user.display_name or UNKNOWN_NAME for user in users}

    def name_of(self, uid: str | None) -> str:
        if not uid:
            return UNKNOWN_NAME
        return self._names.get(uid, UNKNOWN_NAME)


def filter_users(users: list[UserEntity], term: str) -> list[UserEntity]:
    """Users whose name or email contains term (case-insensitive), or whose phone contains it."""
    return [user for user in users if user.matches(term)]


class LiveCollections:
    """All live lists of the console, driven by the session's scope."""

    def __init__(
        self,
        store: IDocumentStore,
        session: SessionStore,
        layouts: dict[RecordKind, CollectionLayout],
        *,
        pushdown: bool = False,
    ) -> None:
        self._session = session
        self.mosques: LiveCollection[MosqueEntity] = LiveCollection(
            store, layouts[RecordKind.MOSQUE], MosqueEntity.from_document, pushdown=pushdown
        )
        self.trips: LiveCollection[TripEntity] = LiveCollection(
            store, layouts[RecordKind.TRIP], TripEntity.from_document, pushdown=pushdown
        )
        self.users: LiveCollection[UserEntity] = LiveCollection(
            store, layouts[RecordKind.USER], UserEntity.from_document, pushdown=pushdown
        )
        self.reports: LiveCollection[ReportEntity] = LiveCollection(
            store, layouts[RecordKind.REPORT], ReportEntity.from_document, pushdown=pushdown
        )
        # Unscoped lists: mosque picker of the provisioning form, report name labels.
        self.all_mosques: LiveCollection[MosqueEntity] = LiveCollection(
            store, layouts[RecordKind.MOSQUE], MosqueEntity.from_document
        )
        self.directory = UserDirectory(
            LiveCollection(store, layouts[RecordKind.USER], UserEntity.from_document)
        )
        self._scope: ScopePredicate | None = None
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def scoped(self) -> tuple[LiveCollection, ...]:
        return (self.mosques, self.trips, self.users, self.reports)

    @property
    def scope(self) -> ScopePredicate | None:
        return self._scope

    def collection(self, kind: RecordKind | str) -> LiveCollection:
        return {
            RecordKind.MOSQUE: self.mosques,
            RecordKind.TRIP: self.trips,
            RecordKind.USER: self.users,
            RecordKind.REPORT: self.reports,
        }[RecordKind(kind)]

    def attach(self) -> None:
        """Follow the session; opens subscriptions now if it is already ready."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._session.subscribe(self._on_session)
        self._on_session(self._session.snapshot)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.close_all()

    def close_all(self) -> None:
        for live in (*self.scoped, self.all_mosques, self.directory.users):
            live.close()
        self._scope = None

    def _on_session(self, snapshot: SessionSnapshot) -> None:
        scope = snapshot.scope
        if scope == self._scope:
            return
        self.close_all()
        if scope is None:
            return
        self._scope = scope
        logger.info(
            "Opening live collections (%s)",
            "unrestricted" if scope.is_unrestricted else f"mosque {scope.mosque_id}",
        )
        for live in self.scoped:
            live.open(scope)
        self.all_mosques.open(UNRESTRICTED)
        self.directory.users.open(UNRESTRICTED)

    def dashboard_counts(self) -> DashboardCounts:
        """Counts of the scoped lists, as shown on the overview page."""
        return DashboardCounts(
            users=len(self.users.records),
            trips=len(self.trips.records),
            mosques=len(self.mosques.records),
            pending_reports=sum(1 for r in self.reports.records if r.is_pending),
        )

    def subscribe_counts(self, listener: Callable[[DashboardCounts], None]) -> Callable[[], None]:
        """Call listener with fresh counts whenever a scoped list changes."""
        unsubscribers = [
            live.subscribe(lambda _records: listener(self.dashboard_counts()))
            for live in self.scoped
        ]

        def _unsubscribe() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return _unsubscribe

    def report_views(self) -> list[ReportView]:
        """Scoped reports with reporter and reported user names."""
        return [
            ReportView(
                report=report,
                reporter_name=self.directory.name_of(report.reporter_id),
                reported_name=self.directory.name_of(report.reported_user_id),
            )
            for report in self.reports.records
        ]

    def search_users(self, term: str) -> list[UserEntity]:
        return filter_users(self.users.records, term)
