"""AdminConsole: composition root of the console core.

Wires the identity provider, the document store, the session, live lists,
commands and provisioning. Use as an async context manager; startup and
shutdown happen in one place.

Example:
    async with AdminConsole.from_settings() as console:
        await console.sign_in(email, password)
        console.live.reports.subscribe(render_reports)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from types import TracebackType

import httpx

from liftmosque_admin.application.dtos.identity import AdminProvisionResult
from liftmosque_admin.application.dtos.layout import CollectionLayout
from liftmosque_admin.application.dtos.views import DashboardCounts
from liftmosque_admin.application.interfaces.identity import IIdentityProvider
from liftmosque_admin.application.interfaces.store import IDocumentStore
from liftmosque_admin.application.services.admin_provisioning import AdminProvisioningService
from liftmosque_admin.application.services.live_collections import LiveCollections
from liftmosque_admin.application.services.record_commands import RecordCommands
from liftmosque_admin.application.services.session_store import SessionSnapshot, SessionStore
from liftmosque_admin.core.config import Settings, get_settings
from liftmosque_admin.domain.enums import RecordKind
from liftmosque_admin.infrastructure.firebase.auth_rest import FirebaseIdentityProvider
from liftmosque_admin.infrastructure.firebase.client import create_firestore_client
from liftmosque_admin.infrastructure.firebase.collections import collection_layouts
from liftmosque_admin.infrastructure.firebase.document_store import FirestoreDocumentStore
from liftmosque_admin.infrastructure.firebase.watch import ChangeNotifier
from liftmosque_admin.infrastructure.messaging.redis_pubsub import (
    CollectionChangePublisher,
    CollectionChangeSubscriber,
    run_change_relay,
)
from liftmosque_admin.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)

Closer = Callable[[], Awaitable[None]]


class AdminConsole:
    """The console core as seen by the Presentation Layer."""

    def __init__(
        self,
        settings: Settings,
        identity_provider: IIdentityProvider,
        store: IDocumentStore,
        *,
        layouts: dict[RecordKind, CollectionLayout] | None = None,
    ) -> None:
        self.settings = settings
        self.identity_provider = identity_provider
        self.store = store
        self.layouts = layouts or collection_layouts(settings)
        users_collection = self.layouts[RecordKind.USER].collection

        self.session = SessionStore(
            identity_provider.primary,
            store,
            users_collection=users_collection,
            missing_profile_policy=settings.missing_profile_policy,
        )
        self.live = LiveCollections(
            store, self.session, self.layouts, pushdown=settings.scope_pushdown
        )
        self.commands = RecordCommands(store, self.session, self.layouts)
        self.provisioning = AdminProvisioningService(
            identity_provider,
            store,
            self.session,
            self.live.all_mosques,
            users_collection=users_collection,
        )
        self._startup: list[Closer] = []
        self._shutdown: list[Closer] = []
        self._relay_task: asyncio.Task | None = None
        self._started = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        http_client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> AdminConsole:
        """Build a console on Firebase Auth + Firestore REST (+ Redis when enabled)."""
        settings = settings or get_settings()
        setup_logging(settings)
        identity = FirebaseIdentityProvider(
            settings.firebase_api_key.get_secret_value(),
            timeout=settings.http_timeout_seconds,
            http_client_factory=http_client_factory,
        )
        firestore_http = http_client_factory() if http_client_factory else None
        client = create_firestore_client(
            settings, identity.primary.get_id_token, http_client=firestore_http
        )
        notifier = ChangeNotifier()
        publisher = CollectionChangePublisher(settings) if settings.redis_enabled else None
        store = FirestoreDocumentStore(
            client,
            notifier=notifier,
            publisher=publisher,
            poll_interval=settings.live_poll_interval_seconds,
        )
        console = cls(settings, identity, store)
        if publisher is not None:
            subscriber = CollectionChangeSubscriber(settings)
            console._startup.append(publisher.connect)
            console._startup.append(
                lambda: console._start_relay(subscriber, notifier, publisher.origin)
            )
            console._shutdown.append(publisher.disconnect)
            console._shutdown.append(subscriber.disconnect)
        console._shutdown.append(identity.aclose)
        console._shutdown.append(client.aclose)
        if firestore_http is not None:
            console._shutdown.append(firestore_http.aclose)
        return console

    async def _start_relay(
        self,
        subscriber: CollectionChangeSubscriber,
        notifier: ChangeNotifier,
        origin: str,
    ) -> None:
        await subscriber.connect()
        if not subscriber.is_available():
            logger.warning("Redis not available, live lists rely on polling only")
            return
        self._relay_task = asyncio.create_task(
            run_change_relay(subscriber, notifier, origin), name="collection-change-relay"
        )

    async def start(self) -> None:
        """Connect optional messaging, then follow the session. Idempotent."""
        if self._started:
            return
        for step in self._startup:
            await step()
        self.session.start()
        self.live.attach()
        self._started = True
        logger.info("%s started", self.settings.app_name)

    async def aclose(self) -> None:
        """Stop every subscription and release every connection."""
        self.live.detach()
        await self.session.aclose()
        if self._relay_task is not None:
            self._relay_task.cancel()
            try:
                await self._relay_task
            except asyncio.CancelledError:
                pass
            self._relay_task = None
            logger.info("Collection change relay stopped")
        for step in self._shutdown:
            await step()
        self._shutdown.clear()
        self._started = False
        logger.info("%s stopped", self.settings.app_name)

    async def __aenter__(self) -> AdminConsole:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def sign_in(self, email: str, password: str) -> SessionSnapshot:
        return await self.session.sign_in(email, password)

    async def sign_out(self) -> None:
        await self.session.sign_out()

    def dashboard_counts(self) -> DashboardCounts:
        return self.live.dashboard_counts()

    async def create_admin(
        self, email: str, password: str, mosque_id: str
    ) -> AdminProvisionResult:
        return await self.provisioning.create_admin(email, password, mosque_id)
