"""Session store: the operator's identity, profile and scope.

Owned by the console (no module-level state). Listens to the primary auth
context; every identity change triggers exactly one profile fetch, during
which the snapshot is ``initializing`` and carries no profile or scope.
A fetch that completes after the identity changed again is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from liftmosque_admin.application.dtos.identity import Identity
from liftmosque_admin.application.dtos.scope import ScopePredicate
from liftmosque_admin.application.interfaces.identity import IAuthContext
from liftmosque_admin.application.interfaces.store import IDocumentStore
from liftmosque_admin.application.services.scope_resolver import resolve_scope
from liftmosque_admin.domain.entities.profile import Profile, profile_from_document
from liftmosque_admin.domain.enums import MissingProfilePolicy
from liftmosque_admin.domain.exceptions import LiftMosqueException, RemoteOperationException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of the session at one point in time.

    error holds the reason the last sign-in could not complete (profile
    denied or unreadable); it is cleared by the next identity change.
    """

    identity: Identity | None = None
    profile: Profile | None = None
    initializing: bool = False
    error: LiftMosqueException | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def is_ready(self) -> bool:
        return self.identity is not None and self.profile is not None and not self.initializing

    @property
    def scope(self) -> ScopePredicate | None:
        """Scope of the loaded profile; None while signed out or initializing."""
        if not self.is_ready:
            return None
        return resolve_scope(self.profile)


SessionListener = Callable[[SessionSnapshot], None]

_SIGNED_OUT = SessionSnapshot()


class SessionStore:
    """Tracks who is signed in and what they may see."""

    def __init__(
        self,
        auth: IAuthContext,
        store: IDocumentStore,
        *,
        users_collection: str = "users",
        missing_profile_policy: MissingProfilePolicy = MissingProfilePolicy.GLOBAL_ADMIN,
    ) -> None:
        self._auth = auth
        self._store = store
        self._users_collection = users_collection
        self._missing_policy = missing_profile_policy
        self._snapshot = _SIGNED_OUT
        self._listeners: list[SessionListener] = []
        self._generation = 0
        self._profile_task: asyncio.Task | None = None
        self._failure: LiftMosqueException | None = None
        self._unwire: Callable[[], None] | None = None

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def identity(self) -> Identity | None:
        return self._snapshot.identity

    @property
    def profile(self) -> Profile | None:
        return self._snapshot.profile

    @property
    def initializing(self) -> bool:
        return self._snapshot.initializing

    @property
    def is_authenticated(self) -> bool:
        return self._snapshot.is_authenticated

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call listener synchronously on every state change. Returns an idempotent unsubscribe."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def start(self) -> None:
        """Begin following the primary auth context. Idempotent."""
        if self._unwire is not None:
            return
        self._unwire = self._auth.on_identity_change(self._on_identity_change)
        current = self._auth.current_identity
        if current is not None:
            self._on_identity_change(current)

    async def aclose(self) -> None:
        """Stop following the auth context and drop any in-flight profile fetch."""
        if self._unwire is not None:
            self._unwire()
            self._unwire = None
        self._cancel_profile_fetch()
        self._listeners.clear()

    async def sign_in(self, email: str, password: str) -> SessionSnapshot:
        """Sign in and wait until the profile is loaded.

        Raises:
            AuthenticationException: From the identity provider.
            AuthorizationException: Profile denied by policy or unusable (signed back out).
            RemoteOperationException: Profile could not be read (signed back out).
        """
        self.start()
        await self._auth.sign_in(email, password)
        task = self._profile_task
        if task is not None:
            # A newer identity change may cancel this fetch; that is not an error here.
            await asyncio.wait({task})
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()
        snapshot = self._snapshot
        if not snapshot.is_ready and snapshot.error is not None:
            raise snapshot.error
        return snapshot

    async def sign_out(self) -> None:
        """Clear the session, notifying listeners before the auth context signs out."""
        self._generation += 1
        self._cancel_profile_fetch()
        self._set(_SIGNED_OUT)
        await self._auth.sign_out()
        logger.info("Operator signed out")

    def _on_identity_change(self, identity: Identity | None) -> None:
        self._generation += 1
        self._cancel_profile_fetch()
        if identity is None:
            failure, self._failure = self._failure, None
            self._set(SessionSnapshot(error=failure))
            return
        self._set(SessionSnapshot(identity=identity, initializing=True))
        self._profile_task = asyncio.get_running_loop().create_task(
            self._load_profile(identity, self._generation),
            name=f"profile:{identity.uid}",
        )

    async def _load_profile(self, identity: Identity, generation: int) -> None:
        try:
            document = await self._store.get(self._users_collection, identity.uid)
            profile = profile_from_document(
                identity.uid,
                document.data if document is not None else None,
                self._missing_policy,
            )
        except LiftMosqueException as e:
            if generation != self._generation:
                return
            logger.warning("Profile for uid=%s refused: %s", identity.uid, e.message)
            self._failure = e
            await self._auth.sign_out()
            return
        except Exception as e:
            if generation != self._generation:
                return
            logger.exception("Profile for uid=%s could not be loaded", identity.uid)
            self._failure = RemoteOperationException("load profile", str(e) or type(e).__name__)
            await self._auth.sign_out()
            return
        if generation != self._generation:
            logger.debug("Discarding stale profile for uid=%s", identity.uid)
            return
        if document is None:
            logger.info(
                "No profile document for uid=%s; %s policy applied",
                identity.uid,
                self._missing_policy.value,
            )
        self._set(SessionSnapshot(identity=identity, profile=profile))
        logger.info("Session ready for uid=%s as %s", identity.uid, profile.role.value)

    def _cancel_profile_fetch(self) -> None:
        task, self._profile_task = self._profile_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _set(self, snapshot: SessionSnapshot) -> None:
        if snapshot == self._snapshot:
            return
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session listener failed")
