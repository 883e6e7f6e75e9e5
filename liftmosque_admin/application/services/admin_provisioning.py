"""Mosque administrator provisioning.

Registering an email/password account signs that account in on the context
that registered it. The credential is therefore created on an isolated auth
context so the operator's own session is never replaced; the profile is
written through the operator's store (operator's permissions), and the
isolated context is torn down on every exit path.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from liftmosque_admin.application.dtos.identity import AdminProvisionResult, Identity
from liftmosque_admin.application.interfaces.identity import IAuthContext, IIdentityProvider
from liftmosque_admin.application.interfaces.store import IDocumentStore
from liftmosque_admin.application.services.live_collections import LiveCollection
from liftmosque_admin.application.services.session_store import SessionStore
from liftmosque_admin.domain.entities.mosque import MosqueEntity
from liftmosque_admin.domain.entities.profile import GlobalAdminProfile, mosque_admin_document
from liftmosque_admin.domain.exceptions import (
    AuthorizationException,
    LiftMosqueException,
    SessionNotReadyException,
    ValidationException,
)
from liftmosque_admin.schemas.records import AdminProvisionRequest, parse_input
from liftmosque_admin.shared.telemetry.tracing import traced
from liftmosque_admin.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class AdminProvisioningService:
    """Creates mosque_admin accounts (credential + profile) for a global admin."""

    def __init__(
        self,
        identity_provider: IIdentityProvider,
        store: IDocumentStore,
        session: SessionStore,
        mosques: LiveCollection[MosqueEntity],
        *,
        users_collection: str = "users",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.identity_provider = identity_provider
        self.store = store
        self.session = session
        self.mosques = mosques
        self.users_collection = users_collection
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        """True while a provisioning call holds the isolated context."""
        return self._lock.locked()

    @traced("provisioning.create_admin")
    async def create_admin(
        self, email: str, password: str, mosque_id: str
    ) -> AdminProvisionResult:
        """Create a mosque administrator for mosque_id.

        Calls are serialized. The operator stays signed in as themselves.

        Raises:
            SessionNotReadyException: No ready session.
            AuthorizationException: Operator is not a global_admin.
            ValidationException: Bad email/password or unknown mosque (nothing created).
            AuthenticationException: Rejected by the identity provider (e.g. email in use).
            LiftMosqueException: Profile write failed (the credential was rolled back).
        """
        snapshot = self.session.snapshot
        if not snapshot.is_ready:
            raise SessionNotReadyException()
        if not isinstance(snapshot.profile, GlobalAdminProfile):
            raise AuthorizationException("admin", "create")

        request = parse_input(
            AdminProvisionRequest,
            {"email": email, "password": password, "mosque_id": mosque_id},
        )
        mosque = await self._find_mosque(request.mosque_id)

        async with self._lock:
            async with self.identity_provider.isolated_context() as context:
                identity = await context.create_credential(request.email, request.password)
                document = mosque_admin_document(
                    request.email, mosque.id, self._clock(), mosque_name=mosque.name
                )
                try:
                    await self.store.create(
                        self.users_collection, document, document_id=identity.uid
                    )
                except Exception:
                    await self._rollback(context, identity)
                    raise

        logger.info(
            "Provisioned mosque admin uid=%s for mosque %s", identity.uid, mosque.id
        )
        return AdminProvisionResult(
            uid=identity.uid, email=request.email, mosque_id=mosque.id
        )

    async def _find_mosque(self, mosque_id: str) -> MosqueEntity:
        if not self.mosques.loaded:
            stored = await self.store.get(self.mosques.layout.collection, mosque_id)
            if stored is not None:
                return MosqueEntity.from_document(stored.id, stored.data)
        for mosque in self.mosques.records:
            if mosque.id == mosque_id:
                return mosque
        raise ValidationException("Select an existing mosque", field="mosque_id")

    async def _rollback(self, context: IAuthContext, identity: Identity) -> None:
        try:
            await context.delete_current_user()
        except LiftMosqueException:
            logger.exception(
                "Rollback failed: credential uid=%s has no profile", identity.uid
            )
        else:
            logger.warning(
                "Profile write failed; deleted credential uid=%s", identity.uid
            )
