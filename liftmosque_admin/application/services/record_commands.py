"""CRUD commands on mosques, trips, users and reports.

Every command validates its input before any remote call, enforces the
operator's scope, and surfaces a failed write exactly once (no retries).
Updates are partial except for mosques, whose editable fields are always
replaced as one validated set.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from liftmosque_admin.application.dtos.layout import CollectionLayout
from liftmosque_admin.application.dtos.scope import ScopePredicate
from liftmosque_admin.application.interfaces.store import IDocumentStore
from liftmosque_admin.application.services.session_store import SessionStore
from liftmosque_admin.domain.entities.profile import is_admin_profile_document
from liftmosque_admin.domain.entities.report import ReportEntity
from liftmosque_admin.domain.enums import RecordKind, ReportStatus
from liftmosque_admin.domain.exceptions import (
    AuthorizationException,
    ResourceNotFoundException,
    SessionNotReadyException,
    ValidationException,
)
from liftmosque_admin.schemas.records import (
    MosqueWrite,
    ReportCreate,
    ReportUpdate,
    TripCreate,
    TripUpdate,
    UserCreate,
    UserUpdate,
    parse_input,
)
from liftmosque_admin.shared.telemetry.tracing import traced
from liftmosque_admin.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

_CREATE_MODELS: dict[RecordKind, type[BaseModel]] = {
    RecordKind.MOSQUE: MosqueWrite,
    RecordKind.TRIP: TripCreate,
    RecordKind.USER: UserCreate,
    RecordKind.REPORT: ReportCreate,
}

_UPDATE_MODELS: dict[RecordKind, type[BaseModel]] = {
    RecordKind.MOSQUE: MosqueWrite,
    RecordKind.TRIP: TripUpdate,
    RecordKind.USER: UserUpdate,
    RecordKind.REPORT: ReportUpdate,
}


class RecordCommands:
    """Create, update, delete and respond-to-report commands for the console."""

    def __init__(
        self,
        store: IDocumentStore,
        session: SessionStore,
        layouts: dict[RecordKind, CollectionLayout],
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.session = session
        self.layouts = layouts
        self._clock = clock

    def _current_scope(self) -> ScopePredicate:
        scope = self.session.snapshot.scope
        if scope is None:
            raise SessionNotReadyException()
        return scope

    @traced("commands.create")
    async def create(self, kind: RecordKind | str, fields: dict[str, Any]) -> str:
        """Validate and create a record; returns the new id.

        A mosque_admin's records are placed in its mosque when no mosqueId is
        given; it cannot create mosques or records of another mosque.

        Raises:
            SessionNotReadyException: No ready session.
            ValidationException: Invalid input (nothing written).
            AuthorizationException: Outside the operator's scope.
        """
        kind = RecordKind(kind)
        scope = self._current_scope()
        layout = self.layouts[kind]
        document = parse_input(_CREATE_MODELS[kind], fields).to_document()

        if kind != RecordKind.MOSQUE and document.get(layout.scope_field) is None:
            if scope.is_unrestricted:
                document.pop(layout.scope_field, None)
            else:
                document[layout.scope_field] = scope.mosque_id
        # A new mosque has no id yet, so it is never inside a mosque scope.
        if not scope.allows("", document, layout.scope_field):
            raise AuthorizationException(kind.value, "create")

        if kind != RecordKind.MOSQUE:
            document["createdAt"] = self._clock()
        if kind == RecordKind.REPORT:
            document["status"] = ReportStatus.PENDING.value
        record_id = await self.store.create(layout.collection, document)
        logger.info("Created %s %s", kind.value, record_id)
        return record_id

    @traced("commands.update")
    async def update(
        self,
        kind: RecordKind | str,
        record_id: str,
        fields: dict[str, Any],
    ) -> None:
        """Validate and apply an update.

        Raises:
            SessionNotReadyException: No ready session.
            ValidationException: Invalid or empty input (nothing written).
            ResourceNotFoundException: The record does not exist.
            AuthorizationException: Record, or its new mosqueId, outside the operator's scope,
                or an operator profile edited by a mosque_admin.
        """
        kind = RecordKind(kind)
        scope = self._current_scope()
        layout = self.layouts[kind]
        partial = kind != RecordKind.MOSQUE
        document = parse_input(_UPDATE_MODELS[kind], fields).to_document(partial=partial)
        if not document:
            raise ValidationException("No fields to update")

        if not scope.is_unrestricted:
            await self._load_in_scope(layout, record_id, scope, "update")
            if layout.scope_field in document and not scope.allows(
                record_id, document, layout.scope_field
            ):
                raise AuthorizationException(kind.value, "update")
        await self.store.update(layout.collection, record_id, document)
        logger.info("Updated %s %s", kind.value, record_id)

    @traced("commands.delete")
    async def delete(self, kind: RecordKind | str, record_id: str) -> None:
        """Delete a record permanently. Related records are never touched.

        Deleting a record that no longer exists is a no-op.

        Raises:
            SessionNotReadyException: No ready session.
            AuthorizationException: Record outside the operator's scope, or an operator
                profile deleted by a mosque_admin.
        """
        kind = RecordKind(kind)
        scope = self._current_scope()
        layout = self.layouts[kind]
        if not scope.is_unrestricted:
            try:
                await self._load_in_scope(layout, record_id, scope, "delete")
            except ResourceNotFoundException:
                logger.debug("%s %s already deleted", kind.value, record_id)
                return
        await self.store.delete(layout.collection, record_id)
        logger.info("Deleted %s %s", kind.value, record_id)

    @traced("commands.respond_to_report")
    async def respond_to_report(self, report_id: str, message: str) -> ReportEntity:
        """Alert a pending report with the admin's message (pending -> alerted, once).

        The write is conditional on the report not having changed since it
        was read, so two operators answering at once cannot both succeed.

        Raises:
            ValidationException: Blank message (nothing written).
            ResourceNotFoundException: Unknown report.
            AuthorizationException: Report outside the operator's scope.
            StateConflictException: Report already alerted, or changed concurrently.
        """
        if not message or not message.strip():
            raise ValidationException("Alert message is required", field="message")
        scope = self._current_scope()
        layout = self.layouts[RecordKind.REPORT]
        stored = await self.store.get(layout.collection, report_id)
        if stored is None:
            raise ResourceNotFoundException(RecordKind.REPORT.value, report_id)
        if not scope.allows(stored.id, stored.data, layout.scope_field):
            raise AuthorizationException(RecordKind.REPORT.value, "respond")

        report = ReportEntity.from_document(stored.id, stored.data)
        report.mark_alerted(message.strip(), self._clock())
        await self.store.update(
            layout.collection,
            report_id,
            {
                "status": report.status.value,
                "adminComment": report.admin_comment,
                "respondedAt": report.responded_at,
                "isRead": False,
            },
            if_update_time=stored.update_time,
        )
        logger.info("Report %s alerted", report_id)
        return report

    async def _load_in_scope(
        self,
        layout: CollectionLayout,
        record_id: str,
        scope: ScopePredicate,
        action: str,
    ) -> None:
        stored = await self.store.get(layout.collection, record_id)
        if stored is None:
            raise ResourceNotFoundException(layout.kind.value, record_id)
        if not scope.allows(stored.id, stored.data, layout.scope_field):
            raise AuthorizationException(layout.kind.value, action)
        # Operator profiles, the operator's own included, are managed by global admins only.
        if layout.kind == RecordKind.USER and (
            record_id == self._operator_uid() or is_admin_profile_document(stored.data)
        ):
            raise AuthorizationException(layout.kind.value, action)

    def _operator_uid(self) -> str | None:
        identity = self.session.snapshot.identity
        return identity.uid if identity is not None else None
