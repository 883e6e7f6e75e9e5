"""Application services: session, scope, live lists, commands, provisioning."""

from liftmosque_admin.application.services.admin_provisioning import AdminProvisioningService
from liftmosque_admin.application.services.live_collections import (
    LiveCollection,
    LiveCollections,
    UserDirectory,
    filter_users,
)
from liftmosque_admin.application.services.outcome import CommandResult, run_command
from liftmosque_admin.application.services.record_commands import RecordCommands
from liftmosque_admin.application.services.scope_resolver import resolve_scope
from liftmosque_admin.application.services.session_store import SessionSnapshot, SessionStore

__all__ = [
    "AdminProvisioningService",
    "CommandResult",
    "LiveCollection",
    "LiveCollections",
    "RecordCommands",
    "SessionSnapshot",
    "SessionStore",
    "UserDirectory",
    "filter_users",
    "resolve_scope",
    "run_command",
]
