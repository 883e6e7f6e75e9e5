"""Domain layer: entities, value objects, enums, and exceptions.

No dependencies on infrastructure or presentation.
"""

from liftmosque_admin.domain.entities import (
    GlobalAdminProfile,
    MosqueAdminProfile,
    MosqueEntity,
    Profile,
    ReportEntity,
    TripEntity,
    UserEntity,
)
from liftmosque_admin.domain.enums import (
    AdminRole,
    MissingProfilePolicy,
    RecordKind,
    ReportStatus,
)
from liftmosque_admin.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    LiftMosqueException,
    RemoteOperationException,
    ResourceNotFoundException,
    SessionNotReadyException,
    StateConflictException,
    ValidationException,
)
from liftmosque_admin.domain.value_objects import Coordinates

__all__ = [
    # Entities
    "GlobalAdminProfile",
    "MosqueAdminProfile",
    "MosqueEntity",
    "Profile",
    "ReportEntity",
    "TripEntity",
    "UserEntity",
    # Enums
    "AdminRole",
    "MissingProfilePolicy",
    "RecordKind",
    "ReportStatus",
    # Exceptions
    "AuthenticationException",
    "AuthorizationException",
    "LiftMosqueException",
    "RemoteOperationException",
    "ResourceNotFoundException",
    "SessionNotReadyException",
    "StateConflictException",
    "ValidationException",
    # Value objects
    "Coordinates",
]
