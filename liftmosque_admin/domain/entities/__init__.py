"""Domain entities.

Pure domain models; Firestore documents are mapped with from_document().
"""

from liftmosque_admin.domain.entities.mosque import MosqueEntity
from liftmosque_admin.domain.entities.profile import (
    GlobalAdminProfile,
    MosqueAdminProfile,
    Profile,
    is_admin_profile_document,
    mosque_admin_document,
    profile_from_document,
)
from liftmosque_admin.domain.entities.report import ReportEntity
from liftmosque_admin.domain.entities.trip import TripEntity
from liftmosque_admin.domain.entities.user import UserEntity

__all__ = [
    "GlobalAdminProfile",
    "MosqueAdminProfile",
    "MosqueEntity",
    "Profile",
    "ReportEntity",
    "TripEntity",
    "UserEntity",
    "is_admin_profile_document",
    "mosque_admin_document",
    "profile_from_document",
]
