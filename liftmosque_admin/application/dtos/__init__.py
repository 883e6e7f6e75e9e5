"""Application DTOs (plain dataclasses, no infrastructure types)."""

from liftmosque_admin.application.dtos.identity import AdminProvisionResult, Identity
from liftmosque_admin.application.dtos.layout import CollectionLayout
from liftmosque_admin.application.dtos.scope import DOCUMENT_ID, UNRESTRICTED, ScopePredicate
from liftmosque_admin.application.dtos.store import (
    CollectionQuery,
    FieldFilter,
    StoredDocument,
)
from liftmosque_admin.application.dtos.views import DashboardCounts, ReportView

__all__ = [
    "DOCUMENT_ID",
    "UNRESTRICTED",
    "AdminProvisionResult",
    "CollectionLayout",
    "CollectionQuery",
    "DashboardCounts",
    "FieldFilter",
    "Identity",
    "ReportView",
    "ScopePredicate",
    "StoredDocument",
]
