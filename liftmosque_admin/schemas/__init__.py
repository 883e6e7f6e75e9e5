"""Pydantic input schemas for console commands."""

from liftmosque_admin.schemas.records import (
    AdminProvisionRequest,
    MosqueWrite,
    ReportCreate,
    ReportUpdate,
    TripCreate,
    TripUpdate,
    UserCreate,
    UserUpdate,
    parse_input,
)

__all__ = [
    "AdminProvisionRequest",
    "MosqueWrite",
    "ReportCreate",
    "ReportUpdate",
    "TripCreate",
    "TripUpdate",
    "UserCreate",
    "UserUpdate",
    "parse_input",
]
