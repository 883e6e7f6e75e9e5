"""Shared utilities (datetime, ID generation)."""

from liftmosque_admin.shared.utils.datetime import (
    ensure_utc,
    parse_rfc3339,
    to_rfc3339,
    utc_now,
)
from liftmosque_admin.shared.utils.generators import generate_document_id

__all__ = [
    "ensure_utc",
    "generate_document_id",
    "parse_rfc3339",
    "to_rfc3339",
    "utc_now",
]
