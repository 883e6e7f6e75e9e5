"""DTOs exchanged with the document store (no dependency on Firestore types)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from liftmosque_admin.domain.enums import SortDirection


@dataclass(frozen=True)
class StoredDocument:
    """A document as read from the store: id, decoded fields, and last update time."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)
    update_time: datetime | None = None

    def revision(self) -> tuple[str, datetime | None]:
        """Identity of this document version, used to detect snapshot changes."""
        return (self.id, self.update_time)


@dataclass(frozen=True)
class FieldFilter:
    """Single equality-style filter pushed down to the query layer."""

    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class CollectionQuery:
    """An ordered (optionally filtered) read of one collection."""

    collection: str
    order_by: str | None = None
    direction: SortDirection = SortDirection.ASCENDING
    where: FieldFilter | None = None
