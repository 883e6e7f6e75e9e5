"""Scope predicate: which records of a collection an operator may see or mutate."""

from dataclasses import dataclass
from typing import Any

from liftmosque_admin.application.dtos.store import FieldFilter

# Pseudo field name meaning "the document id itself" (used for mosques).
DOCUMENT_ID = "__name__"


@dataclass(frozen=True)
class ScopePredicate:
    """Either unrestricted (mosque_id is None) or restricted to one mosque id."""

    mosque_id: str | None = None

    @property
    def is_unrestricted(self) -> bool:
        return self.mosque_id is None

    def allows(self, doc_id: str, data: dict[str, Any], field: str) -> bool:
        """Return whether a document is visible under this scope.

        Args:
            doc_id: Document id (compared when field is DOCUMENT_ID).
            data: Decoded document fields.
            field: Scope field of the collection (e.g. "mosqueId").
        """
        if self.mosque_id is None:
            return True
        value = doc_id if field == DOCUMENT_ID else data.get(field)
        return value == self.mosque_id

    def query_filter(self, field: str) -> FieldFilter | None:
        """Equality filter for the query layer, or None when unrestricted.

        Document-id scoping is never pushed down; it is applied client-side.
        """
        if self.mosque_id is None or field == DOCUMENT_ID:
            return None
        return FieldFilter(field, "==", self.mosque_id)


UNRESTRICTED = ScopePredicate()
