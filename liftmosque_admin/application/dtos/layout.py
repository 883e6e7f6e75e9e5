"""Where each record kind lives in the store and how its list is read."""

from dataclasses import dataclass

from liftmosque_admin.domain.enums import RecordKind, SortDirection


@dataclass(frozen=True)
class CollectionLayout:
    """Collection, list order and scope field of one record kind."""

    kind: RecordKind
    collection: str
    order_by: str
    direction: SortDirection
    scope_field: str
