"""Firestore collection layout (schema-in-code).

Firestore has no DDL or migrations. Collections are created automatically
when the first document is written. The layout below is the single source of
truth for where each record kind lives, how its list is ordered, and which
field scopes it to a mosque.

Collection names come from settings so a staging project can use prefixed
collections; the field names are fixed by the mobile app.
"""

from liftmosque_admin.application.dtos.layout import CollectionLayout
from liftmosque_admin.application.dtos.scope import DOCUMENT_ID
from liftmosque_admin.core.config import Settings
from liftmosque_admin.domain.enums import RecordKind, SortDirection

FIELD_MOSQUE_ID = "mosqueId"
FIELD_CREATED_AT = "createdAt"
FIELD_NAME = "name"


def collection_layouts(settings: Settings) -> dict[RecordKind, CollectionLayout]:
    """Layout per record kind.

    Mosques are listed by name and scoped by their own document id; the other
    kinds are listed newest first and scoped by their mosqueId field.
    """
    return {
        RecordKind.MOSQUE: CollectionLayout(
            RecordKind.MOSQUE,
            settings.collection_mosques,
            FIELD_NAME,
            SortDirection.ASCENDING,
            DOCUMENT_ID,
        ),
        RecordKind.TRIP: CollectionLayout(
            RecordKind.TRIP,
            settings.collection_trips,
            FIELD_CREATED_AT,
            SortDirection.DESCENDING,
            FIELD_MOSQUE_ID,
        ),
        RecordKind.USER: CollectionLayout(
            RecordKind.USER,
            settings.collection_users,
            FIELD_CREATED_AT,
            SortDirection.DESCENDING,
            FIELD_MOSQUE_ID,
        ),
        RecordKind.REPORT: CollectionLayout(
            RecordKind.REPORT,
            settings.collection_reports,
            FIELD_CREATED_AT,
            SortDirection.DESCENDING,
            FIELD_MOSQUE_ID,
        ),
    }
