"""Firebase Authentication and Firestore integration (REST, no firebase-admin)."""

from liftmosque_admin.infrastructure.firebase.auth_rest import (
    FirebaseAuthContext,
    FirebaseIdentityProvider,
)
from liftmosque_admin.infrastructure.firebase.client import create_firestore_client
from liftmosque_admin.infrastructure.firebase.collections import collection_layouts
from liftmosque_admin.infrastructure.firebase.document_store import FirestoreDocumentStore
from liftmosque_admin.infrastructure.firebase.watch import ChangeNotifier, PollingSubscription

__all__ = [
    "ChangeNotifier",
    "FirebaseAuthContext",
    "FirebaseIdentityProvider",
    "FirestoreDocumentStore",
    "PollingSubscription",
    "collection_layouts",
    "create_firestore_client",
]
