"""Firestore client construction (REST-based, no firebase-admin).

By default requests carry the signed-in operator's Firebase ID token, so
Firestore security rules apply exactly as they do for the web console. When
FIREBASE_SERVICE_ACCOUNT_KEY (JSON string) or FIREBASE_SERVICE_ACCOUNT_PATH
(file path) is set, google-auth service account tokens are used instead.
"""

import logging

import httpx

from liftmosque_admin.core.config import Settings
from liftmosque_admin.infrastructure.firebase._rest_client import (
    FirestoreRESTClient,
    TokenSource,
    service_account_token_source,
)

logger = logging.getLogger(__name__)


def create_firestore_client(
    settings: Settings,
    operator_token_source: TokenSource,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> FirestoreRESTClient:
    """Build the Firestore client for the configured auth mode.

    Args:
        settings: Loaded settings.
        operator_token_source: Returns the operator's current ID token (or None).
        http_client: Optional injected client (tests); not closed by the Firestore client.

    Raises:
        ValueError: If the service account JSON is malformed or has no project id.
    """
    token_source = operator_token_source
    if settings.uses_service_account:
        key_dict = settings.service_account_info()
        if not key_dict:
            raise ValueError("Service account configured but could not be loaded")
        token_source = service_account_token_source(key_dict)
        logger.info(
            "Firestore authorized with service account %s",
            key_dict.get("client_email", "<unknown>"),
        )
    else:
        logger.info("Firestore authorized with the operator's ID token")

    project_id = settings.resolved_project_id
    if not project_id:
        raise ValueError("Firebase project id could not be determined")
    return FirestoreRESTClient(
        project_id,
        token_source,
        database=settings.firestore_database,
        http_client=http_client,
        timeout=settings.http_timeout_seconds,
    )
