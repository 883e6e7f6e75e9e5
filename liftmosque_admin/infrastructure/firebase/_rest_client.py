"""Thin Firestore REST API client (no firebase-admin).

Requests are authorized either with the signed-in operator's Firebase ID
token (security rules apply, as in the web console) or with a google-auth
service account token. All HTTP calls use httpx.AsyncClient so they do not
block the event loop.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

import httpx

from liftmosque_admin.domain.enums import SortDirection
from liftmosque_admin.domain.exceptions import RemoteOperationException
from liftmosque_admin.infrastructure.firebase._rest_encoding import (
    decode_fields,
    document_id,
    document_update_time,
    encode_fields,
    encode_value,
)
from liftmosque_admin.shared.telemetry.tracing import traced
from liftmosque_admin.shared.utils.datetime import to_rfc3339

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"
_SIMPLE_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

TokenSource = Callable[[], Awaitable[str | None]]


def service_account_token_source(key_dict: dict) -> TokenSource:
    """Token source backed by google-auth service account credentials."""
    from google.oauth2 import service_account

    credentials = service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )

    def _refresh() -> str:
        from google.auth.transport.requests import Request

        if not credentials.valid:
            credentials.refresh(Request())
        return credentials.token

    async def _token() -> str | None:
        # google-auth refresh is blocking; keep it off the event loop.
        return await asyncio.to_thread(_refresh)

    return _token


class DocumentExistsError(Exception):
    """createDocument returned 409 (document ID already exists)."""


class DocumentMissingError(Exception):
    """A write with an exists=true precondition hit a missing document (404)."""


class PreconditionFailedError(Exception):
    """The document changed since the updateTime given as precondition."""


def _error_reason(resp: httpx.Response) -> tuple[str, str]:
    """Return (status, message) from a Google API error body, best effort."""
    try:
        err = resp.json().get("error", {})
    except (json.JSONDecodeError, AttributeError):
        return "", resp.text[:200]
    if isinstance(err, dict):
        return str(err.get("status", "")), str(err.get("message", ""))
    return "", str(err)


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    operation: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
    params: list[tuple[str, str]] | None = None,
    missing_ok: bool = True,
) -> Any:
    """Perform an HTTP request against the Firestore REST API.

    404 returns None when missing_ok, otherwise raises DocumentMissingError.

    Raises:
        DocumentExistsError: On 409.
        PreconditionFailedError: On FAILED_PRECONDITION.
        RemoteOperationException: On any other HTTP or transport failure.
    """
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    if method not in ("GET", "PATCH", "POST", "DELETE"):
        raise ValueError(f"Unsupported method: {method!r}")
    try:
        resp = await client.request(
            method,
            url,
            headers=headers,
            json=body if method in ("PATCH", "POST") else None,
            params=params,
        )
    except httpx.TransportError as e:
        raise RemoteOperationException(operation, str(e) or type(e).__name__) from e
    if resp.status_code == 404:
        if missing_ok:
            return None
        raise DocumentMissingError(url)
    if resp.status_code == 409:
        raise DocumentExistsError("Document already exists")
    if resp.status_code not in (200, 204):
        status, message = _error_reason(resp)
        if status == "FAILED_PRECONDITION" or resp.status_code == 412:
            raise PreconditionFailedError(message)
        raise RemoteOperationException(
            operation, message or status or resp.reason_phrase, resp.status_code
        )
    if method == "DELETE":
        return {}
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


def _field_path(name: str) -> str:
    """Field path for updateMask; non-identifier names are backtick-quoted."""
    if _SIMPLE_FIELD_RE.match(name):
        return name
    return "`" + name.replace("\\", "\\\\").replace("`", "\\`") + "`"


class DocumentSnapshot:
    """Snapshot of a document (id + data + updateTime)."""

    def __init__(self, id_: str, data: dict, update_time: datetime | None = None):
        self.id = id_
        self._data = data
        self.update_time = update_time

    def to_dict(self) -> dict:
        return self._data

    @classmethod
    def from_resource(cls, document: dict) -> DocumentSnapshot:
        return cls(
            document_id(document),
            decode_fields(document),
            document_update_time(document),
        )


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path

    @traced("firestore.document.get")
    async def get(self) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        out = await _request_async(
            self._client._http,
            f"{_BASE}/{self._path}",
            "get",
            access_token=await self._client.get_token(),
        )
        if not out:
            return None
        return DocumentSnapshot.from_resource(out)

    @traced("firestore.document.update")
    async def update(
        self,
        data: dict[str, Any],
        *,
        if_update_time: datetime | None = None,
    ) -> None:
        """Merge data into the existing document (only the given fields change).

        Raises:
            DocumentMissingError: If the document does not exist.
            PreconditionFailedError: If if_update_time is set and the document changed since.
        """
        params = [("updateMask.fieldPaths", _field_path(k)) for k in data]
        if if_update_time is not None:
            params.append(("currentDocument.updateTime", to_rfc3339(if_update_time)))
        else:
            params.append(("currentDocument.exists", "true"))
        await _request_async(
            self._client._http,
            f"{_BASE}/{self._path}",
            "update",
            method="PATCH",
            body=encode_fields(data),
            access_token=await self._client.get_token(),
            params=params,
            missing_ok=False,
        )

    @traced("firestore.document.delete")
    async def delete(self) -> None:
        """Delete the document. Idempotent if document is already missing (404)."""
        await _request_async(
            self._client._http,
            f"{_BASE}/{self._path}",
            "delete",
            method="DELETE",
            access_token=await self._client.get_token(),
        )


_OP_MAP: dict[str, str] = {
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
    "in": "IN",
    "not-in": "NOT_IN",
    "array-contains": "ARRAY_CONTAINS",
}


class Query:
    """Fluent query builder for a collection; runs via runQuery."""

    def __init__(self, client: FirestoreRESTClient, parent: str, collection_id: str):
        self._client = client
        self._parent = parent
        self._collection_id = collection_id
        self._filters: list[tuple[str, str, Any]] = []
        self._order_by_field: str | None = None
        self._order_direction = SortDirection.ASCENDING

    def where(self, field: str, op: str, value: Any) -> Query:
        self._filters.append((field, _OP_MAP.get(op, op), value))
        return self

    def order_by(
        self, field: str, direction: SortDirection = SortDirection.ASCENDING
    ) -> Query:
        self._order_by_field = field
        self._order_direction = direction
        return self

    def structured_query(self) -> dict[str, Any]:
        """The StructuredQuery body for runQuery."""
        structured: dict[str, Any] = {"from": [{"collectionId": self._collection_id}]}
        field_filters = [
            {
                "fieldFilter": {
                    "field": {"fieldPath": _field_path(field)},
                    "op": op,
                    "value": encode_value(value),
                }
            }
            for field, op, value in self._filters
        ]
        if len(field_filters) == 1:
            structured["where"] = field_filters[0]
        elif field_filters:
            structured["where"] = {
                "compositeFilter": {"op": "AND", "filters": field_filters}
            }
        if self._order_by_field is not None:
            structured["orderBy"] = [
                {
                    "field": {"fieldPath": _field_path(self._order_by_field)},
                    "direction": self._order_direction.value,
                }
            ]
        return structured

    @traced("firestore.query.run")
    async def get(self) -> list[DocumentSnapshot]:
        """Execute the query and return every matching document, in order."""
        resp = await _request_async(
            self._client._http,
            f"{_BASE}/{self._parent}:runQuery",
            f"query {self._collection_id}",
            method="POST",
            body={"structuredQuery": self.structured_query()},
            access_token=await self._client.get_token(),
        )
        items = resp if isinstance(resp, list) else ([resp] if resp else [])
        return [
            DocumentSnapshot.from_resource(item["document"])
            for item in items
            if "document" in item
        ]

class CollectionReference:
    """Reference to a collection; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path.rstrip("/")

    def document(self, document_id: str) -> DocumentReference:
        return DocumentReference(self._client, f"{self._path}/{document_id}")

    def query(self) -> Query:
        parent, _, collection_id = self._path.rpartition("/")
        return Query(self._client, parent, collection_id)

    @traced("firestore.collection.create")
    async def create(self, document_id: str, data: dict[str, Any]) -> None:
        """Create a document with the given ID (DocumentExistsError if it exists)."""
        parent, _, collection_id = self._path.rpartition("/")
        await _request_async(
            self._client._http,
            f"{_BASE}/{parent}/{collection_id}",
            f"create {collection_id}",
            method="POST",
            body=encode_fields(data),
            access_token=await self._client.get_token(),
            params=[("documentId", document_id)],
        )


class FirestoreRESTClient:
    """Lightweight Firestore client using the REST API (no firebase-admin)."""

    def __init__(
        self,
        project_id: str,
        token_source: TokenSource,
        *,
        database: str = "(default)",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._project_id = project_id
        self._token_source = token_source
        self._prefix = f"projects/{project_id}/databases/{database}/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    @property
    def project_id(self) -> str:
        return self._project_id

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str | None:
        """Return a valid bearer token from the configured source."""
        return await self._token_source()

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, f"{self._prefix}/{collection_id}")
