"""Tests for the Firestore REST client (httpx.MockTransport, no network)."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from liftmosque_admin.domain.enums import SortDirection
from liftmosque_admin.domain.exceptions import RemoteOperationException
from liftmosque_admin.infrastructure.firebase._rest_client import (
    DocumentExistsError,
    DocumentMissingError,
    FirestoreRESTClient,
    PreconditionFailedError,
)

PREFIX = "https://firestore.googleapis.com/v1/projects/proj/databases/(default)/documents"


def _doc(collection: str, doc_id: str, fields: dict) -> dict:
    return {
        "name": f"projects/proj/databases/(default)/documents/{collection}/{doc_id}",
        "fields": fields,
        "updateTime": "2024-05-01T12:00:00.000001Z",
    }


def _client(handler) -> tuple[FirestoreRESTClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    async def _token() -> str | None:
        return "id-token"

    http = httpx.AsyncClient(transport=httpx.MockTransport(_record))
    return FirestoreRESTClient("proj", _token, http_client=http), requests


async def test_query_builds_structured_query_and_decodes_results() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=[
                {"document": _doc("trips", "t1", {"mosqueId": {"stringValue": "m1"}})},
                {"readTime": "2024-05-01T12:00:00Z"},
            ],
        )

    client, requests = _client(handler)
    query = (
        client.collection("trips")
        .query()
        .where("mosqueId", "==", "m1")
        .order_by("createdAt", SortDirection.DESCENDING)
    )
    docs = await query.get()

    assert [d.id for d in docs] == ["t1"]
    assert docs[0].to_dict() == {"mosqueId": "m1"}
    assert docs[0].update_time == datetime(2024, 5, 1, 12, 0, 0, 1, tzinfo=UTC)
    request = requests[0]
    assert str(request.url) == f"{PREFIX}:runQuery"
    assert request.headers["Authorization"] == "Bearer id-token"
    body = json.loads(request.content)
    assert body["structuredQuery"] == {
        "from": [{"collectionId": "trips"}],
        "where": {
            "fieldFilter": {
                "field": {"fieldPath": "mosqueId"},
                "op": "EQUAL",
                "value": {"stringValue": "m1"},
            }
        },
        "orderBy": [{"field": {"fieldPath": "createdAt"}, "direction": "DESCENDING"}],
    }


async def test_get_missing_document_returns_none() -> None:
    client, _ = _client(lambda request: httpx.Response(404, json={"error": {"status": "NOT_FOUND"}}))
    assert await client.collection("users").document("nope").get() is None


async def test_update_sends_mask_and_exists_precondition() -> None:
    client, requests = _client(lambda request: httpx.Response(200, json=_doc("trips", "t1", {})))
    await client.collection("trips").document("t1").update({"seatsAvailable": 2, "odd-field": "x"})

    request = requests[0]
    assert request.method == "PATCH"
    params = request.url.params
    assert params.get_list("updateMask.fieldPaths") == ["seatsAvailable", "`odd-field`"]
    assert params["currentDocument.exists"] == "true"
    assert json.loads(request.content) == {
        "fields": {
            "seatsAvailable": {"integerValue": "2"},
            "odd-field": {"stringValue": "x"},
        }
    }


async def test_update_with_update_time_precondition() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400, json={"error": {"status": "FAILED_PRECONDITION", "message": "stale"}}
        )

    client, requests = _client(handler)
    at = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
    with pytest.raises(PreconditionFailedError):
        await client.collection("reports").document("r1").update({"status": "alerted"}, if_update_time=at)
    assert requests[0].url.params["currentDocument.updateTime"] == "2024-05-01T12:00:00.000000Z"
    assert "currentDocument.exists" not in requests[0].url.params


async def test_update_missing_document_raises() -> None:
    client, _ = _client(lambda request: httpx.Response(404, json={}))
    with pytest.raises(DocumentMissingError):
        await client.collection("trips").document("t1").update({"seatsAvailable": 1})


async def test_create_uses_document_id_param() -> None:
    client, requests = _client(lambda request: httpx.Response(200, json=_doc("users", "uid-1", {})))
    await client.collection("users").create("uid-1", {"role": "mosque_admin"})
    request = requests[0]
    assert request.method == "POST"
    assert str(request.url).startswith(f"{PREFIX}/users?")
    assert request.url.params["documentId"] == "uid-1"


async def test_create_existing_document_raises() -> None:
    client, _ = _client(lambda request: httpx.Response(409, json={"error": {"status": "ALREADY_EXISTS"}}))
    with pytest.raises(DocumentExistsError):
        await client.collection("users").create("uid-1", {})


async def test_delete_sends_delete() -> None:
    client, requests = _client(lambda request: httpx.Response(200, json={}))
    await client.collection("mosques").document("m1").delete()
    assert requests[0].method == "DELETE"
    assert str(requests[0].url) == f"{PREFIX}/mosques/m1"


async def test_permission_denied_becomes_remote_operation_exception() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            403,
            json={"error": {"status": "PERMISSION_DENIED", "message": "Missing or insufficient permissions."}},
        )

    client, _ = _client(handler)
    with pytest.raises(RemoteOperationException) as exc_info:
        await client.collection("reports").query().get()
    assert exc_info.value.details["status_code"] == 403
    assert exc_info.value.details["reason"] == "Missing or insufficient permissions."


async def test_transport_error_becomes_remote_operation_exception() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = _client(handler)
    with pytest.raises(RemoteOperationException) as exc_info:
        await client.collection("mosques").document("m1").get()
    assert exc_info.value.details["reason"] == "connection refused"


async def test_composite_filter_for_several_conditions() -> None:
    client, _ = _client(lambda request: httpx.Response(200, json=[]))
    query = client.collection("reports").query().where("mosqueId", "==", "m1").where("status", "==", "pending")
    structured = query.structured_query()
    assert structured["where"]["compositeFilter"]["op"] == "AND"
    assert len(structured["where"]["compositeFilter"]["filters"]) == 2
