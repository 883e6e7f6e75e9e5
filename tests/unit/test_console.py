"""Tests for AdminConsole wiring and lifecycle."""

import asyncio
import json

import httpx
import pytest

from liftmosque_admin.console import AdminConsole
from liftmosque_admin.domain.entities.profile import GlobalAdminProfile
from liftmosque_admin.domain.exceptions import AuthenticationException
from liftmosque_admin.infrastructure.firebase.document_store import FirestoreDocumentStore
from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD, seed_mosques, seed_operator

PROJECT_DOCS = "projects/liftmosque-test/databases/(default)/documents"


async def _until(predicate, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


class FirebaseBackend:
    """MockTransport handler answering Identity Toolkit and Firestore REST calls."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.url.host == "identitytoolkit.googleapis.com":
            body = json.loads(request.content)
            if body.get("password") != ADMIN_PASSWORD:
                return httpx.Response(400, json={"error": {"message": "INVALID_LOGIN_CREDENTIALS"}})
            return httpx.Response(
                200,
                json={
                    "localId": "uid-op",
                    "email": body["email"],
                    "idToken": "tok-op",
                    "refreshToken": "refresh-op",
                    "expiresIn": "3600",
                },
            )
        if path.endswith("/documents/users/uid-op"):
            return httpx.Response(
                200,
                json={
                    "name": f"{PROJECT_DOCS}/users/uid-op",
                    "fields": {"role": {"stringValue": "global_admin"}},
                    "updateTime": "2024-05-01T12:00:00Z",
                },
            )
        if path.endswith(":runQuery"):
            collection = json.loads(request.content)["structuredQuery"]["from"][0]["collectionId"]
            if collection != "mosques":
                return httpx.Response(200, json=[{"readTime": "2024-05-01T12:00:00Z"}])
            return httpx.Response(
                200,
                json=[
                    {
                        "document": {
                            "name": f"{PROJECT_DOCS}/mosques/m1",
                            "fields": {
                                "name": {"stringValue": "Al-Noor"},
                                "address": {"stringValue": "1 High St"},
                                "lat": {"doubleValue": 51.5},
                                "lng": {"doubleValue": -0.12},
                            },
                            "updateTime": "2024-05-01T12:00:00Z",
                        }
                    }
                ],
            )
        return httpx.Response(404, json={"error": {"status": "NOT_FOUND"}})


@pytest.fixture
def backend() -> FirebaseBackend:
    return FirebaseBackend()


@pytest.fixture
async def http_clients(backend):
    clients: list[httpx.AsyncClient] = []

    def factory() -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
        clients.append(client)
        return client

    yield factory
    for client in clients:
        await client.aclose()


async def test_from_settings_signs_in_over_rest(settings, backend, http_clients) -> None:
    async with AdminConsole.from_settings(settings, http_client_factory=http_clients) as console:
        assert isinstance(console.store, FirestoreDocumentStore)

        snapshot = await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

        assert snapshot.is_ready
        assert isinstance(snapshot.profile, GlobalAdminProfile)
        await _until(lambda: console.live.mosques.loaded and console.live.reports.loaded)
        assert [m.name for m in console.live.mosques.records] == ["Al-Noor"]
        assert console.dashboard_counts().mosques == 1
        firestore = [r for r in backend.requests if r.url.host == "firestore.googleapis.com"]
        assert firestore
        assert all(r.headers["Authorization"] == "Bearer tok-op" for r in firestore)

    assert not console.live.mosques.active
    assert console.identity_provider.primary.closed


async def test_from_settings_rejects_bad_password(settings, http_clients) -> None:
    async with AdminConsole.from_settings(settings, http_client_factory=http_clients) as console:
        with pytest.raises(AuthenticationException) as exc_info:
            await console.sign_in(ADMIN_EMAIL, "wrong")

        assert exc_info.value.message == "INVALID_LOGIN_CREDENTIALS"
        assert not console.session.is_authenticated
        assert not console.live.mosques.active


async def test_start_is_idempotent(settings, identity, store) -> None:
    console = AdminConsole(settings, identity, store)
    await console.start()
    await console.start()
    seed_mosques(store)
    seed_operator(identity, store)

    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

    assert len(store.open_subscriptions("mosques")) == 2
    await console.aclose()
    assert store.open_subscriptions() == []


async def test_close_stops_subscriptions_and_session(settings, identity, store) -> None:
    seed_mosques(store)
    seed_operator(identity, store)
    async with AdminConsole(settings, identity, store) as console:
        await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
        assert store.open_subscriptions()

    assert store.open_subscriptions() == []
    assert console.live.mosques.records == []


async def test_sign_in_twice_keeps_one_subscription_per_list(console, identity, store) -> None:
    seed_mosques(store)
    seed_operator(identity, store)
    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
    await console.sign_out()
    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

    assert len(store.open_subscriptions("trips")) == 1
    assert len(store.open_subscriptions("reports")) == 1


async def test_layouts_follow_collection_settings(settings, identity, store) -> None:
    settings = settings.model_copy(update={"collection_trips": "rides"})
    seed_operator(identity, store)
    async with AdminConsole(settings, identity, store) as console:
        await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
        assert len(store.open_subscriptions("rides")) == 1
        assert store.open_subscriptions("trips") == []


async def test_close_releases_injected_http_clients(settings, backend) -> None:
    clients: list[httpx.AsyncClient] = []

    def factory() -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
        clients.append(client)
        return client

    async with AdminConsole.from_settings(settings, http_client_factory=factory) as console:
        await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

    assert len(clients) == 2
    assert all(client.is_closed for client in clients)
