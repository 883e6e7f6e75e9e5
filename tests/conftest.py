"""Pytest configuration and fixtures for the console core.

Tests run against in-memory fakes of Firestore and Firebase Auth
(tests/fakes.py); REST adapters are tested through httpx.MockTransport.
"""

import os

import pytest

# Settings require these; set before anything calls get_settings().
os.environ.setdefault("FIREBASE_API_KEY", "test-api-key")
os.environ.setdefault("FIREBASE_PROJECT_ID", "liftmosque-test")

from liftmosque_admin.application.dtos.identity import Identity  # noqa: E402
from liftmosque_admin.console import AdminConsole  # noqa: E402
from liftmosque_admin.core.config import Settings, get_settings  # noqa: E402
from tests.fakes import FakeIdentityProvider, InMemoryDocumentStore  # noqa: E402

ADMIN_EMAIL = "operator@liftmosque.org"
ADMIN_PASSWORD = "operator-password"


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop cached settings so env overrides in a test apply to the next get_settings()."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        firebase_api_key="test-api-key",
        firebase_project_id="liftmosque-test",
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
async def console(settings, identity, store):
    """Started console over the fakes; closed after the test."""
    async with AdminConsole(settings, identity, store) as c:
        yield c


def seed_operator(
    identity: FakeIdentityProvider,
    store: InMemoryDocumentStore,
    *,
    role: str | None = "global_admin",
    mosque_id: str | None = None,
    email: str = ADMIN_EMAIL,
    password: str = ADMIN_PASSWORD,
    with_profile: bool = True,
) -> Identity:
    """Register an operator account and (optionally) its profile document."""
    uid = identity.backend.add_account(email, password)
    if with_profile:
        data = {"email": email, "firstName": "Op", "lastName": "Erator"}
        if role is not None:
            data["role"] = role
        if mosque_id is not None:
            data["mosqueId"] = mosque_id
        store.seed("users", uid, data)
    return Identity(uid=uid, email=email)


def seed_mosques(store: InMemoryDocumentStore) -> None:
    store.seed("mosques", "m1", {"name": "Al-Noor", "address": "1 High St", "lat": 51.5, "lng": -0.12})
    store.seed("mosques", "m2", {"name": "Baitul Futuh", "address": "181 London Rd", "lat": 51.4, "lng": -0.19})
