"""Tests for scoped live collections, the user directory and dashboard counts."""

from datetime import UTC, datetime

from liftmosque_admin.application.dtos.scope import UNRESTRICTED, ScopePredicate
from liftmosque_admin.application.dtos.views import DashboardCounts
from liftmosque_admin.application.services.live_collections import (
    UNKNOWN_NAME,
    LiveCollection,
    filter_users,
)
from liftmosque_admin.domain.entities import MosqueEntity, TripEntity, UserEntity
from liftmosque_admin.domain.enums import RecordKind
from liftmosque_admin.domain.exceptions import RemoteOperationException
from liftmosque_admin.infrastructure.firebase.collections import collection_layouts
from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD, seed_mosques, seed_operator


def _at(minute: int) -> datetime:
    return datetime(2024, 5, 1, 12, minute, tzinfo=UTC)


def _seed_records(store) -> None:
    seed_mosques(store)
    store.seed("trips", "t1", {"driverName": "A", "mosqueId": "m1", "seatsAvailable": 2, "createdAt": _at(1)})
    store.seed("trips", "t2", {"driverName": "B", "mosqueId": "m2", "seatsAvailable": 1, "createdAt": _at(2)})
    store.seed("trips", "t3", {"driverName": "C", "mosqueId": "m1", "seatsAvailable": 0, "createdAt": _at(3)})
    store.seed("users", "u1", {"firstName": "Amina", "lastName": "Khan", "mosqueId": "m1", "createdAt": _at(1)})
    store.seed("users", "u2", {"firstName": "Bilal", "lastName": "Ali", "mosqueId": "m2", "createdAt": _at(2)})
    store.seed(
        "reports",
        "r1",
        {"reporterId": "u1", "reportedUserId": "u2", "reason": "late", "mosqueId": "m1", "status": "pending", "createdAt": _at(1)},
    )
    store.seed(
        "reports",
        "r2",
        {"reporterId": "u2", "reportedUserId": "ghost", "reason": "rude", "mosqueId": "m2", "status": "alerted", "createdAt": _at(2)},
    )


async def test_mosque_admin_sees_only_its_mosque(console, identity, store) -> None:
    _seed_records(store)
    seed_operator(identity, store, role="mosque_admin", mosque_id="m1")

    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

    live = console.live
    assert [m.id for m in live.mosques.records] == ["m1"]
    assert [t.id for t in live.trips.records] == ["t3", "t1"]
    # The operator's own profile (mosqueId m1) is listed after u1 (no createdAt).
    assert [u.id for u in live.users.records] == ["u1", "uid-1"]
    assert [r.id for r in live.reports.records] == ["r1"]
    assert all(t.mosque_id == "m1" for t in live.trips.records)


async def test_global_admin_sees_everything_in_order(console, identity, store) -> None:
    _seed_records(store)
    seed_operator(identity, store)

    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

    live = console.live
    assert [m.name for m in live.mosques.records] == ["Al-Noor", "Baitul Futuh"]
    assert [t.id for t in live.trips.records] == ["t3", "t2", "t1"]
    assert [r.id for r in live.reports.records] == ["r2", "r1"]
    # The operator's own profile document lives in users too.
    assert {"u1", "u2"} <= {u.id for u in live.users.records}


async def test_lists_follow_writes(console, identity, store) -> None:
    seed_mosques(store)
    seed_operator(identity, store, role="mosque_admin", mosque_id="m1")
    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
    deliveries = []
    console.live.trips.subscribe(deliveries.append)

    store.seed("trips", "t9", {"mosqueId": "m1", "createdAt": _at(9)})
    store.seed("trips", "t10", {"mosqueId": "m2", "createdAt": _at(10)})

    assert [[t.id for t in d] for d in deliveries] == [["t9"], ["t9"]]


async def test_sign_out_stops_every_subscription(console, identity, store) -> None:
    _seed_records(store)
    seed_operator(identity, store)
    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
    assert store.open_subscriptions()
    cleared = []
    console.live.reports.subscribe(cleared.append)

    await console.sign_out()

    assert store.open_subscriptions() == []
    assert console.live.reports.records == []
    assert cleared == [[]]
    assert console.dashboard_counts() == DashboardCounts()


async def test_scope_change_resubscribes_under_new_scope(console, identity, store) -> None:
    _seed_records(store)
    seed_operator(identity, store, role="mosque_admin", mosque_id="m1")
    seed_operator(identity, store, email="other@liftmosque.org", password="pw2", role="mosque_admin", mosque_id="m2")
    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
    assert [t.id for t in console.live.trips.records] == ["t3", "t1"]

    await console.sign_out()
    await console.sign_in("other@liftmosque.org", "pw2")

    assert [t.id for t in console.live.trips.records] == ["t2"]
    assert len(store.open_subscriptions("trips")) == 1


async def test_dashboard_counts_are_scoped(console, identity, store) -> None:
    _seed_records(store)
    seed_operator(identity, store, role="mosque_admin", mosque_id="m1")
    seen = []
    console.live.subscribe_counts(seen.append)

    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

    assert console.dashboard_counts() == DashboardCounts(users=2, trips=2, mosques=1, pending_reports=1)
    assert seen[-1] == console.dashboard_counts()


async def test_report_views_use_unscoped_directory(console, identity, store) -> None:
    _seed_records(store)
    seed_operator(identity, store, role="mosque_admin", mosque_id="m2")
    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

    views = console.live.report_views()

    assert len(views) == 1
    assert views[0].reporter_name == "Bilal Ali"
    assert views[0].reported_name == UNKNOWN_NAME


async def test_directory_follows_user_changes(console, identity, store) -> None:
    _seed_records(store)
    seed_operator(identity, store, role="mosque_admin", mosque_id="m2")
    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
    directory = console.live.directory
    assert directory.name_of("u1") == "Amina Khan"

    store.seed("users", "u1", {"firstName": "Aminah", "lastName": "Khan", "mosqueId": "m1"})
    store.seed("users", "ghost", {"firstName": "Omar", "mosqueId": "m1"})

    assert directory.name_of("u1") == "Aminah Khan"
    assert console.live.report_views()[0].reported_name == "Omar"

    await console.sign_out()
    assert directory.name_of("u1") == UNKNOWN_NAME


async def test_unscoped_mosque_list_for_mosque_admin(console, identity, store) -> None:
    seed_mosques(store)
    seed_operator(identity, store, role="mosque_admin", mosque_id="m1")
    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
    assert [m.id for m in console.live.all_mosques.records] == ["m1", "m2"]
    assert [m.id for m in console.live.mosques.records] == ["m1"]


async def test_malformed_documents_are_skipped(console, identity, store) -> None:
    seed_mosques(store)
    store.seed("mosques", "bad", {"name": "Broken", "address": "?", "lat": "north", "lng": 0})
    seed_operator(identity, store)
    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
    assert [m.id for m in console.live.mosques.records] == ["m1", "m2"]


async def test_search_users(console, identity, store) -> None:
    _seed_records(store)
    seed_operator(identity, store)
    await console.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
    assert [u.id for u in console.live.search_users("khan")] == ["u1"]


def test_filter_users_empty_term_keeps_all() -> None:
    users = [UserEntity("u1", "A", "B", None, None), UserEntity("u2", "C", "D", None, None)]
    assert filter_users(users, "") == users


async def test_pushdown_adds_query_filter(settings, store) -> None:
    layouts = collection_layouts(settings)
    live = LiveCollection(store, layouts[RecordKind.TRIP], TripEntity.from_document, pushdown=True)
    live.open(ScopePredicate("m1"))
    sub = store.open_subscriptions("trips")[0]
    assert sub.query.where.field == "mosqueId"
    assert sub.query.where.value == "m1"

    mosques = LiveCollection(store, layouts[RecordKind.MOSQUE], MosqueEntity.from_document, pushdown=True)
    mosques.open(ScopePredicate("m1"))
    assert store.open_subscriptions("mosques")[0].query.where is None


async def test_degraded_subscription_reports_error(settings, store) -> None:
    live = LiveCollection(store, collection_layouts(settings)[RecordKind.TRIP], TripEntity.from_document)
    errors = []
    live.on_error(errors.append)
    live.open(UNRESTRICTED)
    error = RemoteOperationException("query trips", "PERMISSION_DENIED", 403)

    store.open_subscriptions("trips")[0].fail(error)

    assert errors == [error]
    assert live.degraded
    assert live.error is error
    assert not live.active


async def test_close_is_idempotent(settings, store) -> None:
    live = LiveCollection(store, collection_layouts(settings)[RecordKind.TRIP], TripEntity.from_document)
    live.open(UNRESTRICTED)
    live.close()
    live.close()
    assert store.open_subscriptions() == []
    assert not live.loaded
