"""Tests for domain entities, profiles and enums."""

from datetime import UTC, datetime

import pytest

from liftmosque_admin.domain.entities import (
    GlobalAdminProfile,
    MosqueAdminProfile,
    MosqueEntity,
    ReportEntity,
    TripEntity,
    UserEntity,
    mosque_admin_document,
    profile_from_document,
)
from liftmosque_admin.domain.enums import AdminRole, MissingProfilePolicy, ReportStatus
from liftmosque_admin.domain.exceptions import (
    AuthorizationException,
    StateConflictException,
    ValidationException,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def test_enum_values() -> None:
    assert AdminRole.values() == ["global_admin", "mosque_admin"]
    assert ReportStatus.values() == ["pending", "alerted"]


def test_mosque_from_document() -> None:
    mosque = MosqueEntity.from_document(
        "m1", {"name": "Al-Noor", "address": "1 High St", "lat": 51.5, "lng": "-0.12"}
    )
    assert mosque.mosque_id == "m1"
    assert (mosque.lat, mosque.lng) == (51.5, -0.12)


def test_mosque_from_document_with_bad_coordinates() -> None:
    with pytest.raises(ValidationException) as exc_info:
        MosqueEntity.from_document("m1", {"name": "X", "address": "Y", "lat": "north"})
    assert exc_info.value.details["field"] == "coordinates"


def test_mosque_requires_name() -> None:
    with pytest.raises(ValidationException):
        MosqueEntity.from_document("m1", {"address": "Y", "lat": 1, "lng": 2})


def test_trip_from_document_is_lenient() -> None:
    trip = TripEntity.from_document(
        "t1",
        {
            "driverName": "Yusuf",
            "mosqueId": "m1",
            "seatsAvailable": "three",
            "interestedUsers": ["u1", 7, "u2"],
            "departureTime": "Friday 12:30",
            "createdAt": NOW,
        },
    )
    assert trip.seats_available == 0
    assert trip.interested_users == ("u1", "u2")
    assert trip.interested_count == 2
    assert trip.departure_time == "Friday 12:30"
    assert trip.created_at == NOW


def test_user_display_name_and_search() -> None:
    user = UserEntity.from_document(
        "u1",
        {"firstName": "Amina", "lastName": "Khan", "email": "Amina@Example.org", "phone": "+44 7700 900123"},
    )
    assert user.display_name == "Amina Khan"
    assert user.matches("amina k")
    assert user.matches("EXAMPLE.ORG")
    assert user.matches("900123")
    assert user.matches("")
    assert not user.matches("bilal")


def test_report_from_document_defaults_to_pending() -> None:
    report = ReportEntity.from_document("r1", {"reporterId": "u1", "reportedUserId": "u2", "reason": "late"})
    assert report.status == ReportStatus.PENDING
    assert report.is_pending


def test_report_from_document_rejects_unknown_status() -> None:
    with pytest.raises(ValidationException):
        ReportEntity.from_document("r1", {"status": "closed"})


def test_report_mark_alerted_once() -> None:
    report = ReportEntity.from_document("r1", {"reason": "late"})
    report.mark_alerted("Please be on time", NOW)
    assert report.status == ReportStatus.ALERTED
    assert report.admin_comment == "Please be on time"
    assert report.responded_at == NOW
    assert report.is_read is False

    with pytest.raises(StateConflictException):
        report.mark_alerted("Second message", NOW)
    assert report.admin_comment == "Please be on time"


def test_report_mark_alerted_requires_comment() -> None:
    report = ReportEntity.from_document("r1", {})
    with pytest.raises(ValidationException):
        report.mark_alerted("   ", NOW)
    assert report.is_pending


def test_profile_global_admin() -> None:
    profile = profile_from_document("uid-1", {"role": "global_admin"}, MissingProfilePolicy.DENY)
    assert isinstance(profile, GlobalAdminProfile)
    assert profile.mosque_id is None


def test_profile_mosque_admin() -> None:
    profile = profile_from_document(
        "uid-1",
        {"role": "mosque_admin", "mosqueId": "m1", "firstName": "Admin", "lastName": "Al-Noor"},
        MissingProfilePolicy.DENY,
    )
    assert isinstance(profile, MosqueAdminProfile)
    assert profile.mosque_id == "m1"
    assert profile.role == AdminRole.MOSQUE_ADMIN
    assert profile.display_name == "Admin Al-Noor"


@pytest.mark.parametrize("data", [None, {}, {"email": "x@liftmosque.org"}])
def test_missing_profile_follows_policy(data) -> None:
    profile = profile_from_document("uid-1", data, MissingProfilePolicy.GLOBAL_ADMIN)
    assert isinstance(profile, GlobalAdminProfile)
    with pytest.raises(AuthorizationException):
        profile_from_document("uid-1", data, MissingProfilePolicy.DENY)


def test_mosque_admin_profile_without_mosque_is_refused() -> None:
    with pytest.raises(AuthorizationException):
        profile_from_document("uid-1", {"role": "mosque_admin"}, MissingProfilePolicy.GLOBAL_ADMIN)


def test_unknown_role_is_refused() -> None:
    with pytest.raises(AuthorizationException):
        profile_from_document("uid-1", {"role": "superuser"}, MissingProfilePolicy.GLOBAL_ADMIN)


def test_mosque_admin_profile_requires_mosque_id() -> None:
    with pytest.raises(ValidationException):
        MosqueAdminProfile(uid="uid-1", mosque_id="")


def test_mosque_admin_document() -> None:
    doc = mosque_admin_document("new@liftmosque.org", "m1", NOW, mosque_name="Al-Noor")
    assert doc == {
        "role": "mosque_admin",
        "mosqueId": "m1",
        "email": "new@liftmosque.org",
        "firstName": "Admin",
        "lastName": "Al-Noor",
        "phone": "",
        "createdAt": NOW,
    }
