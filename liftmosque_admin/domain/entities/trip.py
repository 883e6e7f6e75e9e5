"""Trip domain entity (created by end users in the mobile app)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from liftmosque_admin.domain.entities._fields import text, timestamp


@dataclass(frozen=True)
class TripEntity:
    """A ride offered by a driver to a mosque.

    departure_time is opaque: the mobile app stores either free text or a
    timestamp, and both are kept as read.
    """

    id: str
    driver_name: str | None
    mosque_id: str | None
    mosque_name: str | None
    departure_point: str | None
    departure_time: str | datetime | None
    seats_available: int
    interested_users: tuple[str, ...] = field(default_factory=tuple)
    created_at: datetime | None = None

    @property
    def interested_count(self) -> int:
        return len(self.interested_users)

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "TripEntity":
        """Build from a Firestore document; malformed optional fields become None/0."""
        seats = data.get("seatsAvailable")
        if isinstance(seats, bool) or not isinstance(seats, (int, float)):
            seats = 0
        interested = data.get("interestedUsers")
        if not isinstance(interested, list):
            interested = []
        departure = data.get("departureTime")
        if not isinstance(departure, (str, datetime)):
            departure = None
        return cls(
            id=doc_id,
            driver_name=text(data, "driverName"),
            mosque_id=text(data, "mosqueId"),
            mosque_name=text(data, "mosqueName"),
            departure_point=text(data, "departurePoint"),
            departure_time=departure,
            seats_available=max(int(seats), 0),
            interested_users=tuple(u for u in interested if isinstance(u, str)),
            created_at=timestamp(data, "createdAt"),
        )
