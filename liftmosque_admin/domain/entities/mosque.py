"""Mosque domain entity."""

from dataclasses import dataclass
from typing import Any

from liftmosque_admin.domain.entities._fields import text
from liftmosque_admin.domain.exceptions import ValidationException
from liftmosque_admin.domain.value_objects.core import Coordinates


@dataclass(frozen=True)
class MosqueEntity:
    """A mosque trips are organized to.

    Referenced by trips, users, reports, and mosque_admin profiles through a
    soft ``mosqueId`` key; deleting a mosque never touches those records.
    """

    id: str
    name: str
    address: str
    coordinates: Coordinates

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationException("Mosque ID is required", field="id")
        if not self.name or not self.name.strip():
            raise ValidationException("Mosque name is required", field="name")

    @property
    def lat(self) -> float:
        return self.coordinates.lat

    @property
    def lng(self) -> float:
        return self.coordinates.lng

    @property
    def mosque_id(self) -> str:
        """Scope key: a mosque is in scope for the admin of that mosque."""
        return self.id

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "MosqueEntity":
        """Build from a Firestore document.

        Raises:
            ValidationException: If name or coordinates are missing or invalid.
        """
        try:
            coordinates = Coordinates(data.get("lat"), data.get("lng"))
        except ValueError as e:
            raise ValidationException(str(e), field="coordinates") from e
        return cls(
            id=doc_id,
            name=text(data, "name") or "",
            address=text(data, "address") or "",
            coordinates=coordinates,
        )
