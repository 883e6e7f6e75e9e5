"""Command input schemas for the four record kinds.

Field names are snake_case in Python and camelCase in Firestore; both are
accepted on input and model_dump(by_alias=True) yields document fields.
Unknown fields are rejected so a command can never write fields it does not
own (e.g. a report's status or adminComment).
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from liftmosque_admin.domain.entities.mosque import MosqueEntity
from liftmosque_admin.domain.exceptions import ValidationException
from liftmosque_admin.domain.value_objects.core import parse_coordinate


class _RecordInput(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="forbid",
    )

    def to_document(self, *, partial: bool = False) -> dict[str, Any]:
        """Firestore fields for this input; partial keeps only the fields that were provided."""
        return self.model_dump(by_alias=True, exclude_unset=partial)


class MosqueWrite(_RecordInput):
    """Create or full update of a mosque. Coordinates may be typed as text."""

    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., min_length=1, max_length=500)
    lat: float
    lng: float

    @field_validator("lat", mode="before")
    @classmethod
    def _parse_lat(cls, v: Any) -> float:
        return parse_coordinate(v, "lat", 90)

    @field_validator("lng", mode="before")
    @classmethod
    def _parse_lng(cls, v: Any) -> float:
        return parse_coordinate(v, "lng", 180)

    @classmethod
    def form_values(cls, mosque: MosqueEntity) -> dict[str, str]:
        """Edit-form prefill: current values as text, coordinates included."""
        lat, lng = mosque.coordinates.as_text()
        return {"name": mosque.name, "address": mosque.address, "lat": lat, "lng": lng}


class TripCreate(_RecordInput):
    driver_name: str = Field(..., min_length=1, max_length=255)
    mosque_id: str = Field(..., min_length=1)
    mosque_name: str | None = None
    departure_point: str = Field(..., min_length=1, max_length=500)
    departure_time: str | datetime
    seats_available: int = Field(..., ge=0)
    interested_users: list[str] = Field(default_factory=list)


class TripUpdate(_RecordInput):
    driver_name: str | None = Field(default=None, min_length=1, max_length=255)
    mosque_id: str | None = Field(default=None, min_length=1)
    mosque_name: str | None = None
    departure_point: str | None = Field(default=None, min_length=1, max_length=500)
    departure_time: str | datetime | None = None
    seats_available: int | None = Field(default=None, ge=0)
    interested_users: list[str] | None = None


class UserCreate(_RecordInput):
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=50)
    mosque_id: str | None = None


class UserUpdate(_RecordInput):
    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    last_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    mosque_id: str | None = None


class ReportCreate(_RecordInput):
    """New report. Status is always pending; it is set by the command, not the caller."""

    reporter_id: str = Field(..., min_length=1)
    reported_user_id: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1, max_length=2000)
    mosque_id: str | None = None


class ReportUpdate(_RecordInput):
    """Editable report fields. Status changes go through respond_to_report only."""

    reason: str | None = Field(default=None, min_length=1, max_length=2000)
    mosque_id: str | None = None


class AdminProvisionRequest(BaseModel):
    """Input of the admin provisioning workflow."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(..., min_length=1)
    mosque_id: str = Field(..., min_length=1)

    @field_validator("password")
    @classmethod
    def _password_not_blank(cls, v: str) -> str:
        # Whitespace inside a password is significant, so it is never stripped.
        if not v.strip():
            raise ValueError("password is required")
        return v

    @field_validator("mosque_id", mode="before")
    @classmethod
    def _strip_mosque_id(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


def parse_input(model: type[BaseModel], fields: dict[str, Any]) -> Any:
    """Validate fields against model, raising ValidationException on the first error.

    Raises:
        ValidationException: With the offending field name when known.
    """
    try:
        return model.model_validate(fields)
    except ValidationError as e:
        first = e.errors()[0]
        loc = first.get("loc") or ()
        field = str(loc[0]) if loc else None
        message = first.get("msg", "Invalid input").removeprefix("Value error, ")
        if field and field not in message:
            message = f"{field}: {message}"
        raise ValidationException(message, field=field) from None
