"""Domain value objects for the console.

Value objects are immutable, self-validating, and raise ValueError on bad
input (entities and command models translate that into ValidationException).
"""

import math
from dataclasses import dataclass


def parse_coordinate(value: object, name: str, bound: float) -> float:
    """Parse a latitude/longitude from a number or numeric string.

    Args:
        value: Raw input (form text, int, float).
        name: Field name used in error messages.
        bound: Absolute bound (90 for latitude, 180 for longitude).

    Raises:
        ValueError: If the value is missing, not numeric, not finite, or out of range.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"{name} must be a number")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError(f"{name} is required")
        try:
            number = float(text)
        except ValueError:
            raise ValueError(f"{name} must be a number, got {value!r}") from None
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        raise ValueError(f"{name} must be a number")
    if not math.isfinite(number):
        raise ValueError(f"{name} must be a finite number")
    if not -bound <= number <= bound:
        raise ValueError(f"{name} must be between -{bound:g} and {bound:g}")
    return number


@dataclass(frozen=True)
class Coordinates:
    """A mosque location. Both parts are always finite and in range."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "lat", parse_coordinate(self.lat, "lat", 90))
        object.__setattr__(self, "lng", parse_coordinate(self.lng, "lng", 180))

    def as_text(self) -> tuple[str, str]:
        """Coordinates rendered back as form strings (edit prefill)."""
        return repr(self.lat), repr(self.lng)
