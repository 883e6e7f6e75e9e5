"""Domain value objects and shared value types."""

from liftmosque_admin.domain.value_objects.core import Coordinates, parse_coordinate

__all__ = [
    "Coordinates",
    "parse_coordinate",
]
