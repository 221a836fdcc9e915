"""Category enum: which meter a record is tracked by."""

from enum import Enum


class Category(Enum):
    """Vehicles are tracked by odometer (km), equipment by hour-meter."""

    VEHICLE = "vehicle"
    EQUIPMENT = "equipment"

    @property
    def unit(self) -> str:
        return "km" if self is Category.VEHICLE else "h"

    @property
    def meter(self) -> str:
        """Column prefix of the meter pair used by this category."""
        return "km" if self is Category.VEHICLE else "horimeter"
