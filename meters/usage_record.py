"""UsageRecord class for fuel/usage log rows."""

from dataclasses import dataclass, replace
from datetime import date, time as dt_time
from typing import Optional, Tuple

from .category import Category

FIELDS = ("previous", "current")


@dataclass(frozen=True)
class UsageRecord:
    """One refuelling entry with the meter readings taken at that moment."""

    row_index: int
    vehicle_code: str
    category: Category
    date: Optional[date]
    time: str = ""
    vehicle_description: str = ""
    horimeter_previous: float = 0.0
    horimeter_current: float = 0.0
    km_previous: float = 0.0
    km_current: float = 0.0
    fuel_quantity: float = 0.0

    @property
    def meter_previous(self) -> float:
        """Previous reading of the meter this record's category tracks."""
        return getattr(self, f"{self.category.meter}_previous")

    @property
    def meter_current(self) -> float:
        """Current reading of the meter this record's category tracks."""
        return getattr(self, f"{self.category.meter}_current")

    @property
    def interval(self) -> float:
        return self.meter_current - self.meter_previous

    @property
    def sort_key(self) -> Tuple[date, bool, dt_time]:
        """
        Chronological key; only meaningful for dated records.

        Same-day records order by parsed time of day, unparseable times first.
        """
        # normalize imports this module
        from .normalize import parse_time

        time_of_day = parse_time(self.time)
        return (self.date or date.min, time_of_day is not None, time_of_day or dt_time.min)

    def column_for(self, field: str) -> str:
        """Map 'previous'/'current' to the snake_case column name, e.g. km_previous."""
        if field not in FIELDS:
            raise ValueError(f"Unknown meter field '{field}' (expected previous or current)")
        return f"{self.category.meter}_{field}"

    def meter_value(self, field: str) -> float:
        return getattr(self, self.column_for(field))

    def with_meter(self, field: str, value: float) -> "UsageRecord":
        """Copy of this record with one meter reading replaced."""
        return replace(self, **{self.column_for(field): value})
