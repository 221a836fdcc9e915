"""Parsing helpers that turn raw log fields into typed values.

Nothing here raises on bad input: a malformed field degrades to 0.0 / None
(or the list position for rowIndex) so one bad cell cannot abort an
analysis pass.
"""

import math
from datetime import date, datetime, time
from typing import Any, Dict, Optional

from dateutil.parser import isoparse

from .category import Category
from .usage_record import UsageRecord

_VEHICLE_CATEGORIES = {"VEICULO", "VEÍCULO", "VEHICLE"}


def parse_number(value: Any) -> float:
    """
    Parse a pt-BR formatted number ('1.234,5' -> 1234.5).

    Numbers pass through unchanged. Blank or unparseable input gives 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(".", "").replace(",", ".")
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def parse_date(value: Any) -> Optional[date]:
    """Parse 'dd/mm/yyyy' or ISO dates. Returns None when unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    parts = text.split("/")
    if len(parts) == 3:
        try:
            day, month, year = (int(p) for p in parts)
            return date(year, month, day)
        except ValueError:
            return None

    try:
        return isoparse(text).date()
    except (ValueError, OverflowError):
        return None


def parse_time(value: Any) -> Optional[time]:
    """
    Parse a time of day: 'H:MM', 'HH:MM' or 'HH:MM:SS'.

    PyYAML reads an unquoted 10:30 as the base-60 int 630, so ints are taken
    as minutes past midnight (or seconds, for an unquoted HH:MM:SS).
    Returns None when unparseable.
    """
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        seconds = value * 60 if value < 24 * 60 else value
        hours, rest = divmod(seconds, 3600)
        minutes, secs = divmod(rest, 60)
        parts = [hours, minutes, secs]
    else:
        text = str(value).strip()
        pieces = text.split(":")
        if len(pieces) not in (2, 3) or not all(p.isdigit() for p in pieces):
            return None
        parts = [int(p) for p in pieces]
    try:
        return time(*parts)
    except ValueError:
        return None


def format_time(value: Optional[time]) -> str:
    """Zero-padded 'HH:MM', with seconds only when present."""
    if value is None:
        return ""
    return value.strftime("%H:%M:%S" if value.second else "%H:%M")


def parse_row_index(value: Any, default: int) -> int:
    """Integer rowIndex, or the given default when missing or malformed."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_category(value: Any) -> Category:
    """VEICULO/vehicle means odometer-tracked; everything else is equipment."""
    text = str(value or "").strip().upper()
    return Category.VEHICLE if text in _VEHICLE_CATEGORIES else Category.EQUIPMENT


def record_from_row(row: Dict[str, Any], default_index: int = 0) -> Optional[UsageRecord]:
    """
    Build a UsageRecord from a raw camelCase row.

    Rows without a vehicle code are not usable and give None.
    """
    vehicle_code = str(row.get("vehicleCode") or "").strip()
    if not vehicle_code:
        return None

    raw_time = row.get("time")
    parsed_time = parse_time(raw_time)
    return UsageRecord(
        row_index=parse_row_index(row.get("rowIndex"), default_index),
        vehicle_code=vehicle_code,
        category=parse_category(row.get("category")),
        date=parse_date(row.get("date")),
        time=format_time(parsed_time) if parsed_time is not None else str(raw_time or "").strip(),
        vehicle_description=str(row.get("vehicleDescription") or "").strip(),
        horimeter_previous=parse_number(row.get("horimeterPrevious")),
        horimeter_current=parse_number(row.get("horimeterCurrent")),
        km_previous=parse_number(row.get("kmPrevious")),
        km_current=parse_number(row.get("kmCurrent")),
        fuel_quantity=parse_number(row.get("fuelQuantity")),
    )
