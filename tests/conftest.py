"""Shared fixtures for building usage records."""

import itertools
from datetime import date

import pytest

from meters import Category, UsageRecord


@pytest.fixture
def make_record():
    """
    Factory for UsageRecord.

    Readings go to the km columns for vehicles and the horimeter columns
    for equipment. Row indexes are assigned in creation order unless given.
    """
    counter = itertools.count(1)

    def _make(
        previous,
        current,
        day=None,
        vehicle="V1",
        category=Category.VEHICLE,
        time="",
        row=None,
        description="",
    ):
        meter = category.meter
        readings = {f"{meter}_previous": previous, f"{meter}_current": current}
        return UsageRecord(
            row_index=row if row is not None else next(counter),
            vehicle_code=vehicle,
            category=category,
            date=day,
            time=time,
            vehicle_description=description,
            **readings,
        )

    return _make


@pytest.fixture
def scenario_records(make_record):
    """Vehicle V1: two normal refuellings then a reading with an extra digit."""
    return [
        make_record(1000, 1100, day=date(2025, 1, 1)),
        make_record(1100, 1200, day=date(2025, 1, 2)),
        make_record(1200, 9950, day=date(2025, 1, 3)),
    ]
