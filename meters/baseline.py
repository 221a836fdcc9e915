"""VehicleBaseline and the per-vehicle baseline calculation."""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .calculations import calc_average, is_plausible_interval
from .category import Category
from .thresholds import Thresholds
from .usage_record import UsageRecord


@dataclass(frozen=True)
class VehicleBaseline:
    """Expected interval between consecutive readings of one vehicle."""

    vehicle_code: str
    category: Category
    average_interval: float = 0.0
    record_count: int = 0

    @property
    def has_baseline(self) -> bool:
        return self.average_interval > 0


def group_by_vehicle(records: Iterable[UsageRecord]) -> Dict[str, List[UsageRecord]]:
    """Group dated records per vehicle, each list in chronological order."""
    grouped: Dict[str, List[UsageRecord]] = defaultdict(list)
    for record in records:
        if record.date is not None:
            grouped[record.vehicle_code].append(record)
    for vehicle_records in grouped.values():
        vehicle_records.sort(key=lambda r: r.sort_key)
    return dict(grouped)


def calc_average_interval(
    vehicle_records: List[UsageRecord], thresholds: Thresholds
) -> float:
    """
    Mean of the plausible deltas between consecutive current readings.

    Records must already be in chronological order. Non-positive deltas
    and deltas at or above max_plausible_interval are left out.
    """
    deltas = [
        curr.meter_current - prev.meter_current
        for prev, curr in zip(vehicle_records, vehicle_records[1:])
    ]
    return calc_average(d for d in deltas if is_plausible_interval(d, thresholds))


def compute_baselines(
    records: Iterable[UsageRecord], thresholds: Optional[Thresholds] = None
) -> Dict[str, VehicleBaseline]:
    """Compute one baseline per vehicle code from the full record set."""
    thresholds = thresholds or Thresholds()
    records = list(records)
    dated = group_by_vehicle(records)

    counts: Dict[str, int] = defaultdict(int)
    categories: Dict[str, Category] = {}
    for record in records:
        counts[record.vehicle_code] += 1
        categories.setdefault(record.vehicle_code, record.category)

    return {
        code: VehicleBaseline(
            vehicle_code=code,
            category=categories[code],
            average_interval=calc_average_interval(dated.get(code, []), thresholds),
            record_count=counts[code],
        )
        for code in counts
    }
