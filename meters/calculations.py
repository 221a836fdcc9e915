"""Helper functions for interval and deviation calculations."""

from typing import Iterable, Optional

from .severity import Severity
from .thresholds import Thresholds


def calc_deviation_percent(interval: float, average_interval: float) -> float:
    """
    Signed percentage by which an interval departs from the baseline.

    0.0 when there is no baseline to compare against.
    """
    if average_interval <= 0:
        return 0.0
    return (interval - average_interval) / average_interval * 100


def check_severity(deviation_percent: float, thresholds: Thresholds) -> Optional[Severity]:
    """
    Map a deviation to a severity, or None if it is not anomalous.

    Lower limit is exclusive, the medium/high limits are inclusive:
    200 -> None, 200.01 -> LOW, 300 -> MEDIUM, 500 -> HIGH.
    """
    if deviation_percent <= thresholds.low_deviation:
        return None
    if deviation_percent >= thresholds.high_deviation:
        return Severity.HIGH
    if deviation_percent >= thresholds.medium_deviation:
        return Severity.MEDIUM
    return Severity.LOW


def is_plausible_interval(interval: float, thresholds: Thresholds) -> bool:
    """Positive and below the data-entry-error cutoff."""
    return 0 < interval < thresholds.max_plausible_interval


def calc_average(values: Iterable[float]) -> float:
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)
