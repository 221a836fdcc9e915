"""Anomaly and SuggestedCorrection dataclasses."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .severity import IssueKind, Severity
from .usage_record import UsageRecord


class CorrectionMethod(Enum):
    """Tag naming the typo theory behind a suggested correction."""

    CURRENT_EXTRA_DIGIT = "current_extra_digit"
    PREVIOUS_MISSING_DIGIT = "previous_missing_digit"
    DECIMAL_SHIFT = "decimal_shift"
    ESTIMATED_FROM_AVERAGE = "estimated_from_average"
    FROM_HISTORY = "from_history"
    RESYNC_PREVIOUS = "resync_previous"


@dataclass(frozen=True)
class SuggestedCorrection:
    """A proposed new value for one meter field of a record."""

    field: str  # "previous" or "current"
    proposed_value: float
    rationale: str
    method: CorrectionMethod


@dataclass(frozen=True)
class Anomaly:
    """A record whose interval is inconsistent with expectations."""

    record: UsageRecord
    issue_kind: IssueKind
    severity: Severity
    interval: float
    average_interval: float = 0.0
    deviation_percent: float = 0.0
    suggestion: Optional[SuggestedCorrection] = None

    @property
    def row_index(self) -> int:
        return self.record.row_index

    @property
    def vehicle_code(self) -> str:
        return self.record.vehicle_code

    @property
    def is_fixable(self) -> bool:
        return self.suggestion is not None

    @property
    def old_value(self) -> Optional[float]:
        """Value the suggestion would replace."""
        if self.suggestion is None:
            return None
        return self.record.meter_value(self.suggestion.field)
