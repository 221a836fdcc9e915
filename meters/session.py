"""CorrectionSession: one analysis snapshot and the corrections made against it."""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set

from .anomaly import Anomaly
from .applicator import ApplyResult, BatchResult, CorrectionApplicator
from .baseline import VehicleBaseline, compute_baselines
from .detection import detect_anomalies
from .suggestions import suggest_corrections
from .thresholds import Thresholds
from .usage_record import UsageRecord

logger = logging.getLogger(__name__)


class AnomalyState(Enum):
    DETECTED = "detected"
    SUGGESTED = "suggested"
    UNSUGGESTED = "unsuggested"
    CORRECTED = "corrected"


class CorrectionSession:
    """
    Runs the analysis pass over a fixed snapshot of records.

    Corrected rows drop out of pending() for the rest of the session.
    Reload the snapshot (a new session) only once no batch is in flight,
    otherwise row indexes may no longer match the stored rows.
    """

    def __init__(
        self,
        records: Iterable[UsageRecord],
        thresholds: Optional[Thresholds] = None,
        suggest: bool = True,
    ):
        self.thresholds = thresholds or Thresholds()
        self.records: List[UsageRecord] = list(records)
        self.baselines: Dict[str, VehicleBaseline] = compute_baselines(self.records, self.thresholds)
        anomalies = detect_anomalies(self.records, self.baselines, self.thresholds)
        self.suggested = suggest
        if suggest:
            anomalies = suggest_corrections(anomalies, self.records, self.thresholds)
        self.anomalies: List[Anomaly] = anomalies
        self._corrected: Set[int] = set()

    def state_of(self, anomaly: Anomaly) -> AnomalyState:
        if anomaly.row_index in self._corrected:
            return AnomalyState.CORRECTED
        if not self.suggested:
            return AnomalyState.DETECTED
        if anomaly.suggestion is not None:
            return AnomalyState.SUGGESTED
        return AnomalyState.UNSUGGESTED

    def pending(self) -> List[Anomaly]:
        return [a for a in self.anomalies if a.row_index not in self._corrected]

    def find(self, row_index: int) -> Optional[Anomaly]:
        """Pending anomaly for a row, if any."""
        for anomaly in self.pending():
            if anomaly.row_index == row_index:
                return anomaly
        return None

    def find_record(self, row_index: int) -> Optional[UsageRecord]:
        for record in self.records:
            if record.row_index == row_index:
                return record
        return None

    def mark_corrected(self, row_index: int) -> None:
        self._corrected.add(row_index)

    def _track(self, result: ApplyResult) -> ApplyResult:
        if result.success:
            self.mark_corrected(result.record.row_index)
        return result

    def apply_suggestion(self, applicator: CorrectionApplicator, anomaly: Anomaly, applied_by: str) -> ApplyResult:
        return self._track(applicator.apply(anomaly, applied_by))

    def apply_manual(
        self,
        applicator: CorrectionApplicator,
        record: UsageRecord,
        field_name: str,
        new_value: float,
        applied_by: str,
        notes: Optional[str] = None,
    ) -> ApplyResult:
        return self._track(applicator.apply_manual(record, field_name, new_value, applied_by, notes))

    def apply_all(self, applicator: CorrectionApplicator, applied_by: str) -> BatchResult:
        """Apply every pending suggestion; the target list is captured up front."""
        targets = [a for a in self.pending() if a.suggestion is not None]
        batch = applicator.apply_all(targets, applied_by)
        for result in batch.details:
            self._track(result)
        return batch
