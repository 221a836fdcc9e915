"""Apply accepted corrections to every record store and write the audit trail."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Sequence

from .anomaly import Anomaly, SuggestedCorrection
from .audit_entry import SOURCE_AUTO, SOURCE_MANUAL, CorrectionAuditEntry
from .usage_record import UsageRecord

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Outcome of correcting one record."""

    record: UsageRecord
    field: str
    old_value: float
    new_value: float
    success: bool
    audit_entry: Optional[CorrectionAuditEntry] = None
    error: Optional[str] = None
    secondary_failures: List[str] = field(default_factory=list)

    @property
    def audited(self) -> bool:
        return self.audit_entry is not None


@dataclass
class BatchResult:
    """Totals of an apply-all run."""

    total: int = 0
    fixed: int = 0
    errors: int = 0
    details: List[ApplyResult] = field(default_factory=list)


class CorrectionApplicator:
    """
    Writes corrections to a primary store, then to any secondary stores.

    The first store is the primary: a correction succeeds or fails with it.
    Secondary stores and the audit sink are best-effort; their failures are
    logged and never undo the primary update.
    """

    def __init__(self, stores: Sequence[Any], audit_sink: Any, delay: float = 0.0):
        if not stores:
            raise ValueError("At least one record store is required")
        self.stores = list(stores)
        self.audit_sink = audit_sink
        self.delay = delay

    def _update_primary(self, record: UsageRecord, field_name: str, value: float) -> Optional[str]:
        """Returns an error message on failure."""
        primary = self.stores[0]
        try:
            ok = primary.apply_field_update(record.row_index, field_name, value)
        except Exception as e:
            logger.error(f"Primary store {primary!r} raised for row {record.row_index}: {e}")
            return str(e)
        if not ok:
            logger.error(f"Primary store {primary!r} rejected update of row {record.row_index}")
            return "update rejected by primary store"
        return None

    def _update_secondaries(self, record: UsageRecord, field_name: str, value: float) -> List[str]:
        failures = []
        for store in self.stores[1:]:
            name = repr(store)
            try:
                ok = store.apply_field_update(record.row_index, field_name, value)
            except Exception as e:
                logger.warning(f"Secondary store {name} raised for row {record.row_index}: {e}")
                ok = False
            if not ok:
                logger.warning(f"Secondary store {name} not updated for row {record.row_index}")
                failures.append(name)
        return failures

    def _write_audit(self, entry: CorrectionAuditEntry) -> bool:
        try:
            ok = self.audit_sink.append_audit_entry(entry)
        except Exception as e:
            logger.warning(f"Audit entry for row {entry.row_index} not written: {e}")
            return False
        if not ok:
            logger.warning(f"Audit sink rejected entry for row {entry.row_index}")
        return bool(ok)

    def apply_correction(
        self,
        record: UsageRecord,
        field_name: str,
        new_value: float,
        applied_by: str,
        source: str,
        correction_method: Optional[str] = None,
        notes: Optional[str] = None,
        applied_at: Optional[datetime] = None,
    ) -> ApplyResult:
        """Correct one meter field of one record and audit it."""
        old_value = record.meter_value(field_name)
        result = ApplyResult(record, field_name, old_value, new_value, success=False)

        result.error = self._update_primary(record, field_name, new_value)
        if result.error is not None:
            return result
        result.success = True
        result.secondary_failures = self._update_secondaries(record, field_name, new_value)

        entry = CorrectionAuditEntry(
            vehicle_code=record.vehicle_code,
            vehicle_description=record.vehicle_description,
            record_date=record.date.isoformat() if record.date else None,
            record_time=record.time,
            field_corrected=record.column_for(field_name),
            old_value=old_value,
            new_value=new_value,
            correction_method=correction_method,
            source=source,
            applied_by=applied_by,
            applied_at=(applied_at or datetime.now()).isoformat(timespec="seconds"),
            row_index=record.row_index,
            notes=notes,
        )
        if self._write_audit(entry):
            result.audit_entry = entry

        logger.info(
            f"Corrected {record.vehicle_code} row {record.row_index}: "
            f"{entry.field_corrected} {old_value:,.2f} -> {new_value:,.2f} ({source})"
        )
        return result

    def apply(
        self,
        anomaly: Anomaly,
        applied_by: str,
        correction: Optional[SuggestedCorrection] = None,
        source: str = SOURCE_AUTO,
    ) -> ApplyResult:
        """Apply an anomaly's suggestion (or an explicitly accepted one)."""
        correction = correction or anomaly.suggestion
        if correction is None:
            raise ValueError(f"Row {anomaly.row_index} has no correction to apply")
        return self.apply_correction(
            anomaly.record,
            correction.field,
            correction.proposed_value,
            applied_by,
            source=source,
            correction_method=correction.method.value,
            notes=correction.rationale,
        )

    def apply_manual(
        self,
        record: UsageRecord,
        field_name: str,
        new_value: float,
        applied_by: str,
        notes: Optional[str] = None,
    ) -> ApplyResult:
        """Apply an operator-entered value."""
        return self.apply_correction(
            record, field_name, new_value, applied_by, source=SOURCE_MANUAL, notes=notes
        )

    def apply_all(self, anomalies: Sequence[Anomaly], applied_by: str) -> BatchResult:
        """
        Apply every suggested correction, one record at a time.

        Anomalies without a suggestion are skipped. A failing record is
        counted and the batch carries on.
        """
        fixable = [a for a in anomalies if a.suggestion is not None]
        batch = BatchResult(total=len(fixable))

        for position, anomaly in enumerate(fixable):
            result = self.apply(anomaly, applied_by)
            batch.details.append(result)
            if result.success:
                batch.fixed += 1
            else:
                batch.errors += 1
            if self.delay and position < len(fixable) - 1:
                time.sleep(self.delay)

        logger.info(f"Batch correction: {batch.fixed} fixed, {batch.errors} errors of {batch.total}")
        return batch
