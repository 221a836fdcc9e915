"""In-memory record store and audit log.

Any object with the same methods can stand in for these:

- record store: load_records() and apply_field_update(row_index, field, value)
- audit log: append_audit_entry(entry) and list_recent_audit_entries(limit)
"""

from typing import Dict, Iterable, List, Optional

from .audit_entry import CorrectionAuditEntry
from .usage_record import UsageRecord


class MemoryRecordStore:
    """Records held in a dict keyed by row index."""

    def __init__(self, records: Optional[Iterable[UsageRecord]] = None):
        self._records: Dict[int, UsageRecord] = {}
        for record in records or []:
            self._records[record.row_index] = record

    def load_records(self) -> List[UsageRecord]:
        return list(self._records.values())

    def get(self, row_index: int) -> Optional[UsageRecord]:
        return self._records.get(row_index)

    def apply_field_update(self, row_index: int, field: str, new_value: float) -> bool:
        """Replace one meter reading. False if the row is unknown."""
        record = self._records.get(row_index)
        if record is None:
            return False
        self._records[row_index] = record.with_meter(field, new_value)
        return True


class MemoryAuditLog:
    """Append-only list of audit entries."""

    def __init__(self):
        self._entries: List[CorrectionAuditEntry] = []

    @property
    def entries(self) -> List[CorrectionAuditEntry]:
        return list(self._entries)

    def append_audit_entry(self, entry: CorrectionAuditEntry) -> bool:
        self._entries.append(entry)
        return True

    def list_recent_audit_entries(self, limit: int) -> List[CorrectionAuditEntry]:
        """Newest first."""
        newest_first = sorted(
            enumerate(self._entries), key=lambda p: (p[1].applied_at, p[0]), reverse=True
        )
        return [entry for _, entry in newest_first[:limit]]
