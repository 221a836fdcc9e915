"""YAML-backed record store and audit log."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .audit_entry import CorrectionAuditEntry
from .normalize import parse_category, parse_row_index, record_from_row
from .thresholds import Thresholds
from .usage_record import FIELDS, UsageRecord

logger = logging.getLogger(__name__)


def _read_yaml(filename: Union[str, Path]) -> Dict[str, Any]:
    with open(filename, "r") as fp:
        return yaml.load(fp, Loader=yaml.SafeLoader) or {}


def _write_yaml(filename: Union[str, Path], data: Dict[str, Any]) -> None:
    with open(filename, "w") as fp:
        yaml.dump(
            data,
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )


def _row_index(row: Dict[str, Any], position: int) -> int:
    """Rows address themselves by rowIndex; fall back to list position."""
    return parse_row_index(row.get("rowIndex"), position)


def load_records(filename: Union[str, Path]) -> List[UsageRecord]:
    """Load all usable records from a records YAML file."""
    rows = _read_yaml(filename).get("records") or []
    records = []
    for position, row in enumerate(rows):
        record = record_from_row(row, default_index=position)
        if record is None:
            logger.debug(f"Skipping row {position} in {filename}: no vehicle code")
            continue
        records.append(record)
    return records


def load_settings(filename: Union[str, Path]) -> Thresholds:
    """Thresholds from the file's optional 'settings' map."""
    return Thresholds.from_settings(_read_yaml(filename).get("settings"))


class YamlRecordStore:
    """Records YAML file: a 'records' list of camelCase rows."""

    def __init__(self, filename: Union[str, Path]):
        self.filename = Path(filename)

    def __repr__(self) -> str:
        return f"YamlRecordStore({str(self.filename)!r})"

    def load_records(self) -> List[UsageRecord]:
        return load_records(self.filename)

    def load_thresholds(self) -> Thresholds:
        return load_settings(self.filename)

    def apply_field_update(self, row_index: int, field: str, new_value: float) -> bool:
        """
        Write one meter reading back to the file.

        The field ('previous' or 'current') is resolved to the km or
        horimeter column according to the row's category. Returns False
        when no row has the given index.
        """
        if field not in FIELDS:
            raise ValueError(f"Unknown meter field '{field}' (expected previous or current)")

        data = _read_yaml(self.filename)
        rows = data.get("records") or []
        for position, row in enumerate(rows):
            if _row_index(row, position) != row_index:
                continue
            meter = parse_category(row.get("category")).meter
            row[f"{meter}{field.capitalize()}"] = new_value
            _write_yaml(self.filename, data)
            return True

        logger.warning(f"Row {row_index} not found in {self.filename}")
        return False


class YamlAuditLog:
    """Audit entries kept as a 'corrections' list in a YAML file."""

    def __init__(self, filename: Union[str, Path]):
        self.filename = Path(filename)

    def __repr__(self) -> str:
        return f"YamlAuditLog({str(self.filename)!r})"

    def _load_raw(self) -> List[Dict[str, Any]]:
        if not self.filename.exists():
            return []
        return _read_yaml(self.filename).get("corrections") or []

    def append_audit_entry(self, entry: CorrectionAuditEntry) -> bool:
        """Append an entry, creating the file on first use."""
        entries = self._load_raw()
        entries.append(entry.to_dict())
        _write_yaml(self.filename, {"corrections": entries})
        return True

    def list_recent_audit_entries(self, limit: int) -> List[CorrectionAuditEntry]:
        """Newest first, by appliedAt then file position."""
        raw = self._load_raw()
        ordered = sorted(
            enumerate(raw), key=lambda p: (str(p[1].get("appliedAt", "")), p[0]), reverse=True
        )
        return [CorrectionAuditEntry.from_dict(dct) for _, dct in ordered[:limit]]


def default_audit_path(records_file: Union[str, Path], audit_file: Optional[Path] = None) -> Path:
    """Audit log beside the records file: fleet.yaml -> fleet.audit.yaml."""
    if audit_file is not None:
        return Path(audit_file)
    records_file = Path(records_file)
    return records_file.with_name(f"{records_file.stem}.audit.yaml")
