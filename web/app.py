"""Flask JSON API over the anomaly engine."""

import os
from pathlib import Path

from flask import Flask, jsonify, request

# Add parent directory to path for package imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from meters import (
    Anomaly,
    ApplyResult,
    AuditHistory,
    CorrectionApplicator,
    CorrectionAuditEntry,
    CorrectionSession,
    Severity,
    YamlAuditLog,
    YamlRecordStore,
    date_range,
    default_audit_path,
    filter_anomalies,
    parse_date,
    summarize,
)
from meters.audit_history import DEFAULT_PAGE_SIZE

app = Flask(__name__)

# Records file (relative to project root unless overridden)
app.config.setdefault(
    "RECORDS_FILE",
    Path(os.environ.get("METER_RECORDS", Path(__file__).parent.parent / "records" / "example.yaml")),
)
app.config.setdefault("AUDIT_FILE", None)
app.config.setdefault("MIRROR_FILES", [])


def get_records_path() -> Path:
    return Path(app.config["RECORDS_FILE"])


def get_audit_log() -> YamlAuditLog:
    return YamlAuditLog(default_audit_path(get_records_path(), app.config["AUDIT_FILE"]))


def build_session() -> CorrectionSession:
    """Fresh snapshot per request; corrected rows stop being flagged on reload."""
    store = YamlRecordStore(get_records_path())
    return CorrectionSession(store.load_records(), store.load_thresholds())


def build_applicator() -> CorrectionApplicator:
    stores = [YamlRecordStore(get_records_path())]
    stores += [YamlRecordStore(p) for p in app.config["MIRROR_FILES"]]
    return CorrectionApplicator(stores, get_audit_log())


def error(message: str, status: int = 400):
    return jsonify({"error": message}), status


@app.errorhandler(ValueError)
def invalid_settings(e):
    """Bad threshold settings in the records file surface on every route."""
    return error(str(e), 500)


def anomaly_to_dict(anomaly: Anomaly) -> dict:
    record = anomaly.record
    data = {
        "rowIndex": record.row_index,
        "vehicleCode": record.vehicle_code,
        "vehicleDescription": record.vehicle_description,
        "category": record.category.value,
        "date": record.date.isoformat() if record.date else None,
        "time": record.time,
        "previous": record.meter_previous,
        "current": record.meter_current,
        "interval": anomaly.interval,
        "averageInterval": anomaly.average_interval,
        "deviationPercent": round(anomaly.deviation_percent, 2),
        "severity": anomaly.severity.label,
        "issueKind": anomaly.issue_kind.value,
        "suggestedCorrection": None,
    }
    if anomaly.suggestion is not None:
        data["suggestedCorrection"] = {
            "field": anomaly.suggestion.field,
            "oldValue": anomaly.old_value,
            "proposedValue": anomaly.suggestion.proposed_value,
            "rationale": anomaly.suggestion.rationale,
            "correctionMethod": anomaly.suggestion.method.value,
        }
    return data


def result_to_dict(result: ApplyResult) -> dict:
    return {
        "rowIndex": result.record.row_index,
        "vehicleCode": result.record.vehicle_code,
        "field": result.record.column_for(result.field),
        "oldValue": result.old_value,
        "newValue": result.new_value,
        "success": result.success,
        "audited": result.audited,
        "error": result.error,
        "secondaryFailures": result.secondary_failures,
    }


def audit_to_dict(entry: CorrectionAuditEntry) -> dict:
    return entry.to_dict()


def get_applied_by():
    """appliedBy must be given explicitly with every correction."""
    payload = request.get_json(silent=True) or {}
    applied_by = str(payload.get("appliedBy") or "").strip()
    return payload, applied_by or None


@app.route("/baselines")
def baselines():
    """Expected interval per vehicle."""
    session = build_session()
    return jsonify([
        {
            "vehicleCode": b.vehicle_code,
            "category": b.category.value,
            "averageInterval": b.average_interval,
            "recordCount": b.record_count,
        }
        for _, b in sorted(session.baselines.items())
    ])


@app.route("/anomalies")
def anomalies():
    """Pending anomalies, filtered by severity, vehicle and date range."""
    session = build_session()

    severity_arg = request.args.get("severity", "").lower() or None
    severity_map = {
        "high": Severity.HIGH,
        "medium": Severity.MEDIUM,
        "low": Severity.LOW,
    }
    if severity_arg and severity_arg not in severity_map:
        return error(f"Unknown severity '{severity_arg}'")

    try:
        start, end = date_range(
            request.args.get("range", "all"),
            start=parse_date(request.args.get("start")),
            end=parse_date(request.args.get("end")),
        )
    except ValueError as e:
        return error(str(e))

    filtered = filter_anomalies(
        session.pending(),
        severity=severity_map.get(severity_arg) if severity_arg else None,
        vehicle_code=request.args.get("vehicle") or None,
        start=start,
        end=end,
    )
    return jsonify([anomaly_to_dict(a) for a in filtered])


@app.route("/summary")
def summary():
    """Anomaly counts by severity plus how many have a suggestion."""
    counts = summarize(build_session().pending())
    return jsonify({
        "total": counts.total,
        "high": counts.high,
        "medium": counts.medium,
        "low": counts.low,
        "fixable": counts.fixable,
    })


@app.route("/anomalies/<int:row_index>/fix", methods=["POST"])
def fix_anomaly(row_index: int):
    """Apply the suggested correction for one row."""
    _, applied_by = get_applied_by()
    if applied_by is None:
        return error("appliedBy is required")

    session = build_session()
    anomaly = session.find(row_index)
    if anomaly is None:
        return error(f"Row {row_index} is not flagged as an anomaly", 404)
    if anomaly.suggestion is None:
        return error(f"No automatic correction for row {row_index}", 409)

    result = session.apply_suggestion(build_applicator(), anomaly, applied_by)
    return jsonify(result_to_dict(result)), 200 if result.success else 500


@app.route("/anomalies/<int:row_index>/edit", methods=["POST"])
def edit_record(row_index: int):
    """Manually correct one reading: {"field", "value", "appliedBy", "notes"}."""
    payload, applied_by = get_applied_by()
    if applied_by is None:
        return error("appliedBy is required")

    field = payload.get("field")
    if field not in ("previous", "current"):
        return error("field must be 'previous' or 'current'")
    try:
        value = float(payload.get("value"))
    except (TypeError, ValueError):
        return error("value must be a number")

    session = build_session()
    record = session.find_record(row_index)
    if record is None:
        return error(f"Unknown row {row_index}", 404)

    result = session.apply_manual(
        build_applicator(), record, field, value, applied_by, notes=payload.get("notes")
    )
    return jsonify(result_to_dict(result)), 200 if result.success else 500


@app.route("/anomalies/fix-all", methods=["POST"])
def fix_all():
    """Apply every pending suggestion."""
    _, applied_by = get_applied_by()
    if applied_by is None:
        return error("appliedBy is required")

    batch = build_session().apply_all(build_applicator(), applied_by)
    return jsonify({
        "total": batch.total,
        "fixed": batch.fixed,
        "errors": batch.errors,
        "details": [result_to_dict(r) for r in batch.details],
    })


@app.route("/audit")
def audit():
    """Most recent corrections, newest first."""
    try:
        limit = int(request.args.get("limit", DEFAULT_PAGE_SIZE))
    except ValueError:
        return error("limit must be an integer")

    history = AuditHistory(get_audit_log())
    vehicle = request.args.get("vehicle")
    entries = history.for_vehicle(vehicle, limit) if vehicle else history.recent(limit)
    return jsonify([audit_to_dict(e) for e in entries])


if __name__ == "__main__":
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    app.run(debug=True, host="0.0.0.0", port=5001)
