#!/usr/bin/env python3
"""
CLI for odometer / hour-meter anomaly checks.

Commands:
  baselines - Show the expected interval per vehicle
  anomalies - List inconsistent readings with suggested corrections
  fix       - Apply the suggested correction for one row
  edit      - Manually correct one reading
  fix-all   - Apply every suggested correction
  audit     - View recently applied corrections
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

import yaml

from meters import (
    Anomaly,
    ApplyResult,
    AuditHistory,
    CorrectionApplicator,
    CorrectionAuditEntry,
    CorrectionSession,
    Severity,
    Thresholds,
    YamlAuditLog,
    YamlRecordStore,
    date_range,
    default_audit_path,
    filter_anomalies,
    parse_date,
    summarize,
)
from meters.filters import DATE_RANGES

# =============================================================================
# Formatting helpers
# =============================================================================


def format_reading(value: Optional[float]) -> str:
    """Format a meter reading for display."""
    return f"{value:,.2f}" if value is not None else "-"


def format_percent(value: Optional[float]) -> str:
    """Format a signed deviation percentage."""
    if value is None:
        return "-"
    return f"{value:+,.0f}%"


def format_date(value: Optional[date]) -> str:
    return value.isoformat() if value is not None else "-"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def format_suggestion(anomaly: Anomaly) -> str:
    """e.g. 'current 8,990.00 -> 899.00 [current_extra_digit]'."""
    if anomaly.suggestion is None:
        return "-"
    s = anomaly.suggestion
    return (
        f"{s.field} {format_reading(anomaly.old_value)} -> "
        f"{format_reading(s.proposed_value)} [{s.method.value}]"
    )


# =============================================================================
# Shared setup
# =============================================================================


def build_thresholds(args) -> Thresholds:
    """Settings in the records file, overridden by --config if given."""
    thresholds = YamlRecordStore(args.records_file).load_thresholds()
    if args.config:
        with open(args.config, "r") as fp:
            data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
        thresholds = thresholds.updated(data.get("settings"))
    return thresholds


def build_session(args, suggest: bool = True) -> CorrectionSession:
    store = YamlRecordStore(args.records_file)
    return CorrectionSession(store.load_records(), build_thresholds(args), suggest=suggest)


def build_applicator(args, delay: float = 0.0) -> CorrectionApplicator:
    stores = [YamlRecordStore(args.records_file)]
    stores += [YamlRecordStore(path) for path in args.mirror or []]
    audit_log = YamlAuditLog(default_audit_path(args.records_file, args.audit_file))
    return CorrectionApplicator(stores, audit_log, delay=delay)


def print_result(result: ApplyResult) -> None:
    column = result.record.column_for(result.field)
    if not result.success:
        print(f"FAILED: row {result.record.row_index} ({result.error})")
        return
    print(
        f"Corrected row {result.record.row_index} ({result.record.vehicle_code}): "
        f"{column} {format_reading(result.old_value)} -> {format_reading(result.new_value)}"
    )
    for name in result.secondary_failures:
        print(f"  Warning: mirror not updated: {name}")
    if not result.audited:
        print("  Warning: audit entry not written")


# =============================================================================
# Baselines command
# =============================================================================


def cmd_baselines(args):
    """Show the expected interval per vehicle."""
    session = build_session(args, suggest=False)

    print(f"Records: {len(session.records)}")
    print(f"Vehicles: {len(session.baselines)}")
    print()

    rows = []
    for code in sorted(session.baselines):
        baseline = session.baselines[code]
        rows.append(
            [
                code,
                baseline.category.value,
                f"{format_reading(baseline.average_interval)} {baseline.category.unit}"
                if baseline.has_baseline
                else "-",
                baseline.record_count,
            ]
        )

    headers = ["Vehicle", "Category", "Avg Interval", "Records"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Anomalies command
# =============================================================================


def make_anomaly_table(anomalies: List[Anomaly]) -> List[List[str]]:
    """Convert anomalies to table rows."""
    rows = []
    for anomaly in anomalies:
        record = anomaly.record
        rows.append(
            [
                record.row_index,
                anomaly.severity.label,
                record.vehicle_code,
                format_date(record.date),
                anomaly.issue_kind.value,
                format_reading(record.meter_previous),
                format_reading(record.meter_current),
                format_reading(anomaly.interval),
                format_percent(anomaly.deviation_percent) if anomaly.average_interval else "-",
                format_suggestion(anomaly),
            ]
        )
    return rows


def cmd_anomalies(args):
    """List inconsistent readings."""
    session = build_session(args, suggest=not args.no_suggest)

    try:
        start, end = date_range(
            args.range, start=parse_date(args.start), end=parse_date(args.end)
        )
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    severity = Severity[args.severity.upper()] if args.severity else None
    anomalies = filter_anomalies(
        session.pending(), severity=severity, vehicle_code=args.vehicle, start=start, end=end
    )

    summary = summarize(session.pending())
    print(f"Records: {len(session.records)}")
    print(
        f"Anomalies: {summary.total} "
        f"(high {summary.high}, medium {summary.medium}, low {summary.low})"
    )
    if not args.no_suggest:
        print(f"With suggested correction: {summary.fixable}")
    if len(anomalies) != summary.total:
        print(f"Showing: {len(anomalies)} (filtered)")
    print()

    if not anomalies:
        print("No anomalies found.")
        return 0

    headers = [
        "Row",
        "Severity",
        "Vehicle",
        "Date",
        "Issue",
        "Previous",
        "Current",
        "Interval",
        "Deviation",
        "Suggestion",
    ]
    print(tabulate(make_anomaly_table(anomalies), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Fix / Edit / Fix-all commands
# =============================================================================


def cmd_fix(args):
    """Apply the suggested correction for one row."""
    session = build_session(args)
    anomaly = session.find(args.row)

    if anomaly is None:
        print(f"Error: Row {args.row} is not flagged as an anomaly")
        return 1
    if anomaly.suggestion is None:
        print(f"Error: No automatic correction for row {args.row}; use 'edit' instead")
        return 1

    print(f"Vehicle: {anomaly.vehicle_code}")
    print(f"Issue:   {anomaly.issue_kind.value} ({anomaly.severity.label})")
    print(f"Fix:     {format_suggestion(anomaly)}")
    print(f"Reason:  {anomaly.suggestion.rationale}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    result = session.apply_suggestion(build_applicator(args), anomaly, args.by)
    print_result(result)
    return 0 if result.success else 1


def cmd_edit(args):
    """Manually correct one reading."""
    session = build_session(args, suggest=False)
    record = session.find_record(args.row)

    if record is None:
        print(f"Error: Unknown row {args.row}")
        return 1

    old_value = record.meter_value(args.field)
    print(f"Vehicle: {record.vehicle_code}")
    print(f"Field:   {record.column_for(args.field)}")
    print(f"Change:  {format_reading(old_value)} -> {format_reading(args.value)}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    result = session.apply_manual(
        build_applicator(args), record, args.field, args.value, args.by, notes=args.notes
    )
    print_result(result)
    return 0 if result.success else 1


def cmd_fix_all(args):
    """Apply every suggested correction."""
    session = build_session(args)
    targets = [a for a in session.pending() if a.suggestion is not None]

    print(f"Anomalies: {len(session.pending())}")
    print(f"With suggested correction: {len(targets)}")
    print()

    if not targets:
        print("Nothing to correct.")
        return 0

    if args.dry_run:
        headers = ["Row", "Vehicle", "Date", "Suggestion"]
        rows = [
            [a.row_index, a.vehicle_code, format_date(a.record.date), format_suggestion(a)]
            for a in targets
        ]
        print(tabulate(rows, headers=headers, tablefmt="simple"))
        print()
        print("(dry run - no changes made)")
        return 0

    batch = session.apply_all(build_applicator(args, delay=args.delay), args.by)
    for result in batch.details:
        print_result(result)
    print()
    print(f"Fixed: {batch.fixed} / {batch.total}")
    if batch.errors:
        print(f"Errors: {batch.errors}")
    return 0 if batch.errors == 0 else 1


# =============================================================================
# Audit command
# =============================================================================


def make_audit_table(entries: List[CorrectionAuditEntry]) -> List[List[str]]:
    """Convert audit entries to table rows."""
    rows = []
    for entry in entries:
        rows.append(
            [
                entry.applied_at,
                entry.vehicle_code,
                entry.record_date or "-",
                entry.field_corrected,
                format_reading(entry.old_value),
                format_reading(entry.new_value),
                entry.correction_method or "-",
                entry.source,
                entry.applied_by,
                truncate(entry.notes),
            ]
        )
    return rows


def cmd_audit(args):
    """View recently applied corrections."""
    audit_path = default_audit_path(args.records_file, args.audit_file)
    history = AuditHistory(YamlAuditLog(audit_path))

    if args.vehicle:
        entries = history.for_vehicle(args.vehicle, limit=args.limit)
    else:
        entries = history.recent(limit=args.limit)

    print(f"Audit log: {audit_path}")
    print(f"Showing: {len(entries)}")
    print()

    if not entries:
        print("No corrections recorded.")
        return 0

    headers = [
        "Applied At",
        "Vehicle",
        "Record Date",
        "Field",
        "Old",
        "New",
        "Method",
        "Source",
        "By",
        "Notes",
    ]
    print(tabulate(make_audit_table(entries), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Odometer / hour-meter anomaly checker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s records/fleet.yaml baselines
  %(prog)s records/fleet.yaml anomalies --severity high
  %(prog)s records/fleet.yaml anomalies --range month --vehicle CM-010
  %(prog)s records/fleet.yaml fix 42 --by maria
  %(prog)s records/fleet.yaml edit 42 previous 12500 --by maria
  %(prog)s records/fleet.yaml --mirror backup.yaml fix-all --by maria
  %(prog)s records/fleet.yaml audit --limit 20
""",
    )
    parser.add_argument(
        "records_file",
        type=Path,
        help="Path to records YAML file",
    )
    parser.add_argument(
        "--audit-file",
        type=Path,
        help="Audit log YAML file (default: <records>.audit.yaml)",
    )
    parser.add_argument(
        "--mirror",
        type=Path,
        action="append",
        help="Additional records file that receives the same corrections (repeatable)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML file with a 'settings' map overriding thresholds",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log applied corrections",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Baselines subcommand
    subparsers.add_parser("baselines", help="Show the expected interval per vehicle")

    # Anomalies subcommand
    anomalies_parser = subparsers.add_parser(
        "anomalies", help="List inconsistent readings"
    )
    anomalies_parser.add_argument(
        "--severity",
        choices=["high", "medium", "low"],
        help="Only show one severity",
    )
    anomalies_parser.add_argument(
        "--vehicle",
        type=str,
        help="Only show one vehicle code",
    )
    anomalies_parser.add_argument(
        "--range",
        choices=DATE_RANGES,
        default="all",
        help="Date range (default: all)",
    )
    anomalies_parser.add_argument(
        "--start",
        type=str,
        help="Start date for --range period (DD/MM/YYYY or YYYY-MM-DD)",
    )
    anomalies_parser.add_argument(
        "--end",
        type=str,
        help="End date for --range period (DD/MM/YYYY or YYYY-MM-DD)",
    )
    anomalies_parser.add_argument(
        "--no-suggest",
        action="store_true",
        help="Skip correction suggestions",
    )

    # Fix subcommand
    fix_parser = subparsers.add_parser(
        "fix", help="Apply the suggested correction for one row"
    )
    fix_parser.add_argument("row", type=int, help="Row index of the flagged record")
    fix_parser.add_argument(
        "--by", type=str, required=True, help="Who is applying the correction"
    )
    fix_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be changed without saving",
    )

    # Edit subcommand
    edit_parser = subparsers.add_parser("edit", help="Manually correct one reading")
    edit_parser.add_argument("row", type=int, help="Row index of the record")
    edit_parser.add_argument(
        "field", choices=["previous", "current"], help="Which reading to correct"
    )
    edit_parser.add_argument("value", type=float, help="New reading")
    edit_parser.add_argument(
        "--by", type=str, required=True, help="Who is applying the correction"
    )
    edit_parser.add_argument("--notes", type=str, help="Notes about the correction")
    edit_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be changed without saving",
    )

    # Fix-all subcommand
    fix_all_parser = subparsers.add_parser(
        "fix-all", help="Apply every suggested correction"
    )
    fix_all_parser.add_argument(
        "--by", type=str, required=True, help="Who is applying the corrections"
    )
    fix_all_parser.add_argument(
        "--delay",
        type=float,
        default=0.2,
        help="Seconds to wait between records (default: 0.2)",
    )
    fix_all_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be changed without saving",
    )

    # Audit subcommand
    audit_parser = subparsers.add_parser("audit", help="View applied corrections")
    audit_parser.add_argument(
        "--limit",
        type=int,
        default=100,
        help="Maximum entries to show (default: 100)",
    )
    audit_parser.add_argument("--vehicle", type=str, help="Only show one vehicle code")

    return parser


COMMANDS = {
    "baselines": cmd_baselines,
    "anomalies": cmd_anomalies,
    "fix": cmd_fix,
    "edit": cmd_edit,
    "fix-all": cmd_fix_all,
    "audit": cmd_audit,
}


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Validate records file exists
    if not args.records_file.exists():
        print(f"Error: File not found: {args.records_file}")
        return 1

    try:
        return COMMANDS[args.command](args)
    except ValueError as e:
        # Bad settings in the records file or --config
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
