"""Command line interface for managing attendance data."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from . import export, parser, report
from .config import Settings
from .status import GENERAL_SUBJECT, StatusCode, parse_date
from .storage import AttendanceStore, PersistenceError, ensure_store

STATUS_CHOICES = [status.value for status in StatusCode]


def build_parser(settings: Optional[Settings] = None) -> argparse.ArgumentParser:
    settings = settings or Settings.from_env()
    parser_obj = argparse.ArgumentParser(description="Record and review attendance per subject and day")
    parser_obj.add_argument(
        "--store",
        type=Path,
        default=settings.store_path,
        help=f"Path to the attendance data store (defaults to {settings.store_path})",
    )
    parser_obj.add_argument("--log-level", default=settings.log_level, help="Logging level (e.g. INFO, DEBUG)")

    subparsers = parser_obj.add_subparsers(dest="command", required=True)

    mark_parser = subparsers.add_parser("mark", help="Record a status for a person")
    mark_parser.add_argument("person", type=str, help="Register number of the person")
    mark_parser.add_argument("status", choices=STATUS_CHOICES, help="Attendance status")
    mark_parser.add_argument("--subject", default=GENERAL_SUBJECT, help="Subject code (defaults to GENERAL)")
    mark_parser.add_argument("--date", type=parse_date, default=None, help="Day as YYYY-MM-DD (defaults to today)")

    status_parser = subparsers.add_parser("status", help="Show the recorded status for a person")
    status_parser.add_argument("person", type=str, help="Register number of the person")
    status_parser.add_argument("--subject", default=GENERAL_SUBJECT, help="Subject code (defaults to GENERAL)")
    status_parser.add_argument("--date", type=parse_date, default=None, help="Day as YYYY-MM-DD (defaults to today)")

    for name, help_text in (
        ("history", "Show attendance history for a single person"),
        ("percentage", "Show the attendance percentage for a single person"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("person", type=str, help="Register number of the person")
        scope = sub.add_mutually_exclusive_group()
        scope.add_argument("--subject", default=None, help="Restrict to a single subject")
        scope.add_argument(
            "--allowed",
            nargs="+",
            default=None,
            metavar="SUBJECT",
            help="Restrict to these subjects (general attendance is always included)",
        )

    clear_parser = subparsers.add_parser("clear", help="Remove every record for a person")
    clear_parser.add_argument("person", type=str, help="Register number of the person")

    export_parser = subparsers.add_parser("export", help="Export the current data as JSON")
    export_parser.add_argument("--output", type=Path, default=None, help="Output file path")

    csv_parser = subparsers.add_parser("csv", help="Export attendance as CSV")
    csv_parser.add_argument("kind", choices=["general", "subjects"], help="General or subject attendance")
    csv_parser.add_argument("--person", default=None, help="Only export this register number")
    csv_parser.add_argument("--roster", type=Path, default=None, help="JSON roster used to resolve names")
    csv_parser.add_argument("--output", type=Path, default=None, help="Output file path")

    import_parser = subparsers.add_parser("import", help="Import attendance from an exported CSV file")
    import_parser.add_argument("file", type=Path, help="Path to the CSV file")

    roster_parser = subparsers.add_parser("roster", help="List a roster in register order with percentages")
    roster_parser.add_argument("file", type=Path, help="JSON roster file")

    return parser_obj


def cmd_mark(store: AttendanceStore, args: argparse.Namespace) -> str:
    day = args.date or date.today()
    status = StatusCode(args.status)
    store.set_status(day, args.person, args.subject, status)
    return f"Marked {args.person} as {status.label} for {report.subject_display_name(args.subject)} on {day:%Y-%m-%d}"


def cmd_status(store: AttendanceStore, args: argparse.Namespace) -> str:
    day = args.date or date.today()
    status = store.get_status(day, args.person, args.subject)
    return f"{args.person} on {day:%Y-%m-%d} ({report.subject_display_name(args.subject)}): {status.label}"


def cmd_history(store: AttendanceStore, args: argparse.Namespace) -> str:
    if args.subject is not None:
        rows = report.subject_rows(store.history_for_subject(args.person, args.subject), args.subject)
    elif args.allowed is not None:
        rows = report.flatten_history(store.role_filtered_history(args.person, args.allowed))
    else:
        rows = report.flatten_history(store.overall_history(args.person))
    lines = [
        f"Attendance history for {args.person} ({report.marked_count(rows)} marked):",
        report.format_history_table(rows),
    ]
    return "\n".join(lines)


def cmd_percentage(store: AttendanceStore, args: argparse.Namespace) -> str:
    if args.subject is not None:
        label = report.subject_display_name(args.subject)
        value = report.subject_percentage(store, args.person, args.subject)
    elif args.allowed is not None:
        label = "Overall (" + ", ".join(sorted(set(args.allowed) | {GENERAL_SUBJECT})) + ")"
        value = report.role_filtered_percentage(store, args.person, args.allowed)
    else:
        label = "Overall"
        value = report.overall_percentage(store, args.person)
    return report.percentage_summary({label: value})


def cmd_clear(store: AttendanceStore, person: str) -> str:
    if store.clear_person(person):
        return f"Cleared attendance for {person}"
    return f"No attendance data found for {person}"


def cmd_export(store: AttendanceStore, output: Optional[Path]) -> str:
    data = store.export_snapshot()
    json_text = json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True)
    if output is None:
        return json_text
    output.write_text(json_text, encoding="utf-8")
    return f"Exported data to {output}"


def cmd_csv(store: AttendanceStore, args: argparse.Namespace) -> str:
    roster = parser.read_roster(args.roster) if args.roster else []
    if args.kind == "general":
        text = export.general_attendance_csv(store, roster, person=args.person)
    else:
        text = export.subject_attendance_csv(store, roster, person=args.person)
    if args.output is None:
        return text.rstrip("\n")
    args.output.write_text(text, encoding="utf-8")
    return f"Exported {args.kind} attendance to {args.output}"


def cmd_import(store: AttendanceStore, args: argparse.Namespace) -> str:
    marks = parser.read_marks(args.file)
    for mark in marks:
        store.set_status(mark.day, mark.person, mark.subject, mark.status)
    return f"Imported {len(marks)} rows from {args.file}"


def cmd_roster(store: AttendanceStore, path: Path) -> str:
    return report.format_roster_table(store, parser.read_roster(path))


def main(argv: Optional[List[str]] = None) -> str:
    parser_obj = build_parser()
    args = parser_obj.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    store = ensure_store(str(args.store))

    if args.command == "mark":
        return cmd_mark(store, args)
    if args.command == "status":
        return cmd_status(store, args)
    if args.command == "history":
        return cmd_history(store, args)
    if args.command == "percentage":
        return cmd_percentage(store, args)
    if args.command == "clear":
        return cmd_clear(store, args.person)
    if args.command == "export":
        return cmd_export(store, args.output)
    if args.command == "csv":
        return cmd_csv(store, args)
    if args.command == "import":
        return cmd_import(store, args)
    if args.command == "roster":
        return cmd_roster(store, args.file)

    raise SystemExit(1)


def run(argv: Optional[List[str]] = None) -> int:
    try:
        output = main(argv)
    except (PersistenceError, parser.ParseError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(output)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(run())
