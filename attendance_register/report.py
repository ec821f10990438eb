"""Reporting utilities to summarize attendance."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Collection, Dict, Iterable, List, Mapping, Optional, Sequence

from .ordering import RegisterIdentity, sort_identities
from .status import DATE_FORMAT, GENERAL_SUBJECT, StatusCode
from .storage import AttendanceStore

GOOD_THRESHOLD = 75.0
WARNING_THRESHOLD = 50.0


@dataclass(frozen=True)
class HistoryRow:
    day: date
    subject: str
    status: StatusCode


def percentage(observations: Iterable[StatusCode]) -> float:
    """Attendance rate in percent; ``noclass`` entries are not counted.

    With nothing countable the rate is reported as ``0.0``.
    """

    total = 0.0
    counted = 0
    for status in observations:
        weight = StatusCode(status).weight
        if weight is None:
            continue
        total += weight
        counted += 1
    if counted == 0:
        return 0.0
    return 100.0 * total / counted


def _nested_values(history: Mapping[date, Mapping[str, StatusCode]]) -> List[StatusCode]:
    return [status for subjects in history.values() for status in subjects.values()]


def subject_percentage(store: AttendanceStore, person: str, subject: str) -> float:
    return percentage(store.history_for_subject(person, subject).values())


def overall_percentage(store: AttendanceStore, person: str) -> float:
    return percentage(_nested_values(store.overall_history(person)))


def role_filtered_percentage(store: AttendanceStore, person: str, allowed_subjects: Collection[str]) -> float:
    return percentage(_nested_values(store.role_filtered_history(person, allowed_subjects)))


def attendance_band(value: float) -> str:
    if value >= GOOD_THRESHOLD:
        return "good"
    if value >= WARNING_THRESHOLD:
        return "warning"
    return "critical"


def flatten_history(history: Mapping[date, Mapping[str, StatusCode]]) -> List[HistoryRow]:
    """Rows ordered by day, then subject."""

    rows = [
        HistoryRow(day=day, subject=subject, status=status)
        for day, subjects in history.items()
        for subject, status in subjects.items()
    ]
    return sorted(rows, key=lambda row: (row.day, row.subject))


def subject_rows(history: Mapping[date, StatusCode], subject: str) -> List[HistoryRow]:
    return [HistoryRow(day=day, subject=subject, status=history[day]) for day in sorted(history)]


def marked_count(rows: Iterable[HistoryRow]) -> int:
    return sum(1 for row in rows if row.status is not StatusCode.NOCLASS)


def subject_display_name(code: str, subject_names: Optional[Mapping[str, str]] = None) -> str:
    """Human readable name for a subject code."""

    if code == GENERAL_SUBJECT:
        return "General Attendance"
    if not code:
        return "Unnamed Class"
    names = subject_names or {}
    if code in names:
        name = names[code]
        if not name or name.lower() == code.lower():
            return code
        return f"{name} ({code})"
    return f"{code} (Unlisted Class)"


def _format_table(rows: Sequence[Sequence[str]]) -> str:
    widths = [max(len(row[idx]) for row in rows) for idx in range(len(rows[0]))]

    def format_row(row: Sequence[str]) -> str:
        return " | ".join(value.ljust(widths[idx]) for idx, value in enumerate(row))

    divider = "-+-".join("-" * width for width in widths)

    formatted_rows = [format_row(rows[0]), divider]
    formatted_rows.extend(format_row(row) for row in rows[1:])
    return "\n".join(formatted_rows)


def format_history_table(rows: Sequence[HistoryRow], subject_names: Optional[Mapping[str, str]] = None) -> str:
    """Return a human friendly attendance history as a table."""

    if not rows:
        return "No attendance data available."

    table: List[List[str]] = [["Date", "Subject", "Status"]]
    for row in rows:
        table.append([row.day.strftime(DATE_FORMAT), subject_display_name(row.subject, subject_names), row.status.label])
    return _format_table(table)


def format_roster_table(store: AttendanceStore, identities: Iterable[RegisterIdentity]) -> str:
    """Roster in register order with each person's overall attendance."""

    people = sort_identities(identities)
    if not people:
        return "No students recorded yet."

    table: List[List[str]] = [["Register No.", "Name", "Overall"]]
    for identity in people:
        value = overall_percentage(store, identity.register_number) if identity.register_number else 0.0
        table.append([identity.register_number or "-", identity.name or "(Unknown)", f"{value:.1f}%"])
    return _format_table(table)


def percentage_summary(values: Dict[str, float]) -> str:
    lines = []
    for label, value in values.items():
        lines.append(f"{label}: {value:.1f}% ({attendance_band(value)})")
    return "\n".join(lines)
