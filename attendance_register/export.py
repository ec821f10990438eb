"""CSV exports of recorded attendance."""

from __future__ import annotations

import csv
from io import StringIO
from typing import Iterable, List, Mapping, Optional, Sequence

from .ordering import RegisterIdentity, roster_names
from .report import subject_display_name
from .status import DATE_FORMAT, GENERAL_SUBJECT
from .storage import AttendanceStore

GENERAL_HEADER = ["Date", "Register Number", "Student Name", "Attendance Status"]
SUBJECT_HEADER = [
    "Date",
    "Register Number",
    "Student Name",
    "Subject Code",
    "Subject Name",
    "Attendance Status",
]
UNKNOWN_STUDENT = "Unknown Student"


def _write_csv(header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def general_attendance_csv(
    store: AttendanceStore,
    roster: Iterable[RegisterIdentity] = (),
    person: Optional[str] = None,
) -> str:
    """General (non-subject) attendance, one row per person and day."""

    names = roster_names(roster)
    records = [
        (key.day, key.person, status)
        for key, status in store.entries(GENERAL_SUBJECT)
        if person is None or key.person == person
    ]
    records.sort(key=lambda record: (record[0], record[1]))

    rows: List[List[str]] = []
    for day, register_number, status in records:
        rows.append(
            [
                day.strftime(DATE_FORMAT),
                register_number,
                names.get(register_number, UNKNOWN_STUDENT),
                status.value,
            ]
        )
    return _write_csv(GENERAL_HEADER, rows)


def subject_attendance_csv(
    store: AttendanceStore,
    roster: Iterable[RegisterIdentity] = (),
    subject_names: Optional[Mapping[str, str]] = None,
    person: Optional[str] = None,
) -> str:
    """Subject attendance for every subject except general attendance."""

    names = roster_names(roster)
    records = [
        (key.day, key.person, key.subject, status)
        for key, status in store.entries()
        if key.subject != GENERAL_SUBJECT and (person is None or key.person == person)
    ]
    records.sort(key=lambda record: (record[0], record[1], record[2]))

    rows: List[List[str]] = []
    for day, register_number, subject, status in records:
        rows.append(
            [
                day.strftime(DATE_FORMAT),
                register_number,
                names.get(register_number, UNKNOWN_STUDENT),
                subject,
                subject_display_name(subject, subject_names),
                status.value,
            ]
        )
    return _write_csv(SUBJECT_HEADER, rows)
