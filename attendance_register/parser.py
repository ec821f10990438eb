"""Parsing utilities for attendance CSV exports and roster files."""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from datetime import date
from io import StringIO
from pathlib import Path
from typing import Iterable, List, Optional

from .ordering import RegisterIdentity
from .status import GENERAL_SUBJECT, StatusCode, parse_date

KNOWN_DATE_FIELDS = {
    "date",
    "day",
}

KNOWN_PERSON_FIELDS = {
    "register number",
    "register no",
    "register no.",
    "reg no",
    "roll number",
}

KNOWN_SUBJECT_FIELDS = {
    "subject code",
    "subject",
}

KNOWN_STATUS_FIELDS = {
    "attendance status",
    "status",
}


@dataclass
class ParsedMark:
    """Represents a normalized row of attendance data."""

    day: date
    person: str
    subject: str
    status: StatusCode


class ParseError(RuntimeError):
    """Raised when the file cannot be parsed."""


def sniff_delimiter(sample: str) -> str:
    """Guess the delimiter used in the imported table."""

    sniffer = csv.Sniffer()
    try:
        dialect = sniffer.sniff(sample, delimiters=",\t;")
        return dialect.delimiter
    except csv.Error:
        return ","


def _detect_column(headers: List[str], known_names: Iterable[str]) -> Optional[int]:
    lower_headers = [header.strip().lower() for header in headers]
    known = [name.lower() for name in known_names]
    for idx, header in enumerate(lower_headers):
        if header in known:
            return idx
    return None


def parse_marks_from_text(text: str) -> List[ParsedMark]:
    """Parse attendance rows from a text payload."""

    sample = text[:1024]
    delimiter = sniff_delimiter(sample) if sample else ","

    reader = csv.reader(StringIO(text), delimiter=delimiter)
    try:
        headers = next(reader)
    except StopIteration as exc:
        raise ParseError("The provided file is empty") from exc

    date_idx = _detect_column(headers, KNOWN_DATE_FIELDS)
    person_idx = _detect_column(headers, KNOWN_PERSON_FIELDS)
    subject_idx = _detect_column(headers, KNOWN_SUBJECT_FIELDS)
    status_idx = _detect_column(headers, KNOWN_STATUS_FIELDS)

    if date_idx is None or person_idx is None or status_idx is None:
        raise ParseError(
            "Could not detect required columns. Ensure the file contains date, register number, and status headers."
        )

    marks: List[ParsedMark] = []
    for line_no, row in enumerate(reader, start=2):
        if not any(cell.strip() for cell in row):
            continue
        try:
            day = parse_date(row[date_idx])
            status = StatusCode.parse(row[status_idx])
            person = row[person_idx].strip()
            subject = row[subject_idx].strip() if subject_idx is not None else GENERAL_SUBJECT
        except IndexError:
            raise ParseError(f"Line {line_no}: missing columns") from None
        except ValueError as exc:
            raise ParseError(f"Line {line_no}: {exc}") from exc
        if not person:
            continue
        marks.append(ParsedMark(day=day, person=person, subject=subject or GENERAL_SUBJECT, status=status))

    return marks


def read_marks(path: Path) -> List[ParsedMark]:
    """Read attendance rows from a CSV/TSV file."""

    text = path.read_text(encoding="utf-8-sig")
    return parse_marks_from_text(text)


def read_roster(path: Path) -> List[RegisterIdentity]:
    """Read a JSON list of ``{"name", "registerNumber"}`` objects."""

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ParseError(f"Roster file contains invalid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise ParseError("Roster file must contain a list of students")
    try:
        return [RegisterIdentity.from_dict(item) for item in data]
    except (KeyError, TypeError, AttributeError) as exc:
        raise ParseError(f"Malformed roster entry: {exc}") from exc
