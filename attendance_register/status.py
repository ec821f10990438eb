"""Attendance status codes and the composite attendance key."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional, Union

GENERAL_SUBJECT = "GENERAL"

DATE_FORMAT = "%Y-%m-%d"

DateLike = Union[date, datetime, str]


class StatusCode(str, Enum):
    """Outcome recorded for one person, subject and day."""

    PRESENT = "present"
    ABSENT = "absent"
    HALFDAY = "halfday"
    NOCLASS = "noclass"

    @property
    def weight(self) -> Optional[float]:
        """Contribution to an attendance rate; ``None`` when not counted."""

        return _WEIGHTS[self]

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, value: str) -> "StatusCode":
        """Look up a status by its canonical name."""

        name = str(value).strip().lower()
        for status in cls:
            if status.value == name:
                return status
        choices = ", ".join(status.value for status in cls)
        raise ValueError(f"Unknown attendance status '{value}' (expected one of: {choices})")


_WEIGHTS: Dict[StatusCode, Optional[float]] = {
    StatusCode.PRESENT: 1.0,
    StatusCode.HALFDAY: 0.5,
    StatusCode.ABSENT: 0.0,
    StatusCode.NOCLASS: None,
}

_LABELS: Dict[StatusCode, str] = {
    StatusCode.PRESENT: "Present",
    StatusCode.ABSENT: "Absent",
    StatusCode.HALFDAY: "Half Day",
    StatusCode.NOCLASS: "No Class",
}


@dataclass(frozen=True)
class AttendanceKey:
    """Identifies a single attendance fact."""

    subject: str
    day: date
    person: str


def parse_date(value: str) -> date:
    """Parse ``YYYY-MM-DD`` or a full ISO timestamp into a calendar date."""

    text = value.strip()
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValueError(f"Unable to parse date '{value}'") from None


def normalize_date(value: DateLike) -> date:
    """Strip the time of day from ``value``."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_date(value)
    raise TypeError(f"Expected a date, got {type(value).__name__}")
