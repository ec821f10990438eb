"""JSON encoding of the attendance index and recovery from damaged data."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from .status import DATE_FORMAT, StatusCode, parse_date

# subject -> day -> person -> status
AttendanceIndex = Dict[str, Dict[date, Dict[str, StatusCode]]]


class DecodeOutcome(str, Enum):
    """Which recovery path a decode took."""

    LOADED = "loaded"
    RECOVERED = "recovered"
    RESET = "reset"


@dataclass
class DecodeResult:
    index: AttendanceIndex
    outcome: DecodeOutcome = DecodeOutcome.LOADED
    warnings: List[str] = field(default_factory=list)

    @property
    def is_reset(self) -> bool:
        return self.outcome is DecodeOutcome.RESET


def encode_index(index: AttendanceIndex) -> Dict[str, Dict[str, Dict[str, str]]]:
    """Return the JSON-compatible tree for ``index``."""

    tree: Dict[str, Dict[str, Dict[str, str]]] = {}
    for subject, days in index.items():
        tree[subject] = {
            day.strftime(DATE_FORMAT): {person: status.value for person, status in people.items()}
            for day, people in days.items()
        }
    return tree


def dumps_index(index: AttendanceIndex) -> str:
    return json.dumps(encode_index(index), sort_keys=True, ensure_ascii=False)


def _decode_status(value: object, person: str, day_key: str, warnings: List[str]) -> StatusCode:
    if isinstance(value, str):
        for status in StatusCode:
            if status.value == value:
                return status
    warnings.append(f"Unrecognised status {value!r} for '{person}' on {day_key}; using noclass")
    return StatusCode.NOCLASS


def decode_tree(tree: object) -> DecodeResult:
    """Rebuild an index from a parsed JSON tree.

    Damage is contained to the smallest enclosing unit: a subject that is not
    an object is dropped, a day whose key is not a date (or whose value is not
    an object) is dropped, and an unknown status becomes ``noclass`` without
    touching its neighbours. A top level that is not an object resets the
    whole index.
    """

    if not isinstance(tree, dict):
        return DecodeResult(
            index={},
            outcome=DecodeOutcome.RESET,
            warnings=[f"Expected a JSON object at the top level, got {type(tree).__name__}"],
        )

    warnings: List[str] = []
    index: AttendanceIndex = {}
    for subject, days in tree.items():
        if not isinstance(days, dict):
            warnings.append(f"Skipping subject '{subject}': expected an object, got {type(days).__name__}")
            continue

        decoded_days: Dict[date, Dict[str, StatusCode]] = {}
        for day_key, people in days.items():
            try:
                day = parse_date(day_key)
            except ValueError:
                warnings.append(f"Skipping '{subject}' entry with invalid date '{day_key}'")
                continue
            if not isinstance(people, dict):
                warnings.append(
                    f"Skipping '{subject}' entry for {day_key}: expected an object, got {type(people).__name__}"
                )
                continue

            statuses = decoded_days.setdefault(day, {})
            for person, value in people.items():
                statuses[person] = _decode_status(value, person, day_key, warnings)
        index[subject] = decoded_days

    outcome = DecodeOutcome.RECOVERED if warnings else DecodeOutcome.LOADED
    return DecodeResult(index=index, outcome=outcome, warnings=warnings)


def decode_index(raw: Optional[str]) -> DecodeResult:
    """Decode persisted JSON text; never raises."""

    if raw is None or not raw.strip():
        return DecodeResult(index={})
    try:
        tree = json.loads(raw)
    except json.JSONDecodeError as exc:
        return DecodeResult(index={}, outcome=DecodeOutcome.RESET, warnings=[f"Invalid JSON: {exc}"])
    return decode_tree(tree)
