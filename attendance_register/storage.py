"""Utilities for loading and saving attendance data."""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import AbstractSet, Callable, Collection, Dict, Iterator, List, Optional, Protocol, Tuple

from .codec import AttendanceIndex, DecodeOutcome, DecodeResult, decode_index, dumps_index, encode_index
from .status import GENERAL_SUBJECT, AttendanceKey, DateLike, StatusCode, normalize_date

log = logging.getLogger(__name__)

DEFAULT_STORAGE_FILE = Path("attendance_prefs.json")
ATTENDANCE_KEY = "attendanceRecordsV4"

Listener = Callable[["AttendanceStore"], None]


class PersistenceError(RuntimeError):
    """Raised when attendance data could not be read or written."""


class MalformedPreferenceError(ValueError):
    """Raised when a stored preference is present but is not a string."""


class Preferences(Protocol):
    def get_string(self, key: str) -> Optional[str]:
        ...

    def set_string(self, key: str, value: str) -> None:
        ...


class PreferencesFile:
    """String key/value settings persisted as a JSON object on disk."""

    def __init__(self, path: Path = DEFAULT_STORAGE_FILE) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            log.warning("Preferences file %s is not valid JSON (%s); treating it as empty", self.path, exc)
            return {}
        except OSError as exc:
            raise PersistenceError(f"Unable to read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            log.warning("Preferences file %s does not hold a JSON object; treating it as empty", self.path)
            return {}
        return data

    def get_string(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        if value is None or isinstance(value, str):
            return value
        raise MalformedPreferenceError(f"Preference '{key}' holds {type(value).__name__}, expected a string")

    def set_string(self, key: str, value: str) -> None:
        try:
            data = self._read()
            data[key] = value
            text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            tmp_path.write_text(text, encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as exc:
            raise PersistenceError(f"Unable to write {self.path}: {exc}") from exc


class AttendanceStore:
    """Persisted attendance facts keyed by subject, day and person.

    Every mutation rewrites the full index under a single preferences key and
    then notifies subscribers. If the write fails the in-memory change is kept
    and :class:`PersistenceError` propagates to the caller.
    """

    def __init__(self, preferences: Preferences, *, autoload: bool = True) -> None:
        self.preferences = preferences
        self._index: AttendanceIndex = {}
        self._listeners: List[Listener] = []
        self.loaded = False
        self.last_load: Optional[DecodeResult] = None
        if autoload:
            self.load()

    def load(self) -> DecodeResult:
        try:
            result = decode_index(self.preferences.get_string(ATTENDANCE_KEY))
        except MalformedPreferenceError as exc:
            result = DecodeResult(index={}, outcome=DecodeOutcome.RESET, warnings=[str(exc)])
        except PersistenceError as exc:
            result = DecodeResult(index={}, outcome=DecodeOutcome.RECOVERED, warnings=[str(exc)])
        self._index = result.index
        self.last_load = result

        if result.outcome is DecodeOutcome.RECOVERED:
            for warning in result.warnings:
                log.warning("Attendance data: %s", warning)
        elif result.outcome is DecodeOutcome.RESET:
            log.error("Attendance data is corrupted (%s); starting from an empty index", "; ".join(result.warnings))
            try:
                self.save()
            except PersistenceError as exc:
                log.error("Could not overwrite corrupted attendance data: %s", exc)

        self.loaded = True
        self._notify()
        return result

    def save(self) -> None:
        self.preferences.set_string(ATTENDANCE_KEY, dumps_index(self._index))
        log.debug("Saved attendance index (%d subject(s))", len(self._index))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every change; returns an unsubscribe function."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _commit(self) -> None:
        try:
            self.save()
        finally:
            self._notify()

    def get_status(self, day: DateLike, person: str, subject: str) -> StatusCode:
        people = self._index.get(subject, {}).get(normalize_date(day), {})
        return people.get(person, StatusCode.NOCLASS)

    def set_status(self, day: DateLike, person: str, subject: str, status: StatusCode) -> None:
        status = StatusCode(status)
        self._index.setdefault(subject, {}).setdefault(normalize_date(day), {})[person] = status
        self._commit()

    def history_for_subject(self, person: str, subject: str) -> Dict[date, StatusCode]:
        history: Dict[date, StatusCode] = {}
        for day, people in self._index.get(subject, {}).items():
            if person in people:
                history[day] = people[person]
        return history

    def _collect(self, person: str, subjects: Optional[AbstractSet[str]]) -> Dict[date, Dict[str, StatusCode]]:
        history: Dict[date, Dict[str, StatusCode]] = {}
        for subject, days in self._index.items():
            if subjects is not None and subject not in subjects:
                continue
            for day, people in days.items():
                if person in people:
                    history.setdefault(day, {})[subject] = people[person]
        return history

    def overall_history(self, person: str) -> Dict[date, Dict[str, StatusCode]]:
        return self._collect(person, None)

    def role_filtered_history(
        self, person: str, allowed_subjects: Collection[str]
    ) -> Dict[date, Dict[str, StatusCode]]:
        """Overall history restricted to ``allowed_subjects``; general attendance is always included."""

        if isinstance(allowed_subjects, str):
            raise TypeError("allowed_subjects must be a collection of subject codes, not a string")
        return self._collect(person, frozenset(allowed_subjects) | {GENERAL_SUBJECT})

    def clear_person(self, person: str) -> bool:
        changed = False
        for subject in list(self._index):
            days = self._index[subject]
            for day in list(days):
                people = days[day]
                if people.pop(person, None) is not None:
                    changed = True
                if not people:
                    del days[day]
            if not days:
                del self._index[subject]

        if changed:
            log.info("Cleared attendance for '%s'", person)
            self._commit()
        return changed

    def export_snapshot(self) -> Dict[str, Dict[str, Dict[str, str]]]:
        return encode_index(self._index)

    def subjects(self) -> List[str]:
        return sorted(self._index)

    def entries(self, subject: Optional[str] = None) -> Iterator[Tuple[AttendanceKey, StatusCode]]:
        if subject is None:
            selected = list(self._index.items())
        else:
            selected = [(subject, self._index.get(subject, {}))]
        for subject_id, days in selected:
            for day, people in days.items():
                for person, status in people.items():
                    yield AttendanceKey(subject=subject_id, day=day, person=person), status


def ensure_store(path: Optional[str]) -> AttendanceStore:
    if path:
        return AttendanceStore(PreferencesFile(Path(path)))
    return AttendanceStore(PreferencesFile())
