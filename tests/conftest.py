from __future__ import annotations

from typing import Dict, Optional

import pytest

from attendance_register.storage import AttendanceStore, PersistenceError


class InMemoryPreferences:
    def __init__(self, values: Optional[Dict[str, str]] = None):
        self.values: Dict[str, str] = dict(values or {})
        self.writes = 0

    def get_string(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set_string(self, key: str, value: str) -> None:
        self.writes += 1
        self.values[key] = value


class FailingPreferences(InMemoryPreferences):
    def set_string(self, key: str, value: str) -> None:
        self.writes += 1
        raise PersistenceError("disk full")


@pytest.fixture
def prefs() -> InMemoryPreferences:
    return InMemoryPreferences()


@pytest.fixture
def store(prefs: InMemoryPreferences) -> AttendanceStore:
    return AttendanceStore(prefs)
