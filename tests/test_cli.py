from __future__ import annotations

import json

import pytest

from attendance_register import cli
from attendance_register.config import Settings
from attendance_register.storage import ATTENDANCE_KEY


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "prefs.json"


def run(store_path, *args):
    return cli.main(["--store", str(store_path), *args])


def test_mark_and_status(store_path):
    output = run(store_path, "mark", "101", "present", "--subject", "MATH", "--date", "2024-03-04")

    assert output == "Marked 101 as Present for MATH (Unlisted Class) on 2024-03-04"
    assert run(store_path, "status", "101", "--subject", "MATH", "--date", "2024-03-04").endswith(": Present")
    assert run(store_path, "status", "101", "--date", "2024-03-04").endswith("(General Attendance): No Class")

    data = json.loads(store_path.read_text(encoding="utf-8"))
    assert json.loads(data[ATTENDANCE_KEY]) == {"MATH": {"2024-03-04": {"101": "present"}}}


def test_history_and_percentage(store_path):
    run(store_path, "mark", "101", "present", "--subject", "MATH", "--date", "2024-03-04")
    run(store_path, "mark", "101", "absent", "--subject", "PHYS", "--date", "2024-03-04")
    run(store_path, "mark", "101", "halfday", "--date", "2024-03-05")

    history = run(store_path, "history", "101")
    assert history.splitlines()[0] == "Attendance history for 101 (3 marked):"
    assert "Half Day" in history

    assert run(store_path, "percentage", "101") == "Overall: 50.0% (warning)"
    assert run(store_path, "percentage", "101", "--subject", "MATH") == "MATH (Unlisted Class): 100.0% (good)"
    assert run(store_path, "percentage", "101", "--allowed", "MATH") == "Overall (GENERAL, MATH): 75.0% (good)"

    filtered = run(store_path, "history", "101", "--allowed", "MATH")
    assert "PHYS" not in filtered


def test_clear(store_path):
    run(store_path, "mark", "101", "present", "--date", "2024-03-04")

    assert run(store_path, "clear", "101") == "Cleared attendance for 101"
    assert run(store_path, "clear", "101") == "No attendance data found for 101"
    assert run(store_path, "export") == "{}"


def test_export_to_file(store_path, tmp_path):
    run(store_path, "mark", "101", "absent", "--date", "2024-03-04")
    output_path = tmp_path / "export.json"

    assert run(store_path, "export", "--output", str(output_path)) == f"Exported data to {output_path}"
    assert json.loads(output_path.read_text(encoding="utf-8")) == {"GENERAL": {"2024-03-04": {"101": "absent"}}}


def test_csv_import_round_trip(store_path, tmp_path):
    roster = tmp_path / "roster.json"
    roster.write_text(json.dumps([{"name": "Ann", "registerNumber": "101"}]), encoding="utf-8")
    run(store_path, "mark", "101", "present", "--date", "2024-03-04")
    run(store_path, "mark", "101", "absent", "--subject", "MATH", "--date", "2024-03-04")

    csv_path = tmp_path / "general.csv"
    run(store_path, "csv", "general", "--roster", str(roster), "--output", str(csv_path))
    assert '"Ann"' in csv_path.read_text(encoding="utf-8")

    other_store = tmp_path / "other.json"
    assert run(other_store, "import", str(csv_path)) == f"Imported 1 rows from {csv_path}"
    assert json.loads(run(other_store, "export")) == {"GENERAL": {"2024-03-04": {"101": "present"}}}

    subjects = run(store_path, "csv", "subjects")
    assert subjects.splitlines()[1] == '"2024-03-04","101","Unknown Student","MATH","MATH (Unlisted Class)","absent"'


def test_roster(store_path, tmp_path):
    roster = tmp_path / "roster.json"
    roster.write_text(
        json.dumps([{"name": "Bo", "registerNumber": "B1"}, {"name": "Al", "registerNumber": "2"}]),
        encoding="utf-8",
    )
    run(store_path, "mark", "2", "halfday", "--date", "2024-03-04")

    lines = run(store_path, "roster", str(roster)).splitlines()

    assert lines[2].startswith("2 ")
    assert "50.0%" in lines[2]
    assert lines[3].startswith("B1")


def test_run_reports_errors(store_path, tmp_path, capsys):
    bad_csv = tmp_path / "bad.csv"
    bad_csv.write_text("Name,Email\nAnn,ann@example.com\n", encoding="utf-8")

    assert cli.run(["--store", str(store_path), "import", str(bad_csv)]) == 1
    assert capsys.readouterr().err.startswith("Error: Could not detect required columns")


def test_invalid_status_is_rejected(store_path):
    with pytest.raises(SystemExit):
        run(store_path, "mark", "101", "late")


def test_settings_from_env():
    settings = Settings.from_env(
        {
            "ATTENDANCE_REGISTER_STORE": "/tmp/x.json",
            "ATTENDANCE_REGISTER_LOG_LEVEL": "debug",
            "ATTENDANCE_REGISTER_PORT": "8080",
        }
    )

    assert str(settings.store_path) == "/tmp/x.json"
    assert settings.log_level == "DEBUG"
    assert settings.port == 8080
    assert settings.host == "127.0.0.1"
    assert Settings.from_env({}).log_level == "WARNING"
