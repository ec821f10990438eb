"""Web application exposing the attendance store as a JSON API."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from flask import Flask, Response, jsonify, request

from . import export, report
from .config import Settings
from .status import DATE_FORMAT, GENERAL_SUBJECT, StatusCode, normalize_date
from .storage import AttendanceStore, PersistenceError, PreferencesFile

log = logging.getLogger(__name__)


def _history_payload(rows: List[report.HistoryRow]) -> List[Dict[str, str]]:
    return [
        {
            "date": row.day.strftime(DATE_FORMAT),
            "subject": row.subject,
            "subject_name": report.subject_display_name(row.subject),
            "status": row.status.value,
            "label": row.status.label,
        }
        for row in rows
    ]


def _allowed_subjects() -> Optional[List[str]]:
    values = request.args.getlist("allowed")
    if not values:
        return None
    subjects: List[str] = []
    for value in values:
        subjects.extend(item.strip() for item in value.split(",") if item.strip())
    return subjects


def _error(message: str, status: int) -> Tuple[Response, int]:
    return jsonify({"error": message}), status


def create_app(store_path: Optional[Path] = None, store: Optional[AttendanceStore] = None) -> Flask:
    """Create and configure the Flask application."""

    app = Flask(__name__)

    if store is None:
        path = Path(store_path).expanduser() if store_path else Settings.from_env().store_path
        store = AttendanceStore(PreferencesFile(path.resolve()))
    app.config["ATTENDANCE_STORE"] = store

    @app.errorhandler(PersistenceError)
    def persistence_failed(exc: PersistenceError):
        log.error("Attendance change was not saved: %s", exc)
        return _error(f"Change applied but not saved: {exc}", 503)

    @app.route("/", methods=["GET"])
    def index():
        return jsonify(
            {
                "loaded": store.loaded,
                "subjects": store.subjects(),
                "statuses": [status.value for status in StatusCode],
            }
        )

    @app.route("/api/status", methods=["GET"])
    def get_status():
        person = (request.args.get("person") or "").strip()
        if not person:
            return _error("Provide a person.", 400)
        subject = request.args.get("subject") or GENERAL_SUBJECT
        try:
            day = normalize_date(request.args.get("date") or date.today())
        except ValueError as exc:
            return _error(str(exc), 400)
        status = store.get_status(day, person, subject)
        return jsonify(
            {
                "person": person,
                "subject": subject,
                "date": day.strftime(DATE_FORMAT),
                "status": status.value,
                "label": status.label,
            }
        )

    @app.route("/api/status", methods=["POST"])
    def set_status():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return _error("Expected a JSON object.", 400)
        person = str(payload.get("person") or "").strip()
        if not person:
            return _error("Provide a person.", 400)
        subject = str(payload.get("subject") or GENERAL_SUBJECT)
        try:
            day = normalize_date(payload.get("date") or date.today())
            status = StatusCode.parse(payload.get("status") or "")
        except (TypeError, ValueError) as exc:
            return _error(str(exc), 400)

        store.set_status(day, person, subject, status)
        return jsonify(
            {"person": person, "subject": subject, "date": day.strftime(DATE_FORMAT), "status": status.value}
        )

    @app.route("/api/history/<person>", methods=["GET"])
    def history(person: str):
        subject = request.args.get("subject")
        allowed = _allowed_subjects()
        if subject:
            rows = report.subject_rows(store.history_for_subject(person, subject), subject)
        elif allowed is not None:
            rows = report.flatten_history(store.role_filtered_history(person, allowed))
        else:
            rows = report.flatten_history(store.overall_history(person))
        return jsonify({"person": person, "marked": report.marked_count(rows), "records": _history_payload(rows)})

    @app.route("/api/percentage/<person>", methods=["GET"])
    def percentage(person: str):
        subject = request.args.get("subject")
        allowed = _allowed_subjects()
        if subject:
            value = report.subject_percentage(store, person, subject)
        elif allowed is not None:
            value = report.role_filtered_percentage(store, person, allowed)
        else:
            value = report.overall_percentage(store, person)
        return jsonify({"person": person, "percentage": value, "band": report.attendance_band(value)})

    @app.route("/api/people/<person>", methods=["DELETE"])
    def clear_person(person: str):
        changed = store.clear_person(person)
        return jsonify({"person": person, "cleared": changed})

    @app.route("/api/export", methods=["GET"])
    def export_snapshot():
        return jsonify(store.export_snapshot())

    @app.route("/api/export/<kind>.csv", methods=["GET"])
    def export_csv(kind: str):
        person = request.args.get("person") or None
        if kind == "general":
            text = export.general_attendance_csv(store, person=person)
        elif kind == "subjects":
            text = export.subject_attendance_csv(store, person=person)
        else:
            return _error(f"Unknown export '{kind}'.", 404)
        return Response(
            text,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={kind}_attendance.csv"},
        )

    return app


def main() -> None:
    import argparse

    settings = Settings.from_env()
    parser = argparse.ArgumentParser(description="Run the attendance web API")
    parser.add_argument("--store", type=Path, default=None, help="Path to the attendance data store")
    parser.add_argument("--host", default=settings.host, help="Host interface to bind")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to serve on")
    parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")

    args = parser.parse_args()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    app = create_app(args.store)
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":  # pragma: no cover
    main()
