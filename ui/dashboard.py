"""Clinic dashboard web application.

This module exposes a small Flask application over the clinic store: JSON
endpoints for the patient table, the appointment calendar, per-day agendas
and patient timelines, plus one HTML landing page. The app owns no state of
its own; every response is computed from the store's current snapshot.
"""
from __future__ import annotations

from datetime import date, datetime
import os
from typing import Any, Dict, Optional

from flask import Flask, Response, abort, jsonify, render_template_string, request

from integrations import ChangeFeed
from records import ResourceStore
from records.seed import build_seed_store
from views import (
    SortState,
    appointments_for_patient,
    dashboard_stats,
    imaging_for_patient,
    patient_table,
    patient_timeline,
    procedures_for_patient,
)
from views.export import agenda_rows, calendar_payload, to_primitive

DATE_FORMAT = "%Y-%m-%d"


def parse_iso_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        return None


dashboard_template = """
<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\">
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">
    <title>Clinic Dashboard</title>
    <link
      href=\"https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/css/bootstrap.min.css\"
      rel=\"stylesheet\"
      integrity=\"sha384-QWTKZyjpPEjISv5WaRU9OFeRpok6YctnYmDr5pNlyT2bRjXh0JMhjY6hW+ALEwIH\"
      crossorigin=\"anonymous\"
    >
  </head>
  <body class=\"bg-light\">
    <nav class=\"navbar navbar-dark bg-primary\">
      <div class=\"container-fluid\">
        <a class=\"navbar-brand\" href=\"#\">Clinic Dashboard</a>
      </div>
    </nav>
    <main class=\"container my-4\">
      <section class=\"row g-4 mb-4\">
        <div class=\"col-md-4\"><div class=\"card shadow-sm\"><div class=\"card-body\">
          <h6 class=\"text-muted\">Appointments on {{ day }}</h6>
          <p class=\"display-6 mb-0\">{{ stats.appointments_today }}</p>
        </div></div></div>
        <div class=\"col-md-4\"><div class=\"card shadow-sm\"><div class=\"card-body\">
          <h6 class=\"text-muted\">New patients this week</h6>
          <p class=\"display-6 mb-0\">{{ stats.new_patients_this_week }}</p>
        </div></div></div>
        <div class=\"col-md-4\"><div class=\"card shadow-sm\"><div class=\"card-body\">
          <h6 class=\"text-muted\">Pending procedures</h6>
          <p class=\"display-6 mb-0\">{{ stats.pending_procedures }}</p>
        </div></div></div>
      </section>
      <section class=\"card shadow-sm\">
        <div class=\"card-header bg-success text-white\">Schedule</div>
        <div class=\"card-body\">
          {% if appointments %}
            <table class=\"table table-sm table-striped mb-0\">
              <thead>
                <tr>
                  <th scope=\"col\">Time</th>
                  <th scope=\"col\">Patient</th>
                  <th scope=\"col\">Status</th>
                </tr>
              </thead>
              <tbody>
                {% for appointment in appointments %}
                  <tr>
                    <td>{{ appointment.time }}</td>
                    <td>{{ appointment.patient }}</td>
                    <td>{{ appointment.status }}</td>
                  </tr>
                {% endfor %}
              </tbody>
            </table>
          {% else %}
            <p class=\"text-muted mb-0\">No appointments scheduled.</p>
          {% endif %}
        </div>
      </section>
    </main>
  </body>
</html>
"""


def create_app(store: Optional[ResourceStore] = None, feed: Optional[ChangeFeed] = None) -> Flask:
    store = store or build_seed_store()
    feed = feed or ChangeFeed(store)

    app = Flask(__name__)
    app.extensions["clinic_store"] = store
    app.extensions["clinic_change_feed"] = feed

    def _target_date() -> date:
        raw = request.args.get("date")
        if raw and parse_iso_date(raw) is None:
            abort(400, description=f"date must use {DATE_FORMAT}")
        return parse_iso_date(raw) or date.today()

    @app.errorhandler(400)
    @app.errorhandler(404)
    def _json_error(error: Any) -> tuple[Response, int]:
        return jsonify({"error": error.description}), error.code

    @app.route("/api/patients", methods=["GET"])
    def list_patients() -> Response:
        sort = SortState(
            column=request.args.get("sort", "name"),
            direction=request.args.get("direction", "asc"),
        )
        try:
            patients = patient_table(store.snapshot, request.args.get("search", ""), sort)
        except ValueError as exc:
            abort(400, description=str(exc))
        return jsonify(to_primitive(patients))

    @app.route("/api/patients/<patient_id>", methods=["GET"])
    def patient_detail(patient_id: str) -> Response:
        snapshot = store.snapshot
        patient = snapshot.get_patient(patient_id)
        if patient is None:
            abort(404, description=f"Patient '{patient_id}' does not exist")
        payload: Dict[str, Any] = to_primitive(patient)
        payload["appointments"] = to_primitive(appointments_for_patient(snapshot, patient_id))
        payload["procedures"] = to_primitive(procedures_for_patient(snapshot, patient_id))
        payload["imaging_studies"] = to_primitive(imaging_for_patient(snapshot, patient_id))
        return jsonify(payload)

    @app.route("/api/patients/<patient_id>", methods=["DELETE"])
    def delete_patient(patient_id: str) -> tuple[str, int]:
        if not store.delete_patient(patient_id):
            abort(404, description=f"Patient '{patient_id}' does not exist")
        return "", 204

    @app.route("/api/patients/<patient_id>/timeline", methods=["GET"])
    def timeline(patient_id: str) -> Response:
        snapshot = store.snapshot
        if snapshot.get_patient(patient_id) is None:
            abort(404, description=f"Patient '{patient_id}' does not exist")
        return jsonify(to_primitive(patient_timeline(snapshot, patient_id)))

    @app.route("/api/appointments", methods=["GET"])
    def appointments() -> Response:
        return jsonify(agenda_rows(store.snapshot, _target_date()))

    @app.route("/api/calendar", methods=["GET"])
    def calendar() -> Response:
        return jsonify(calendar_payload(store.snapshot, _target_date()))

    @app.route("/api/stats", methods=["GET"])
    def stats() -> Response:
        return jsonify(dashboard_stats(store.snapshot, _target_date()))

    @app.route("/api/changes", methods=["GET"])
    def changes() -> Response:
        return jsonify(feed.recent())

    @app.route("/dashboard", methods=["GET"])
    def dashboard() -> str:
        target_date = _target_date()
        snapshot = store.snapshot
        return render_template_string(
            dashboard_template,
            day=target_date.strftime(DATE_FORMAT),
            stats=dashboard_stats(snapshot, target_date),
            appointments=agenda_rows(snapshot, target_date),
        )

    return app


app = create_app()


if __name__ == "__main__":
    app.run(
        host="0.0.0.0",
        port=int(os.environ.get("PORT", "5000")),
        debug=False,
    )
