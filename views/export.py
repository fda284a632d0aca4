"""Conversion of resources and view results into JSON-ready primitives."""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from typing import Any, Dict, List

from records import Snapshot

from .calendar_grid import format_short_time, month_grid
from .queries import appointment_patient_name, appointments_for_date


def to_primitive(value: Any) -> Any:
    """Recursively turn dataclasses, tuples and dates into dicts, lists and ISO strings."""

    if is_dataclass(value) and not isinstance(value, type):
        data = {f.name: to_primitive(getattr(value, f.name)) for f in fields(value)}
        resource_type = getattr(type(value), "RESOURCE_TYPE", None)
        if resource_type is not None:
            data["resource_type"] = resource_type
        return data
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): to_primitive(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_primitive(item) for item in value]
    return value


def agenda_rows(snapshot: Snapshot, target_date: date) -> List[Dict[str, Any]]:
    """Rows for a day's schedule, earliest first, with patient names resolved."""

    return [
        {
            "id": appointment.id,
            "patient": appointment_patient_name(snapshot, appointment),
            "start": appointment.start.isoformat(),
            "end": appointment.end.isoformat(),
            "time": format_short_time(appointment.start),
            "status": appointment.status,
        }
        for appointment in appointments_for_date(snapshot, target_date)
    ]


def calendar_payload(snapshot: Snapshot, reference: date) -> Dict[str, Any]:
    weeks = month_grid(reference, snapshot.appointments)
    return {
        "month": reference.strftime("%Y-%m"),
        "weeks": [
            [
                {
                    "date": day.date.isoformat(),
                    "is_current_month": day.is_current_month,
                    "is_today": day.is_today,
                    "appointment_ids": [appointment.id for appointment in day.events],
                }
                for day in week
            ]
            for week in weeks
        ],
    }
