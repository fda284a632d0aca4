"""Filtering, sorting and selection over store snapshots.

Every function here is pure: it reads a :class:`~records.Snapshot` plus
parameters and returns a fresh list, leaving the snapshot untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

from records import (
    Appointment,
    ImagingStudy,
    Patient,
    Procedure,
    Snapshot,
    id_timestamp,
    patient_reference,
)

from .calendar_grid import current_date, local_date

T = TypeVar("T")

ASCENDING = "asc"
DESCENDING = "desc"
UNKNOWN_PATIENT = "Unknown patient"

PATIENT_SORT_KEYS: Dict[str, Callable[[Patient], str]] = {
    "name": lambda patient: patient.display_name,
    "identifier": lambda patient: patient.identifier_code,
    "birth_date": lambda patient: patient.birth_date,
}


@dataclass(frozen=True)
class SortState:
    column: str = "name"
    direction: str = ASCENDING

    def toggled(self, column: str) -> "SortState":
        """Clicking the active column flips direction; another column starts ascending."""

        if column == self.column:
            flipped = DESCENDING if self.direction == ASCENDING else ASCENDING
            return SortState(column, flipped)
        return SortState(column, ASCENDING)


def filter_by_text(
    items: Iterable[T],
    term: Optional[str],
    fields: Sequence[Callable[[T], Optional[str]]],
) -> List[T]:
    needle = (term or "").lower()
    if not needle:
        return list(items)
    return [
        item
        for item in items
        if any(needle in (field(item) or "").lower() for field in fields)
    ]


def sort_by(items: Iterable[T], key: Callable[[T], Any], direction: str = ASCENDING) -> List[T]:
    """Stable sort; items with equal keys keep their input order in both directions."""

    if direction not in (ASCENDING, DESCENDING):
        raise ValueError(f"direction must be {ASCENDING!r} or {DESCENDING!r}")
    return sorted(items, key=key, reverse=direction == DESCENDING)


def patient_table(
    snapshot: Snapshot,
    term: Optional[str] = "",
    sort: Optional[SortState] = None,
) -> List[Patient]:
    sort = sort or SortState()
    try:
        key = PATIENT_SORT_KEYS[sort.column]
    except KeyError:
        raise ValueError(f"Unsupported sort column {sort.column!r}") from None
    matches = filter_by_text(
        snapshot.patients,
        term,
        (lambda p: p.display_name, lambda p: p.identifier_code),
    )
    return sort_by(matches, key, sort.direction)


def appointments_for_date(
    snapshot: Snapshot,
    day: date,
    tz: Optional[tzinfo] = None,
) -> List[Appointment]:
    """Appointments starting on ``day`` in local time, earliest first."""

    if isinstance(day, datetime):
        day = day.date()
    return sort_by(
        (a for a in snapshot.appointments if local_date(a.start, tz) == day),
        lambda a: a.start,
    )


def appointments_for_patient(snapshot: Snapshot, patient_id: str) -> List[Appointment]:
    """A patient's appointments, most recent first."""

    reference = patient_reference(patient_id)
    return sort_by(
        (a for a in snapshot.appointments if reference in a.patient_references),
        lambda a: a.start,
        DESCENDING,
    )


def procedures_for_patient(snapshot: Snapshot, patient_id: str) -> List[Procedure]:
    reference = patient_reference(patient_id)
    return [p for p in snapshot.procedures if p.subject.reference == reference]


def imaging_for_patient(snapshot: Snapshot, patient_id: str) -> List[ImagingStudy]:
    reference = patient_reference(patient_id)
    return [s for s in snapshot.imaging_studies if s.subject.reference == reference]


def procedure_chart(snapshot: Snapshot) -> List[Procedure]:
    return sort_by(snapshot.procedures, lambda p: p.performed, DESCENDING)


def reference_display(snapshot: Snapshot, reference: str) -> str:
    """Display name for a patient reference, or a placeholder when it dangles."""

    resource = snapshot.resolve(reference)
    if isinstance(resource, Patient):
        return resource.display_name or UNKNOWN_PATIENT
    return UNKNOWN_PATIENT


def appointment_patient_name(snapshot: Snapshot, appointment: Appointment) -> str:
    references = appointment.patient_references
    if not references:
        return UNKNOWN_PATIENT
    return reference_display(snapshot, references[0])


def dashboard_stats(
    snapshot: Snapshot,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> Dict[str, int]:
    """Counters for the landing page.

    Patient creation time is read from the id, which the store stamps from
    a millisecond clock; seeded ids such as ``"1"`` read as 1970 and never
    count as new.
    """

    today = today or current_date(tz)
    midnight = datetime.combine(today, time.min)
    midnight = midnight.replace(tzinfo=tz) if tz is not None else midnight.astimezone()
    week_ago = midnight - timedelta(days=7)

    new_patients = 0
    for patient in snapshot.patients:
        created = id_timestamp(patient.id)
        if created is not None and created >= week_ago:
            new_patients += 1

    return {
        "appointments_today": len(appointments_for_date(snapshot, today, tz)),
        "new_patients_this_week": new_patients,
        "pending_procedures": sum(1 for p in snapshot.procedures if p.status == "in-progress"),
    }
