"""Per-patient clinical timeline merging appointments, procedures and imaging."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import List, Optional

from records import Appointment, ImagingStudy, Procedure, Snapshot

from .calendar_grid import format_short_time
from .queries import appointments_for_patient, imaging_for_patient, procedures_for_patient

APPOINTMENT = "Appointment"
PROCEDURE = "Procedure"
IMAGING = "Imaging"

# Tie-break for entries sharing an instant.
KIND_ORDER = {APPOINTMENT: 0, PROCEDURE: 1, IMAGING: 2}


@dataclass(frozen=True)
class TimelineEntry:
    date: datetime
    kind: str
    title: str
    details: str
    status: Optional[str]
    source_id: str


def _from_appointment(appointment: Appointment, tz: Optional[tzinfo]) -> TimelineEntry:
    return TimelineEntry(
        date=appointment.start,
        kind=APPOINTMENT,
        title="Appointment",
        details=(
            f"Scheduled from {format_short_time(appointment.start, tz)} "
            f"to {format_short_time(appointment.end, tz)}"
        ),
        status=appointment.status,
        source_id=appointment.id,
    )


def _from_procedure(procedure: Procedure) -> TimelineEntry:
    site = procedure.body_site[0].primary_code if procedure.body_site else ""
    return TimelineEntry(
        date=procedure.performed,
        kind=PROCEDURE,
        title=f"{procedure.code.primary_code} - {procedure.code.text}",
        details=f"Tooth: {site or 'N/A'}",
        status=procedure.status,
        source_id=procedure.id,
    )


def _from_imaging(study: ImagingStudy) -> TimelineEntry:
    return TimelineEntry(
        date=study.created_at,
        kind=IMAGING,
        title=f"Imaging Study - {study.modality.code}",
        details=study.note[0].text if study.note else "",
        status="completed",
        source_id=study.id,
    )


def _sort_key(entry: TimelineEntry):
    # newest first, then appointment < procedure < imaging, then id ascending
    return (-entry.date.timestamp(), KIND_ORDER[entry.kind], entry.source_id)


def patient_timeline(
    snapshot: Snapshot,
    patient_id: str,
    tz: Optional[tzinfo] = None,
) -> List[TimelineEntry]:
    """Every appointment, procedure and imaging study of a patient, newest first.

    Entries with the same instant are ordered appointment, procedure, imaging,
    and by source id within a kind.
    """

    entries = [_from_appointment(a, tz) for a in appointments_for_patient(snapshot, patient_id)]
    entries.extend(_from_procedure(p) for p in procedures_for_patient(snapshot, patient_id))
    entries.extend(_from_imaging(s) for s in imaging_for_patient(snapshot, patient_id))
    return sorted(entries, key=_sort_key)
