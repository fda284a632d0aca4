"""Clinical resources and the in-memory store that owns them."""

from .resources import (
    Annotation,
    Appointment,
    ClinicalNotes,
    CodeableConcept,
    Coding,
    ContactPoint,
    HumanName,
    Identifier,
    ImagingStudy,
    Instance,
    Insurance,
    Participant,
    Patient,
    Procedure,
    Reference,
    Series,
    id_timestamp,
    make_reference,
    parse_reference,
    patient_reference,
)
from .store import ChangeEvent, MonotonicIdClock, ResourceStore, Snapshot

__all__ = [
    "Annotation",
    "Appointment",
    "ChangeEvent",
    "ClinicalNotes",
    "CodeableConcept",
    "Coding",
    "ContactPoint",
    "HumanName",
    "Identifier",
    "ImagingStudy",
    "Instance",
    "Insurance",
    "MonotonicIdClock",
    "Participant",
    "Patient",
    "Procedure",
    "Reference",
    "ResourceStore",
    "Series",
    "Snapshot",
    "id_timestamp",
    "make_reference",
    "parse_reference",
    "patient_reference",
]
