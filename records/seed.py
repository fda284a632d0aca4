"""Demo data the clinic store starts with."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

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
)
from .store import ResourceStore

DICOM_SYSTEM = "http://dicom.nema.org/resources/ontology/DCM"


def _local(day: date, days: int, hour: int, minute: int) -> datetime:
    return datetime.combine(day + timedelta(days=days), time(hour, minute)).astimezone()


def _actor(patient: Patient) -> Participant:
    return Participant(actor=Reference(patient.reference, patient.display_name))


def _subject(patient: Patient) -> Reference:
    return Reference(patient.reference, patient.display_name)


def seed_patients() -> Tuple[Patient, ...]:
    return (
        Patient(
            id="1",
            identifier=(Identifier("official", "P001"),),
            name=(HumanName("John Doe"),),
            telecom=(
                ContactPoint("phone", "555-123-4567"),
                ContactPoint("email", "john.doe@example.com"),
            ),
            birth_date="1985-05-20",
            note=ClinicalNotes(
                medical_history=("Hypertension, controlled with medication.",),
                allergies=("Penicillin",),
            ),
            insurance=Insurance("MetLife Dental", "MET123456789"),
        ),
        Patient(
            id="2",
            identifier=(Identifier("official", "P002"),),
            name=(HumanName("Jane Smith"),),
            telecom=(
                ContactPoint("phone", "555-987-6543"),
                ContactPoint("email", "jane.smith@example.com"),
            ),
            birth_date="1992-08-15",
            note=ClinicalNotes(medical_history=("No significant medical history.",)),
            insurance=Insurance("Delta Dental", "DD987654321"),
        ),
        Patient(
            id="3",
            identifier=(Identifier("official", "P003"),),
            name=(HumanName("Peter Jones"),),
            telecom=(
                ContactPoint("phone", "555-555-5555"),
                ContactPoint("email", "peter.jones@example.com"),
            ),
            birth_date="1978-11-30",
            note=ClinicalNotes(
                medical_history=("Type 2 Diabetes.",),
                allergies=("Latex", "Codeine"),
            ),
            insurance=Insurance("Cigna", "CIG555444333"),
        ),
    )


def build_seed_store(today: Optional[date] = None) -> ResourceStore:
    """Return a store holding the demo clinic, with appointments around ``today``."""

    today = today or date.today()
    john, jane, peter = seed_patients()

    appointments = (
        Appointment("1", "booked", _local(today, 0, 9, 0), _local(today, 0, 9, 30), (_actor(john),)),
        Appointment("2", "booked", _local(today, 0, 10, 0), _local(today, 0, 11, 0), (_actor(jane),)),
        Appointment("3", "arrived", _local(today, 0, 11, 30), _local(today, 0, 12, 0), (_actor(peter),)),
        Appointment("4", "booked", _local(today, 2, 9, 0), _local(today, 2, 10, 0), (_actor(john),)),
        Appointment("5", "booked", _local(today, 2, 11, 0), _local(today, 2, 11, 30), (_actor(jane),)),
    )

    procedures = (
        Procedure(
            id="1",
            status="completed",
            code=CodeableConcept((Coding("CDT", "D2740"),), "Crown - porcelain/ceramic"),
            subject=_subject(john),
            performed=_local(today, -30, 10, 0),
            body_site=(CodeableConcept((Coding("Universal", "30"),)),),
        ),
        Procedure(
            id="2",
            status="completed",
            code=CodeableConcept((Coding("CDT", "D1110"),), "Prophylaxis - adult"),
            subject=_subject(jane),
            performed=_local(today, -27, 11, 30),
            body_site=(CodeableConcept((Coding("Universal", "14"),)),),
        ),
        Procedure(
            id="3",
            status="in-progress",
            code=CodeableConcept((Coding("CDT", "D0120"),), "Periodic oral evaluation"),
            subject=_subject(john),
            performed=_local(today, 7, 15, 0),
            body_site=(CodeableConcept((Coding("Universal", "N/A"),)),),
        ),
    )

    oral = Coding("SNOMED", "44567001", "Oral")
    imaging_studies = (
        ImagingStudy(
            id="1",
            subject=_subject(john),
            modality=Coding(DICOM_SYSTEM, "X-Ray"),
            note=(Annotation("Periapical - Tooth #30"),),
            series=(
                Series(oral, (Instance("1", Coding("URL", "https://picsum.photos/seed/img1/800/600")),)),
            ),
        ),
        ImagingStudy(
            id="2",
            subject=_subject(jane),
            modality=Coding(DICOM_SYSTEM, "CT"),
            note=(Annotation("CBCT - Full Arch"),),
            series=(
                Series(oral, (Instance("2", Coding("URL", "https://picsum.photos/seed/img2/800/600")),)),
            ),
        ),
    )

    return ResourceStore(
        patients=(john, jane, peter),
        appointments=appointments,
        procedures=procedures,
        imaging_studies=imaging_studies,
    )


__all__ = ["build_seed_store", "seed_patients"]
