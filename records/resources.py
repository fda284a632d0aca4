"""Typed clinical resources held by the clinic store.

The shapes follow a trimmed-down FHIR layout. Every resource is a frozen
dataclass and sequences are stored as tuples, so a resource read from a
snapshot can be shared freely; mutation always produces a replacement.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import ClassVar, Optional, Tuple


@dataclass(frozen=True)
class Identifier:
    use: str
    value: str


@dataclass(frozen=True)
class HumanName:
    text: str


@dataclass(frozen=True)
class ContactPoint:
    system: str  # "phone" or "email"
    value: str


@dataclass(frozen=True)
class Reference:
    """Typed pointer of the form ``Kind/id`` plus a cached display label."""

    reference: str
    display: str = ""


@dataclass(frozen=True)
class Coding:
    system: str
    code: str
    display: str = ""


@dataclass(frozen=True)
class CodeableConcept:
    coding: Tuple[Coding, ...] = ()
    text: str = ""

    @property
    def primary_code(self) -> str:
        return self.coding[0].code if self.coding else ""


@dataclass(frozen=True)
class Annotation:
    text: str


@dataclass(frozen=True)
class ClinicalNotes:
    medical_history: Tuple[str, ...] = ()
    allergies: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Insurance:
    provider: str = ""
    policy_number: str = ""


@dataclass(frozen=True)
class Participant:
    actor: Reference
    status: str = "accepted"


@dataclass(frozen=True)
class Instance:
    uid: str
    sop_class: Coding


@dataclass(frozen=True)
class Series:
    body_site: Coding
    instance: Tuple[Instance, ...] = ()


@dataclass(frozen=True)
class Patient:
    RESOURCE_TYPE: ClassVar[str] = "Patient"

    id: str
    identifier: Tuple[Identifier, ...] = ()
    name: Tuple[HumanName, ...] = ()
    telecom: Tuple[ContactPoint, ...] = ()
    birth_date: str = ""
    note: ClinicalNotes = field(default_factory=ClinicalNotes)
    insurance: Insurance = field(default_factory=Insurance)

    @property
    def reference(self) -> str:
        return make_reference(self.RESOURCE_TYPE, self.id)

    @property
    def display_name(self) -> str:
        return self.name[0].text if self.name else ""

    @property
    def identifier_code(self) -> str:
        return self.identifier[0].value if self.identifier else ""

    @property
    def phone(self) -> Optional[str]:
        return self._contact("phone")

    @property
    def email(self) -> Optional[str]:
        return self._contact("email")

    def _contact(self, system: str) -> Optional[str]:
        for point in self.telecom:
            if point.system == system:
                return point.value
        return None


@dataclass(frozen=True)
class Appointment:
    RESOURCE_TYPE: ClassVar[str] = "Appointment"

    id: str
    status: str  # booked | arrived | cancelled
    start: datetime
    end: datetime
    participant: Tuple[Participant, ...] = ()

    @property
    def reference(self) -> str:
        return make_reference(self.RESOURCE_TYPE, self.id)

    @property
    def patient_references(self) -> Tuple[str, ...]:
        return tuple(
            p.actor.reference
            for p in self.participant
            if p.actor.reference.startswith(f"{Patient.RESOURCE_TYPE}/")
        )


@dataclass(frozen=True)
class Procedure:
    RESOURCE_TYPE: ClassVar[str] = "Procedure"

    id: str
    status: str  # in-progress | completed
    code: CodeableConcept
    subject: Reference
    performed: datetime
    body_site: Tuple[CodeableConcept, ...] = ()

    @property
    def reference(self) -> str:
        return make_reference(self.RESOURCE_TYPE, self.id)

    @property
    def patient_references(self) -> Tuple[str, ...]:
        return (self.subject.reference,)


@dataclass(frozen=True)
class ImagingStudy:
    RESOURCE_TYPE: ClassVar[str] = "ImagingStudy"

    id: str
    subject: Reference
    modality: Coding
    note: Tuple[Annotation, ...] = ()
    series: Tuple[Series, ...] = ()

    @property
    def reference(self) -> str:
        return make_reference(self.RESOURCE_TYPE, self.id)

    @property
    def patient_references(self) -> Tuple[str, ...]:
        return (self.subject.reference,)

    @property
    def created_at(self) -> datetime:
        """Creation instant recovered from the id, which is a millisecond clock value."""

        return id_timestamp(self.id) or datetime.fromtimestamp(0, tz=timezone.utc)


def make_reference(resource_type: str, resource_id: str) -> str:
    return f"{resource_type}/{resource_id}"


def patient_reference(patient_id: str) -> str:
    return make_reference(Patient.RESOURCE_TYPE, patient_id)


def parse_reference(reference: str) -> Tuple[str, str]:
    """Split ``Kind/id`` into its two parts."""

    if not isinstance(reference, str):
        raise TypeError("reference must be a string")
    parts = reference.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Malformed reference {reference!r}; expected 'Kind/id'")
    return parts[0], parts[1]


def id_timestamp(resource_id: str) -> Optional[datetime]:
    """Interpret a generated id as a UTC instant, or ``None`` if it is not numeric."""

    try:
        millis = int(resource_id)
    except (TypeError, ValueError):
        return None
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
