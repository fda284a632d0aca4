"""In-memory resource store with cascading patient deletes.

The store owns four collections and publishes an immutable :class:`Snapshot`
after every committed mutation. Consumers read snapshots and never see the
mutable collections behind them, so a reader observes either the state
before a mutation or the state after it, never anything in between.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple, Type

from .resources import Appointment, ImagingStudy, Patient, Procedure, parse_reference

logger = logging.getLogger(__name__)

RESOURCE_CLASSES: Dict[str, Type[Any]] = {
    cls.RESOURCE_TYPE: cls for cls in (Patient, Appointment, Procedure, ImagingStudy)
}
DEPENDENT_TYPES: Tuple[str, ...] = (
    Appointment.RESOURCE_TYPE,
    Procedure.RESOURCE_TYPE,
    ImagingStudy.RESOURCE_TYPE,
)


@dataclass(frozen=True)
class Snapshot:
    """Immutable view of every collection at one store version."""

    version: int = 0
    patients: Tuple[Patient, ...] = ()
    appointments: Tuple[Appointment, ...] = ()
    procedures: Tuple[Procedure, ...] = ()
    imaging_studies: Tuple[ImagingStudy, ...] = ()

    def collection(self, resource_type: str) -> Tuple[Any, ...]:
        if resource_type == Patient.RESOURCE_TYPE:
            return self.patients
        if resource_type == Appointment.RESOURCE_TYPE:
            return self.appointments
        if resource_type == Procedure.RESOURCE_TYPE:
            return self.procedures
        if resource_type == ImagingStudy.RESOURCE_TYPE:
            return self.imaging_studies
        raise ValueError(f"Unknown resource type {resource_type!r}")

    def get(self, resource_type: str, resource_id: str) -> Optional[Any]:
        for resource in self.collection(resource_type):
            if resource.id == resource_id:
                return resource
        return None

    def get_patient(self, patient_id: str) -> Optional[Patient]:
        return self.get(Patient.RESOURCE_TYPE, patient_id)

    def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        return self.get(Appointment.RESOURCE_TYPE, appointment_id)

    def get_procedure(self, procedure_id: str) -> Optional[Procedure]:
        return self.get(Procedure.RESOURCE_TYPE, procedure_id)

    def get_imaging_study(self, study_id: str) -> Optional[ImagingStudy]:
        return self.get(ImagingStudy.RESOURCE_TYPE, study_id)

    def resolve(self, reference: str) -> Optional[Any]:
        """Dereference ``Kind/id``; dangling or malformed references yield ``None``."""

        try:
            resource_type, resource_id = parse_reference(reference)
        except (TypeError, ValueError):
            return None
        if resource_type not in RESOURCE_CLASSES:
            return None
        return self.get(resource_type, resource_id)


@dataclass(frozen=True)
class ChangeEvent:
    """Describes the mutation that produced a snapshot version."""

    event_type: str  # create | update | delete
    resource_type: str
    resource_id: str
    version: int
    cascaded: Tuple[str, ...] = ()


Listener = Callable[[Snapshot, ChangeEvent], None]


class MonotonicIdClock:
    """Generates ids from a millisecond clock, bumping past any value already issued."""

    def __init__(self, clock: Callable[[], int] = time.time_ns) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            candidate = self._clock() // 1_000_000
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return str(candidate)


class ResourceStore:
    """Holds patients, appointments, procedures and imaging studies."""

    def __init__(
        self,
        *,
        patients: Iterable[Patient] = (),
        appointments: Iterable[Appointment] = (),
        procedures: Iterable[Procedure] = (),
        imaging_studies: Iterable[ImagingStudy] = (),
        id_clock: Optional[MonotonicIdClock] = None,
    ) -> None:
        self._id_clock = id_clock or MonotonicIdClock()
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._collections: Dict[str, Dict[str, Any]] = {
            resource_type: {} for resource_type in RESOURCE_CLASSES
        }
        # patient id -> dependent resource type -> ids referencing that patient
        self._dependents: Dict[str, Dict[str, Set[str]]] = {}

        for group in (patients, appointments, procedures, imaging_studies):
            for resource in group:
                collection = self._collections[resource.RESOURCE_TYPE]
                if resource.id in collection:
                    raise ValueError(f"Duplicate id {resource.reference!r} in seed data")
                collection[resource.id] = resource
                self._index(resource)
        self._version = 0
        self._snapshot = self._build_snapshot()

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for every committed change; returns an unsubscribe callable."""

        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def dependents_of(self, patient_id: str) -> Dict[str, Tuple[str, ...]]:
        """Return the ids of resources referencing ``Patient/<patient_id>``, per type."""

        with self._lock:
            entry = self._dependents.get(patient_id, {})
            return {kind: tuple(sorted(ids)) for kind, ids in entry.items() if ids}

    # Patients

    def add_patient(self, **fields: Any) -> Patient:
        return self._add(Patient, fields)

    def update_patient(self, patient_id: str, **changes: Any) -> bool:
        return self._update(Patient.RESOURCE_TYPE, patient_id, changes)

    def delete_patient(self, patient_id: str) -> bool:
        return self._delete(Patient.RESOURCE_TYPE, patient_id)

    # Appointments

    def add_appointment(self, **fields: Any) -> Appointment:
        return self._add(Appointment, fields)

    def update_appointment(self, appointment_id: str, **changes: Any) -> bool:
        return self._update(Appointment.RESOURCE_TYPE, appointment_id, changes)

    def delete_appointment(self, appointment_id: str) -> bool:
        return self._delete(Appointment.RESOURCE_TYPE, appointment_id)

    # Procedures

    def add_procedure(self, **fields: Any) -> Procedure:
        return self._add(Procedure, fields)

    def update_procedure(self, procedure_id: str, **changes: Any) -> bool:
        return self._update(Procedure.RESOURCE_TYPE, procedure_id, changes)

    def delete_procedure(self, procedure_id: str) -> bool:
        return self._delete(Procedure.RESOURCE_TYPE, procedure_id)

    # Imaging studies

    def add_imaging_study(self, **fields: Any) -> ImagingStudy:
        return self._add(ImagingStudy, fields)

    def update_imaging_study(self, study_id: str, **changes: Any) -> bool:
        return self._update(ImagingStudy.RESOURCE_TYPE, study_id, changes)

    def delete_imaging_study(self, study_id: str) -> bool:
        return self._delete(ImagingStudy.RESOURCE_TYPE, study_id)

    # Internals

    def _add(self, resource_cls: Type[Any], fields: Dict[str, Any]) -> Any:
        if "id" in fields:
            raise ValueError("id is assigned by the store and cannot be supplied")
        with self._lock:
            collection = self._collections[resource_cls.RESOURCE_TYPE]
            resource_id = self._id_clock.next_id()
            # seeded ids may already occupy a clock reading
            while resource_id in collection:
                resource_id = self._id_clock.next_id()
            resource = resource_cls(id=resource_id, **fields)
            collection[resource.id] = resource
            self._index(resource)
            snapshot, event = self._commit("create", resource_cls.RESOURCE_TYPE, resource.id)
        logger.info("Created %s", resource.reference)
        self._notify(snapshot, event)
        return resource

    def _update(self, resource_type: str, resource_id: str, changes: Dict[str, Any]) -> bool:
        if "id" in changes:
            raise ValueError("id is immutable")
        with self._lock:
            collection = self._collections[resource_type]
            current = collection.get(resource_id)
            if current is None:
                logger.warning("Update skipped: %s/%s does not exist", resource_type, resource_id)
                return False
            updated = replace(current, **changes)
            self._unindex(current)
            collection[resource_id] = updated
            self._index(updated)
            snapshot, event = self._commit("update", resource_type, resource_id)
        logger.info("Updated %s", updated.reference)
        self._notify(snapshot, event)
        return True

    def _delete(self, resource_type: str, resource_id: str) -> bool:
        with self._lock:
            collection = self._collections[resource_type]
            current = collection.pop(resource_id, None)
            if current is None:
                logger.warning("Delete skipped: %s/%s does not exist", resource_type, resource_id)
                return False
            self._unindex(current)
            cascaded: List[str] = []
            if resource_type == Patient.RESOURCE_TYPE:
                cascaded = self._cascade(resource_id)
            snapshot, event = self._commit(
                "delete", resource_type, resource_id, cascaded=tuple(cascaded)
            )
        if cascaded:
            logger.info(
                "Deleted %s with %d dependent resources", current.reference, len(cascaded)
            )
        else:
            logger.info("Deleted %s", current.reference)
        self._notify(snapshot, event)
        return True

    def _cascade(self, patient_id: str) -> List[str]:
        removed: List[str] = []
        entry = self._dependents.pop(patient_id, {})
        for resource_type in DEPENDENT_TYPES:
            collection = self._collections[resource_type]
            for dependent_id in sorted(entry.get(resource_type, ())):
                dependent = collection.pop(dependent_id, None)
                if dependent is None:
                    continue
                # drops the entry from any other patient it also references
                self._unindex(dependent)
                removed.append(dependent.reference)
        return removed

    def _index(self, resource: Any) -> None:
        for patient_id in _referenced_patient_ids(resource):
            kinds = self._dependents.setdefault(patient_id, {})
            kinds.setdefault(resource.RESOURCE_TYPE, set()).add(resource.id)

    def _unindex(self, resource: Any) -> None:
        for patient_id in _referenced_patient_ids(resource):
            kinds = self._dependents.get(patient_id)
            if kinds is None:
                continue
            ids = kinds.get(resource.RESOURCE_TYPE)
            if ids is not None:
                ids.discard(resource.id)
                if not ids:
                    del kinds[resource.RESOURCE_TYPE]
            if not kinds:
                del self._dependents[patient_id]

    def _commit(
        self,
        event_type: str,
        resource_type: str,
        resource_id: str,
        *,
        cascaded: Tuple[str, ...] = (),
    ) -> Tuple[Snapshot, ChangeEvent]:
        self._version += 1
        snapshot = self._build_snapshot()
        self._snapshot = snapshot
        event = ChangeEvent(
            event_type=event_type,
            resource_type=resource_type,
            resource_id=resource_id,
            version=snapshot.version,
            cascaded=cascaded,
        )
        return snapshot, event

    def _build_snapshot(self) -> Snapshot:
        return Snapshot(
            version=self._version,
            patients=tuple(self._collections[Patient.RESOURCE_TYPE].values()),
            appointments=tuple(self._collections[Appointment.RESOURCE_TYPE].values()),
            procedures=tuple(self._collections[Procedure.RESOURCE_TYPE].values()),
            imaging_studies=tuple(self._collections[ImagingStudy.RESOURCE_TYPE].values()),
        )

    def _notify(self, snapshot: Snapshot, event: ChangeEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot, event)
            except Exception:
                # A failing subscriber must not undo or block the committed change.
                logger.exception("Store listener failed for %s event", event.event_type)


def _referenced_patient_ids(resource: Any) -> Set[str]:
    if isinstance(resource, Patient):
        return set()
    patient_ids: Set[str] = set()
    for reference in resource.patient_references:
        try:
            resource_type, resource_id = parse_reference(reference)
        except (TypeError, ValueError):
            logger.debug("Ignoring malformed reference %r on %s", reference, resource.reference)
            continue
        if resource_type == Patient.RESOURCE_TYPE:
            patient_ids.add(resource_id)
    return patient_ids
