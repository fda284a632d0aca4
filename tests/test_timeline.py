import unittest
from datetime import date, datetime, timedelta, timezone

from records import (
    Annotation,
    Appointment,
    CodeableConcept,
    Coding,
    HumanName,
    ImagingStudy,
    Participant,
    Patient,
    Procedure,
    Reference,
    ResourceStore,
)
from records.seed import build_seed_store
from views import patient_timeline

SEED_DAY = date(2026, 3, 10)
UTC = timezone.utc


class PatientTimelineTests(unittest.TestCase):
    def test_entry_count_matches_sources(self) -> None:
        store = build_seed_store(today=SEED_DAY)
        expected = {"1": 2 + 2 + 1, "2": 2 + 1 + 1, "3": 1, "404": 0}

        for patient_id, count in expected.items():
            with self.subTest(patient_id=patient_id):
                entries = patient_timeline(store.snapshot, patient_id)
                self.assertEqual(len(entries), count)
                dates = [e.date for e in entries]
                self.assertEqual(dates, sorted(dates, reverse=True))

    def test_projection_per_kind(self) -> None:
        store = build_seed_store(today=SEED_DAY)

        entries = patient_timeline(store.snapshot, "2")
        by_kind = {e.kind: e for e in entries}

        appointment = by_kind["Appointment"]
        self.assertEqual(appointment.title, "Appointment")
        self.assertTrue(appointment.details.startswith("Scheduled from "))
        self.assertEqual(appointment.status, "booked")

        procedure = by_kind["Procedure"]
        self.assertEqual(procedure.title, "D1110 - Prophylaxis - adult")
        self.assertEqual(procedure.details, "Tooth: 14")
        self.assertEqual(procedure.status, "completed")

        imaging = by_kind["Imaging"]
        self.assertEqual(imaging.title, "Imaging Study - CT")
        self.assertEqual(imaging.details, "CBCT - Full Arch")
        self.assertEqual(imaging.status, "completed")
        self.assertEqual(imaging.date, datetime.fromtimestamp(0.002, tz=UTC))
        self.assertIs(entries[-1], imaging)

    def test_appointment_details_use_short_times(self) -> None:
        start = datetime(2026, 3, 10, 14, 5, tzinfo=UTC)
        store = ResourceStore(
            appointments=(
                Appointment(
                    "a1",
                    "arrived",
                    start,
                    start + timedelta(minutes=40),
                    (Participant(Reference("Patient/p")),),
                ),
            )
        )

        (entry,) = patient_timeline(store.snapshot, "p", tz=UTC)

        self.assertEqual(entry.details, "Scheduled from 2:05 PM to 2:45 PM")

    def test_ties_break_by_kind_then_id(self) -> None:
        moment = datetime(2026, 3, 10, 9, 0, tzinfo=UTC)
        subject = Reference("Patient/p", "Pat")
        code = CodeableConcept((Coding("CDT", "D0120"),), "Periodic oral evaluation")
        created_ms = str(int(moment.timestamp() * 1000))
        store = ResourceStore(
            patients=(Patient("p", name=(HumanName("Pat"),)),),
            appointments=(
                Appointment("b", "booked", moment, moment, (Participant(subject),)),
                Appointment("a", "booked", moment, moment, (Participant(subject),)),
            ),
            procedures=(
                Procedure("z", "completed", code, subject, moment),
                Procedure("y", "completed", code, subject, moment),
            ),
            imaging_studies=(
                ImagingStudy(created_ms, subject, Coding("DCM", "X-Ray"), (Annotation("Bitewing"),)),
            ),
        )

        entries = patient_timeline(store.snapshot, "p")

        self.assertEqual(
            [(e.kind, e.source_id) for e in entries],
            [
                ("Appointment", "a"),
                ("Appointment", "b"),
                ("Procedure", "y"),
                ("Procedure", "z"),
                ("Imaging", created_ms),
            ],
        )

    def test_missing_body_site_and_note_degrade_gracefully(self) -> None:
        subject = Reference("Patient/p")
        store = ResourceStore(
            procedures=(
                Procedure(
                    "1",
                    "in-progress",
                    CodeableConcept((), "Consultation"),
                    subject,
                    datetime(2026, 1, 1, tzinfo=UTC),
                ),
            ),
            imaging_studies=(ImagingStudy("not-a-timestamp", subject, Coding("DCM", "CT")),),
        )

        procedure, imaging = patient_timeline(store.snapshot, "p")

        self.assertEqual(procedure.title, " - Consultation")
        self.assertEqual(procedure.details, "Tooth: N/A")
        self.assertEqual(imaging.details, "")
        self.assertEqual(imaging.date, datetime.fromtimestamp(0, tz=UTC))

    def test_timeline_after_cascade_is_empty(self) -> None:
        store = build_seed_store(today=SEED_DAY)
        store.delete_patient("1")
        self.assertEqual(patient_timeline(store.snapshot, "1"), [])


if __name__ == "__main__":
    unittest.main()
