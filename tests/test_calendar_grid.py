import unittest
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

from records.seed import build_seed_store
from views import compose_instant, month_grid, picker_grid, shift_month, time_slots
from views.calendar_grid import format_short_time, month_bounds
from views.queries import appointments_for_date


def _days(grid):
    return [day for week in grid for day in week]


class MonthGridShapeTests(unittest.TestCase):
    REFERENCE_DATES = [
        date(2024, 2, 14),  # leap February
        date(2023, 2, 1),  # non-leap February
        date(2026, 2, 28),  # February starting on Sunday, 4 rows
        date(2025, 5, 31),  # last day is a Saturday
        date(2025, 12, 31),  # December into January
        date(2026, 1, 1),  # January out of December
        date(2025, 8, 15),  # six-row month
        date(2024, 4, 30),  # 30-day month
    ]

    def test_grid_is_rectangular_and_sunday_first(self) -> None:
        for reference in self.REFERENCE_DATES:
            with self.subTest(reference=reference):
                grid = month_grid(reference, today=date(2000, 1, 1))
                days = _days(grid)
                self.assertEqual(len(days) % 7, 0)
                self.assertTrue(all(len(week) == 7 for week in grid))
                for week in grid:
                    self.assertEqual(week[0].date.weekday(), 6)
                    self.assertEqual(week[-1].date.weekday(), 5)
                for earlier, later in zip(days, days[1:]):
                    self.assertEqual(later.date - earlier.date, timedelta(days=1))

    def test_every_day_of_month_appears_exactly_once(self) -> None:
        for reference in self.REFERENCE_DATES:
            with self.subTest(reference=reference):
                first, last = month_bounds(reference)
                days = _days(month_grid(reference, today=date(2000, 1, 1)))
                in_month = [d.date for d in days if d.is_current_month]
                expected = [first + timedelta(days=i) for i in range((last - first).days + 1)]
                self.assertEqual(in_month, expected)
                self.assertEqual([d.date for d in days].count(reference), 1)
                self.assertTrue(next(d for d in days if d.date == reference).is_current_month)

    def test_month_lengths(self) -> None:
        self.assertEqual(month_bounds(date(2024, 2, 10))[1], date(2024, 2, 29))
        self.assertEqual(month_bounds(date(2023, 2, 10))[1], date(2023, 2, 28))
        self.assertEqual(month_bounds(date(2024, 4, 10))[1], date(2024, 4, 30))
        self.assertEqual(month_bounds(date(2024, 12, 10))[1], date(2024, 12, 31))

    def test_month_ending_on_saturday_gets_no_trailing_padding(self) -> None:
        grid = month_grid(date(2025, 5, 1), today=date(2000, 1, 1))
        self.assertEqual(grid[-1][-1].date, date(2025, 5, 31))
        self.assertEqual(len(grid), 5)

    def test_four_row_february(self) -> None:
        grid = month_grid(date(2026, 2, 1), today=date(2000, 1, 1))
        self.assertEqual(len(grid), 4)
        self.assertTrue(all(day.is_current_month for day in _days(grid)))

    def test_padding_days_come_from_adjacent_years(self) -> None:
        grid = month_grid(date(2025, 12, 1), today=date(2000, 1, 1))
        self.assertEqual(grid[-1][-1].date, date(2026, 1, 3))
        self.assertFalse(grid[-1][-1].is_current_month)

        grid = month_grid(date(2026, 1, 1), today=date(2000, 1, 1))
        self.assertEqual(grid[0][0].date, date(2025, 12, 28))
        self.assertFalse(grid[0][0].is_current_month)

    def test_datetime_reference_is_accepted(self) -> None:
        grid = month_grid(datetime(2025, 12, 31, 23, 0), today=date(2000, 1, 1))
        self.assertEqual(grid[0][0].date, date(2025, 11, 30))

    def test_is_today_flag(self) -> None:
        days = _days(month_grid(date(2025, 3, 1), today=date(2025, 3, 18)))
        self.assertEqual([d.date for d in days if d.is_today], [date(2025, 3, 18)])

        days = _days(month_grid(date(2025, 3, 1), today=date(2025, 7, 1)))
        self.assertFalse(any(d.is_today for d in days))


class MonthGridEventTests(unittest.TestCase):
    def test_events_attach_by_local_day(self) -> None:
        utc = timezone.utc
        events = [
            SimpleNamespace(id="late", start=datetime(2025, 3, 4, 23, 59, tzinfo=utc)),
            SimpleNamespace(id="early", start=datetime(2025, 3, 4, 0, 0, tzinfo=utc)),
            SimpleNamespace(id="padding", start=datetime(2025, 4, 2, 12, 0, tzinfo=utc)),
            SimpleNamespace(id="outside", start=datetime(2025, 6, 1, 12, 0, tzinfo=utc)),
        ]

        grid = month_grid(date(2025, 3, 1), events, today=date(2025, 3, 1), tz=utc)
        by_date = {day.date: [e.id for e in day.events] for day in _days(grid)}

        self.assertEqual(by_date[date(2025, 3, 4)], ["late", "early"])
        self.assertEqual(by_date[date(2025, 4, 2)], ["padding"])
        self.assertNotIn("outside", [e for ids in by_date.values() for e in ids])

    def test_time_zone_decides_the_day(self) -> None:
        event = SimpleNamespace(start=datetime(2025, 3, 4, 23, 30, tzinfo=timezone.utc))
        plus_two = timezone(timedelta(hours=2))

        grid = month_grid(date(2025, 3, 1), [event], today=date(2025, 3, 1), tz=plus_two)
        days_with_events = [d.date for d in _days(grid) if d.events]

        self.assertEqual(days_with_events, [date(2025, 3, 5)])

    def test_custom_start_accessor(self) -> None:
        procedure = SimpleNamespace(performed=datetime(2025, 3, 9, 10, 0).astimezone())
        grid = month_grid(date(2025, 3, 1), [procedure], start_of=lambda p: p.performed, today=date(2025, 3, 1))
        self.assertEqual([d.date for d in _days(grid) if d.events], [date(2025, 3, 9)])

    def test_seeded_calendar_marks_exactly_appointment_days(self) -> None:
        today = date(2026, 3, 10)
        store = build_seed_store(today=today)

        grid = month_grid(today, store.snapshot.appointments, today=today)
        busy = {d.date: len(d.events) for d in _days(grid) if d.events}

        self.assertEqual(busy, {today: 3, today + timedelta(days=2): 2})
        agenda = appointments_for_date(store.snapshot, today)
        self.assertEqual([a.start for a in agenda], sorted(a.start for a in agenda))


class PickerTests(unittest.TestCase):
    def test_picker_disables_days_before_today_only(self) -> None:
        today = date(2025, 3, 12)
        days = _days(picker_grid(today, today=today))

        for day in days:
            self.assertEqual(day.is_disabled, day.date < today, day.date)
            self.assertEqual(day.events, ())

    def test_month_grid_does_not_disable_by_default(self) -> None:
        days = _days(month_grid(date(2025, 3, 12), today=date(2025, 3, 12)))
        self.assertFalse(any(d.is_disabled for d in days))

    def test_time_slots_cover_daytime_window(self) -> None:
        slots = time_slots()
        self.assertEqual(len(slots), 36)
        self.assertEqual((slots[0].value, slots[0].display), ("08:00", "8:00 AM"))
        self.assertEqual((slots[-1].value, slots[-1].display), ("16:45", "4:45 PM"))
        self.assertEqual(slots[16].display, "12:00 PM")

    def test_time_slots_disabled_before_now_only_today(self) -> None:
        now = datetime(2025, 3, 12, 10, 20)

        today_slots = time_slots(date(2025, 3, 12), now=now)
        disabled = [s.value for s in today_slots if s.disabled]
        self.assertEqual(disabled[-1], "10:15")
        self.assertEqual(len(disabled), 10)
        self.assertFalse(next(s for s in today_slots if s.value == "10:30").disabled)

        self.assertFalse(any(s.disabled for s in time_slots(date(2025, 3, 13), now=now)))
        self.assertFalse(any(s.disabled for s in time_slots(None, now=now)))

    def test_slot_matching_current_minute_stays_enabled(self) -> None:
        slots = time_slots(date(2025, 3, 12), now=datetime(2025, 3, 12, 9, 0))
        self.assertFalse(next(s for s in slots if s.value == "09:00").disabled)

    def test_shift_month_crosses_years(self) -> None:
        self.assertEqual(shift_month(date(2025, 12, 31), 1), date(2026, 1, 1))
        self.assertEqual(shift_month(date(2025, 1, 31), -1), date(2024, 12, 1))
        self.assertEqual(shift_month(date(2025, 3, 31), 11), date(2026, 2, 1))

    def test_compose_instant(self) -> None:
        tz = timezone(timedelta(hours=-5))
        moment = compose_instant(date(2025, 3, 12), "14:45", tz)
        self.assertEqual(moment, datetime(2025, 3, 12, 14, 45, tzinfo=tz))
        self.assertEqual(format_short_time(moment, tz), "2:45 PM")


if __name__ == "__main__":
    unittest.main()
