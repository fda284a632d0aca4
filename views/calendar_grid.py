"""Month calendar grids for the appointment calendar and the date/time picker.

A grid always covers the whole month containing the reference date, padded
with days of the neighbouring months so that every week is a full
Sunday-to-Saturday row. Month lengths, leap years and year boundaries fall
out of plain ``timedelta`` arithmetic.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Callable, DefaultDict, Iterable, List, Optional, Tuple

WEEKDAY_LABELS: Tuple[str, ...] = ("S", "M", "T", "W", "T", "F", "S")

SLOT_START_HOUR = 8
SLOT_END_HOUR = 17
SLOT_STEP_MINUTES = 15


@dataclass(frozen=True)
class CalendarDay:
    date: date
    is_current_month: bool
    is_today: bool
    is_disabled: bool = False
    events: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class TimeSlot:
    display: str  # "8:00 AM"
    value: str  # "08:00"
    disabled: bool = False


def local_date(moment: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar day of ``moment`` in ``tz`` (the machine's zone when ``tz`` is None)."""

    return moment.astimezone(tz).date()


def current_date(tz: Optional[tzinfo] = None) -> date:
    return datetime.now(tz).date() if tz is not None else date.today()


def _event_start(event: Any) -> datetime:
    return event.start


def _sunday_index(day: date) -> int:
    return (day.weekday() + 1) % 7


def _as_date(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


def month_bounds(reference: date) -> Tuple[date, date]:
    """First and last day of the month containing ``reference``."""

    first = _as_date(reference).replace(day=1)
    following = (first + timedelta(days=32)).replace(day=1)
    return first, following - timedelta(days=1)


def month_grid(
    reference: date,
    events: Iterable[Any] = (),
    *,
    start_of: Callable[[Any], datetime] = _event_start,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
    disable_past: bool = False,
) -> List[List[CalendarDay]]:
    """Build the week rows for the month of ``reference``.

    Each day carries the events whose ``start_of(event)`` falls on it in local
    time, in the order they were supplied. With ``disable_past`` the days
    strictly before ``today`` are flagged as not selectable.
    """

    today = _as_date(today) if today is not None else current_date(tz)
    first, last = month_bounds(reference)
    start = first - timedelta(days=_sunday_index(first))
    end = last + timedelta(days=6 - _sunday_index(last))

    buckets: DefaultDict[date, List[Any]] = defaultdict(list)
    for event in events:
        buckets[local_date(start_of(event), tz)].append(event)

    weeks: List[List[CalendarDay]] = []
    day = start
    while day <= end:
        week: List[CalendarDay] = []
        for _ in range(7):
            week.append(
                CalendarDay(
                    date=day,
                    is_current_month=day.month == first.month and day.year == first.year,
                    is_today=day == today,
                    is_disabled=disable_past and day < today,
                    events=tuple(buckets.get(day, ())),
                )
            )
            day += timedelta(days=1)
        weeks.append(week)
    return weeks


def picker_grid(
    reference: date,
    *,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> List[List[CalendarDay]]:
    """Grid for the date picker: no events, past days disabled."""

    return month_grid(reference, today=today, tz=tz, disable_past=True)


def shift_month(reference: date, offset: int) -> date:
    """First day of the month ``offset`` months away from ``reference``."""

    index = reference.year * 12 + (reference.month - 1) + offset
    return date(index // 12, index % 12 + 1, 1)


def _twelve_hour(hour: int, minute: int) -> str:
    suffix = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minute:02d} {suffix}"


def format_short_time(moment: datetime, tz: Optional[tzinfo] = None) -> str:
    local = moment.astimezone(tz)
    return _twelve_hour(local.hour, local.minute)


def time_slots(
    selected_day: Optional[date] = None,
    now: Optional[datetime] = None,
) -> List[TimeSlot]:
    """Quarter-hour slots from 8:00 AM to 4:45 PM.

    Slots earlier than the current minute are disabled, but only when
    ``selected_day`` is today.
    """

    now = now or datetime.now()
    is_today = selected_day is not None and _as_date(selected_day) == now.date()
    current = now.strftime("%H:%M")

    slots: List[TimeSlot] = []
    for hour in range(SLOT_START_HOUR, SLOT_END_HOUR):
        for minute in range(0, 60, SLOT_STEP_MINUTES):
            value = f"{hour:02d}:{minute:02d}"
            slots.append(
                TimeSlot(
                    display=_twelve_hour(hour, minute),
                    value=value,
                    disabled=is_today and value < current,
                )
            )
    return slots


def compose_instant(day: date, slot_value: str, tz: Optional[tzinfo] = None) -> datetime:
    """Combine a picked day and an ``HH:MM`` slot into an aware datetime."""

    hours, minutes = (int(part) for part in slot_value.split(":"))
    naive = datetime.combine(_as_date(day), time(hours, minutes))
    if tz is not None:
        return naive.replace(tzinfo=tz)
    return naive.astimezone()
