"""Derived views computed from store snapshots."""

from .calendar_grid import (
    CalendarDay,
    TimeSlot,
    compose_instant,
    format_short_time,
    month_grid,
    picker_grid,
    shift_month,
    time_slots,
)
from .live import LiveView
from .queries import (
    SortState,
    appointment_patient_name,
    appointments_for_date,
    appointments_for_patient,
    dashboard_stats,
    filter_by_text,
    imaging_for_patient,
    patient_table,
    procedure_chart,
    procedures_for_patient,
    reference_display,
    sort_by,
)
from .timeline import TimelineEntry, patient_timeline

__all__ = [
    "CalendarDay",
    "LiveView",
    "SortState",
    "TimeSlot",
    "TimelineEntry",
    "appointment_patient_name",
    "appointments_for_date",
    "appointments_for_patient",
    "compose_instant",
    "dashboard_stats",
    "filter_by_text",
    "format_short_time",
    "imaging_for_patient",
    "month_grid",
    "patient_table",
    "patient_timeline",
    "picker_grid",
    "procedure_chart",
    "procedures_for_patient",
    "reference_display",
    "shift_month",
    "sort_by",
    "time_slots",
]
