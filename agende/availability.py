"""Slot availability engine.

Two pure steps:
- build_busy_intervals: occupied [start, end) spans for one calendar day
- compute_available_slots: bookable "HH:MM" start times for a duration

All times are local wall-clock (naive datetimes built from a plain date and a
plain time of day). No timezone conversion happens anywhere in this module.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, List, Mapping, Optional, Union

from agende import config
from agende.models import Appointment, AppointmentStatus, BLOCKING_STATUSES

DateLike = Union[date, str]
TimeLike = Union[time, str]


@dataclass(frozen=True)
class BusyInterval:
    """Half-open occupied span [start, end) in local wall-clock time."""
    start: datetime
    end: datetime

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open overlap test; touching endpoints do not overlap."""
        return start < self.end and end > self.start


def parse_day(value: DateLike) -> date:
    """Parse "YYYY-MM-DD" (or pass a date through) as a plain calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()


def parse_time(value: TimeLike) -> time:
    """Parse "HH:MM" (or pass a time through) as a plain time of day."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    return datetime.strptime(value.strip()[:5], "%H:%M").time()


def wall_clock(day: DateLike, time_of_day: TimeLike) -> datetime:
    """Combine a calendar date and a time of day into a naive local timestamp."""
    return datetime.combine(parse_day(day), parse_time(time_of_day))


def format_slot(moment: datetime) -> str:
    """Format a candidate start as a 24-hour "HH:MM" string."""
    return moment.strftime("%H:%M")


def _field(appointment: Union[Appointment, Mapping[str, Any]], *names: str) -> Any:
    """Read a field from a model or from a raw store row (snake or camel case)."""
    for name in names:
        if isinstance(appointment, Mapping):
            if name in appointment:
                return appointment[name]
        elif hasattr(appointment, name):
            return getattr(appointment, name)
    return None


def _status_of(appointment) -> Optional[AppointmentStatus]:
    raw = _field(appointment, "status")
    if raw is None:
        return None
    try:
        return AppointmentStatus(raw)
    except ValueError:
        return None


def build_busy_intervals(
    appointments: Iterable[Union[Appointment, Mapping[str, Any]]],
    day: DateLike,
    exclude_appointment_id: Optional[str] = None
) -> List[BusyInterval]:
    """
    Derive the occupied intervals of a day from an appointment snapshot.

    Args:
        appointments: Appointment models or raw rows (id, date, time, status,
            total_duration/totalDuration)
        day: Calendar day to build the busy set for
        exclude_appointment_id: Appointment being edited, whose own slot
            must stay selectable

    Returns:
        List of BusyInterval, order irrelevant

    Filter, in order:
        1. same calendar date (string/date comparison, never timestamps)
        2. status CONFIRMED or ATTENDED
        3. id different from exclude_appointment_id
    """
    target_day = parse_day(day)
    intervals = []

    for appointment in appointments:
        raw_date = _field(appointment, "date")
        if raw_date is None or parse_day(raw_date) != target_day:
            continue

        if _status_of(appointment) not in BLOCKING_STATUSES:
            continue

        appointment_id = _field(appointment, "id")
        if exclude_appointment_id is not None and str(appointment_id) == str(exclude_appointment_id):
            continue

        # Stored span, not recomputed from the current catalog
        duration = int(_field(appointment, "total_duration", "totalDuration") or 0)
        start = wall_clock(target_day, _field(appointment, "time"))
        intervals.append(BusyInterval(start=start, end=start + timedelta(minutes=duration)))

    return intervals


def compute_available_slots(
    day: Optional[DateLike],
    duration_minutes: Optional[int],
    busy_intervals: Iterable[BusyInterval],
    work_day_start_hour: int = 6,
    work_day_end_hour: int = 20,
    step_minutes: int = 30
) -> List[str]:
    """
    Enumerate bookable start times for a day.

    Args:
        day: Calendar day (None yields no slots)
        duration_minutes: Total duration of the selected procedures
        busy_intervals: Occupied spans for that day
        work_day_start_hour: First candidate hour (inclusive)
        work_day_end_hour: Closing hour; every slot must end by then
        step_minutes: Slot granularity, anchored at the work-day start

    Returns:
        Ascending list of "HH:MM" strings

    Algorithm:
        1. No day or non-positive duration -> []
        2. Candidates t = start, start+step, ... while t + duration <= end
        3. Keep t unless some busy [b.start, b.end) has t < b.end and t + d > b.start
    """
    if day is None or not duration_minutes or duration_minutes <= 0 or step_minutes <= 0:
        return []

    target_day = parse_day(day)
    day_start = datetime.combine(target_day, time.min) + timedelta(hours=work_day_start_hour)
    day_end = datetime.combine(target_day, time.min) + timedelta(hours=work_day_end_hour)
    if day_end <= day_start:
        return []

    # Inverted intervals (end <= start) never exclude anything
    busy = [interval for interval in busy_intervals if interval.end > interval.start]

    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=step_minutes)

    slots = []
    candidate = day_start
    while candidate + duration <= day_end:
        candidate_end = candidate + duration
        if not any(interval.overlaps(candidate, candidate_end) for interval in busy):
            slots.append(format_slot(candidate))
        candidate += step

    return slots


def available_slots_for_day(
    appointments: Iterable[Union[Appointment, Mapping[str, Any]]],
    day: Optional[DateLike],
    duration_minutes: Optional[int],
    exclude_appointment_id: Optional[str] = None
) -> List[str]:
    """Builder + engine with the configured work day and slot step."""
    if day is None:
        return []
    busy = build_busy_intervals(appointments, day, exclude_appointment_id)
    return compute_available_slots(
        day,
        duration_minutes,
        busy,
        work_day_start_hour=config.WORK_DAY_START_HOUR,
        work_day_end_hour=config.WORK_DAY_END_HOUR,
        step_minutes=config.SLOT_STEP_MINUTES,
    )
