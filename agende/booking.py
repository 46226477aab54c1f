"""Booking workflow: slot lookup, booking and rescheduling.

Composes the procedure catalog, the appointment store and the slot engine.
A requested start time is accepted only if the slot engine offers it for the
chosen procedures at the moment of writing: the check and the write run
under the appointment store's booking lock, so concurrent requests in one
process cannot both take the same slot.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from agende import config
from agende.appointments import AppointmentStore
from agende.availability import available_slots_for_day, parse_day
from agende.google_calendar import CalendarSync, CalendarSyncResult
from agende.logging_config import get_logger
from agende.models import Appointment, appointment_totals, normalize_time, snapshot_procedures
from agende.procedures import ProcedureStore

logger = get_logger(__name__)


class SlotUnavailableError(Exception):
    """Raised when the requested start time is not an available slot."""

    def __init__(self, day: date, time: str, duration: int):
        self.day = day
        self.time = time
        self.duration = duration
        super().__init__(
            f"{time} on {day.isoformat()} is not available for a {duration}-minute appointment"
        )


@dataclass
class BookingRequest:
    """What the booking form submits."""
    procedure_ids: Sequence[str]
    customer_name: str
    day: date
    time: str
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    sinal_pago: bool = False
    payment_method: Optional[str] = None
    sync_to_calendar: bool = False


@dataclass
class BookingResult:
    appointment: Appointment
    calendar: Optional[CalendarSyncResult] = None
    warnings: List[str] = field(default_factory=list)


class BookingService:
    """
    Usage:
        service = BookingService(procedures, appointments, calendar_sync)
        slots = service.available_slots(day, ["proc-1"])
        result = service.book(BookingRequest(...))
    """

    def __init__(
        self,
        procedures: ProcedureStore,
        appointments: AppointmentStore,
        calendar_sync: Optional[CalendarSync] = None
    ):
        self.procedures = procedures
        self.appointments = appointments
        self.calendar_sync = calendar_sync

    def duration_for(self, procedure_ids: Sequence[str]) -> int:
        """Total minutes of the current catalog entries for a selection."""
        if not procedure_ids:
            return 0
        return sum(p.duration for p in self.procedures.get_many(procedure_ids))

    def available_slots(
        self,
        day: Optional[date],
        procedure_ids: Sequence[str],
        exclude_appointment_id: Optional[str] = None
    ) -> List[str]:
        """
        Bookable start times for a day and a procedure selection.

        Pass exclude_appointment_id when editing, so the appointment's own
        current slot stays offered.
        """
        if day is None or not procedure_ids:
            return []

        duration = self.duration_for(procedure_ids)
        day_snapshot = self.appointments.list_for_day(parse_day(day))
        return available_slots_for_day(day_snapshot, day, duration, exclude_appointment_id)

    def _check_slot(
        self,
        day: date,
        time: str,
        duration: int,
        exclude_appointment_id: Optional[str] = None
    ):
        slots = available_slots_for_day(
            self.appointments.list_for_day(day),
            day,
            duration,
            exclude_appointment_id
        )
        if time not in slots:
            logger.info(
                "slot_rejected",
                date=day.isoformat(),
                time=time,
                duration=duration,
                work_day=f"{config.WORK_DAY_START_HOUR}-{config.WORK_DAY_END_HOUR}",
            )
            raise SlotUnavailableError(day, time, duration)

    def book(self, request: BookingRequest) -> BookingResult:
        """
        Create an appointment.

        Raises:
            NotFoundError: If a procedure id is unknown
            SlotUnavailableError: If the time is not an available slot
        """
        day = parse_day(request.day)
        time = normalize_time(request.time)
        with self.appointments.booking_lock:
            snapshots = snapshot_procedures(self.procedures.get_many(request.procedure_ids))
            _, duration = appointment_totals(snapshots)

            self._check_slot(day, time, duration)

            appointment = self.appointments.add_appointment(
                snapshots,
                customer_name=request.customer_name,
                day=day,
                time=time,
                customer_phone=request.customer_phone,
                notes=request.notes,
                sinal_pago=request.sinal_pago,
                payment_method=request.payment_method,
            )

        return self._finish(appointment, request.sync_to_calendar)

    def reschedule(
        self,
        appointment_id: str,
        request: BookingRequest
    ) -> BookingResult:
        """
        Edit an appointment's procedures, time or details.

        Duration is recomputed from the new selection and the new span is
        validated with the appointment itself excluded from the busy set.

        Raises:
            NotFoundError: If the appointment or a procedure does not exist
            SlotUnavailableError: If the new span collides with another booking
        """
        day = parse_day(request.day)
        time = normalize_time(request.time)

        with self.appointments.booking_lock:
            existing = self.appointments.get_appointment(appointment_id)
            snapshots = snapshot_procedures(self.procedures.get_many(request.procedure_ids))
            _, duration = appointment_totals(snapshots)

            self._check_slot(day, time, duration, exclude_appointment_id=existing.id)

            appointment = self.appointments.update_appointment(
                existing.id,
                selected_procedures=snapshots,
                customer_name=request.customer_name,
                customer_phone=request.customer_phone,
                notes=request.notes,
                date=day,
                time=time,
                sinal_pago=request.sinal_pago,
                payment_method=request.payment_method,
            )
        logger.info("appointment_rescheduled", appointment_id=appointment.id, date=day.isoformat(), time=time)

        return self._finish(appointment, request.sync_to_calendar)

    def _finish(self, appointment: Appointment, sync: bool) -> BookingResult:
        result = BookingResult(appointment=appointment)
        if sync:
            result.calendar = self.sync_to_calendar(appointment)
            if not result.calendar.success:
                result.warnings.append(result.calendar.message)
        return result

    def sync_to_calendar(self, appointment: Appointment) -> CalendarSyncResult:
        """Copy a committed appointment to Google Calendar and remember the event id."""
        if self.calendar_sync is None:
            return CalendarSyncResult(success=False, message="Google Calendar sync is not enabled.")

        sync_result = self.calendar_sync.sync_appointment(appointment)
        if sync_result.success and sync_result.event_id:
            self.appointments.set_google_event_id(appointment.id, sync_result.event_id)
            appointment.google_event_id = sync_result.event_id
        return sync_result
