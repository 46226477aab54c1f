"""Appointment endpoints: listing, slot lookup, booking, editing and status changes."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from agende.api.dependencies import get_appointment_store, get_booking_service, require_admin
from agende.api.models import (
    AppointmentRequest,
    AppointmentResponse,
    CalendarSyncInfo,
    SlotsResponse,
    StatusUpdate,
)
from agende.appointments import AppointmentStore
from agende.booking import BookingRequest, BookingResult, BookingService
from agende.database import NotFoundError
from agende.models import Appointment

router = APIRouter(
    prefix="/api/v1/appointments",
    tags=["Appointments"],
    dependencies=[Depends(require_admin)]
)


def _to_booking_request(request: AppointmentRequest) -> BookingRequest:
    return BookingRequest(
        procedure_ids=request.procedure_ids,
        customer_name=request.customer_name,
        day=request.date,
        time=request.time,
        customer_phone=request.customer_phone,
        notes=request.notes,
        sinal_pago=request.sinal_pago,
        payment_method=request.payment_method,
        sync_to_calendar=request.sync_to_calendar,
    )


def _to_response(result: BookingResult) -> AppointmentResponse:
    calendar = None
    if result.calendar is not None:
        calendar = CalendarSyncInfo(
            success=result.calendar.success,
            message=result.calendar.message,
            link=result.calendar.link,
            event_id=result.calendar.event_id,
        )
    return AppointmentResponse(
        appointment=result.appointment,
        calendar=calendar,
        warnings=result.warnings,
    )


@router.get("", response_model=List[Appointment])
def list_appointments(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    store: AppointmentStore = Depends(get_appointment_store)
):
    """All appointments, or one month's when both year and month (1-12) are given."""
    if year is not None and month is not None:
        return store.list_for_month(year, month)
    return store.list_appointments()


@router.get("/slots", response_model=SlotsResponse)
def available_slots(
    day: date,
    procedure_ids: List[str] = Query([]),
    exclude_appointment_id: Optional[str] = None,
    service: BookingService = Depends(get_booking_service)
):
    """
    Bookable start times for a day and procedure selection.

    Pass exclude_appointment_id while editing so the appointment's own slot stays offered.
    """
    duration = service.duration_for(procedure_ids)
    slots = service.available_slots(day, procedure_ids, exclude_appointment_id)
    return SlotsResponse(day=day, duration=duration, slots=slots)


@router.get("/{appointment_id}", response_model=Appointment)
def get_appointment(appointment_id: str, store: AppointmentStore = Depends(get_appointment_store)):
    return store.get_appointment(appointment_id)


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    request: AppointmentRequest,
    service: BookingService = Depends(get_booking_service)
):
    """
    Book an appointment (409 when the time is not an available slot).

    Calendar sync runs after the booking is stored; its failure is reported
    in `calendar` and `warnings` without undoing the booking.
    """
    return _to_response(service.book(_to_booking_request(request)))


@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: str,
    request: AppointmentRequest,
    service: BookingService = Depends(get_booking_service)
):
    return _to_response(service.reschedule(appointment_id, _to_booking_request(request)))


@router.patch("/{appointment_id}/status", response_model=Appointment)
def update_status(
    appointment_id: str,
    request: StatusUpdate,
    store: AppointmentStore = Depends(get_appointment_store)
):
    return store.update_status(appointment_id, request.status)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(appointment_id: str, store: AppointmentStore = Depends(get_appointment_store)):
    if not store.delete_appointment(appointment_id):
        raise NotFoundError("Appointment", appointment_id)
