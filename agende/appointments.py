"""Appointment store."""
import calendar
import threading
import uuid
from datetime import date
from typing import List, Optional, Sequence

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from agende.api.database_models import AppointmentRow, Base
from agende.database import NotFoundError, store_operation
from agende.logging_config import get_logger
from agende.models import (
    Appointment,
    AppointmentStatus,
    ProcedureSnapshot,
    appointment_totals,
    can_transition,
)

logger = get_logger(__name__)


class InvalidStatusTransition(Exception):
    """Raised when an appointment status change is not allowed."""

    def __init__(self, current: AppointmentStatus, new: AppointmentStatus):
        self.current = current
        self.new = new
        super().__init__(f"Cannot change appointment status from {current.value} to {new.value}")


def month_bounds(year: int, month: int) -> tuple[str, str]:
    """First and last day of a month as YYYY-MM-DD strings (month is 1-12)."""
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1).isoformat(), date(year, month, last_day).isoformat()


def _to_model(row: AppointmentRow) -> Appointment:
    return Appointment(
        id=row.id,
        selected_procedures=[ProcedureSnapshot(**p) for p in (row.selected_procedures or [])],
        total_price=row.total_price or 0,
        total_duration=row.total_duration or 0,
        customer_name=row.customer_name,
        customer_phone=row.customer_phone,
        notes=row.notes,
        date=row.date,
        time=row.time,
        status=AppointmentStatus(row.status),
        sinal_pago=bool(row.sinal_pago),
        payment_method=row.payment_method,
        google_event_id=row.google_event_id,
    )


def _apply(row: AppointmentRow, appointment: Appointment):
    row.selected_procedures = [p.model_dump() for p in appointment.selected_procedures]
    row.total_price = appointment.total_price
    row.total_duration = appointment.total_duration
    row.customer_name = appointment.customer_name
    row.customer_phone = appointment.customer_phone
    row.notes = appointment.notes
    row.date = appointment.date.isoformat()
    row.time = appointment.time
    row.status = appointment.status.value
    row.sinal_pago = appointment.sinal_pago
    row.payment_method = appointment.payment_method
    row.google_event_id = appointment.google_event_id


class AppointmentStore:
    """
    Persistence for appointments.

    Responsibilities:
    - Store the procedure snapshot and totals taken at booking time
    - Keep status changes within the allowed transitions
    - Serve day and month snapshots for availability and reports
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)
        # Held by BookingService across its slot check and write
        self.booking_lock = threading.Lock()

    def _query_sorted(self, db):
        return db.query(AppointmentRow).order_by(AppointmentRow.date, AppointmentRow.time)

    def list_appointments(self) -> List[Appointment]:
        with store_operation("fetching appointments"), self.SessionLocal() as db:
            return [_to_model(row) for row in self._query_sorted(db).all()]

    def list_for_day(self, day: date) -> List[Appointment]:
        with store_operation("fetching appointments by day"), self.SessionLocal() as db:
            rows = self._query_sorted(db).filter(AppointmentRow.date == day.isoformat()).all()
            return [_to_model(row) for row in rows]

    def list_for_month(self, year: int, month: int) -> List[Appointment]:
        """Appointments dated within the month (1-12), chronologically."""
        start, end = month_bounds(year, month)
        with store_operation("fetching appointments by month"), self.SessionLocal() as db:
            rows = self._query_sorted(db).filter(
                AppointmentRow.date >= start,
                AppointmentRow.date <= end
            ).all()
            return [_to_model(row) for row in rows]

    def get_appointment(self, appointment_id: str) -> Appointment:
        """
        Raises:
            NotFoundError: If the appointment does not exist
        """
        with store_operation("fetching appointment"), self.SessionLocal() as db:
            row = db.get(AppointmentRow, appointment_id)
            if row is None:
                raise NotFoundError("Appointment", appointment_id)
            return _to_model(row)

    def add_appointment(
        self,
        selected_procedures: Sequence[ProcedureSnapshot],
        customer_name: str,
        day: date,
        time: str,
        customer_phone: Optional[str] = None,
        notes: Optional[str] = None,
        sinal_pago: bool = False,
        payment_method: Optional[str] = None
    ) -> Appointment:
        """
        Store a new appointment with status CONFIRMED.

        Totals are computed here from the snapshots and never recomputed
        from the catalog afterwards.
        """
        total_price, total_duration = appointment_totals(selected_procedures)
        appointment = Appointment(
            id=uuid.uuid4().hex,
            selected_procedures=list(selected_procedures),
            total_price=total_price,
            total_duration=total_duration,
            customer_name=customer_name,
            customer_phone=customer_phone,
            notes=notes,
            date=day,
            time=time,
            status=AppointmentStatus.CONFIRMED,
            sinal_pago=sinal_pago,
            payment_method=payment_method,
        )

        with store_operation("adding appointment"), self.SessionLocal() as db:
            row = AppointmentRow(id=appointment.id)
            _apply(row, appointment)
            db.add(row)
            db.commit()

        logger.info(
            "appointment_added",
            appointment_id=appointment.id,
            date=appointment.date.isoformat(),
            time=appointment.time,
            total_duration=appointment.total_duration,
        )
        return appointment

    def update_appointment(
        self,
        appointment_id: str,
        selected_procedures: Optional[Sequence[ProcedureSnapshot]] = None,
        **changes
    ) -> Appointment:
        """
        Edit an appointment.

        When a new procedure selection is given, totals are recomputed from it.
        Status is not editable here; use update_status().

        Raises:
            NotFoundError: If the appointment does not exist
        """
        with store_operation("updating appointment"), self.SessionLocal() as db:
            row = db.get(AppointmentRow, appointment_id)
            if row is None:
                raise NotFoundError("Appointment", appointment_id)

            data = _to_model(row).model_dump()
            data.update({k: v for k, v in changes.items() if k not in ("id", "status")})
            if selected_procedures is not None:
                snapshots = list(selected_procedures)
                data["selected_procedures"] = [s.model_dump() for s in snapshots]
                data["total_price"], data["total_duration"] = appointment_totals(snapshots)

            appointment = Appointment(**data)
            _apply(row, appointment)
            db.commit()

        return appointment

    def update_status(self, appointment_id: str, new_status: AppointmentStatus) -> Appointment:
        """
        Move an appointment to ATTENDED or CANCELLED.

        Raises:
            NotFoundError: If the appointment does not exist
            InvalidStatusTransition: If the change is not allowed
        """
        with store_operation("updating appointment status"), self.SessionLocal() as db:
            row = db.get(AppointmentRow, appointment_id)
            if row is None:
                raise NotFoundError("Appointment", appointment_id)

            current = AppointmentStatus(row.status)
            if current == new_status:
                return _to_model(row)
            if not can_transition(current, new_status):
                raise InvalidStatusTransition(current, new_status)

            row.status = new_status.value
            db.commit()
            appointment = _to_model(row)

        logger.info("appointment_status_changed", appointment_id=appointment_id, status=new_status.value)
        return appointment

    def set_google_event_id(self, appointment_id: str, event_id: str):
        with store_operation("linking calendar event"), self.SessionLocal() as db:
            row = db.get(AppointmentRow, appointment_id)
            if row is None:
                raise NotFoundError("Appointment", appointment_id)
            row.google_event_id = event_id
            db.commit()

    def delete_appointment(self, appointment_id: str) -> bool:
        """Delete an appointment. Returns False if it did not exist."""
        with store_operation("deleting appointment"), self.SessionLocal() as db:
            deleted = db.query(AppointmentRow).filter(AppointmentRow.id == appointment_id).delete()
            db.commit()
        return deleted > 0
