"""Test domain models and helpers."""
from datetime import date

import pytest
from pydantic import ValidationError

from agende.models import (
    Appointment,
    AppointmentStatus,
    Procedure,
    ProcedureSnapshot,
    appointment_totals,
    can_transition,
    normalize_time,
    snapshot_procedures,
)


class TestProcedure:

    def test_effective_price_uses_active_promotion(self):
        procedure = Procedure(id="p", name="Design", duration=30, price=25.0, is_promo=True, promo_price=19.9)

        assert procedure.effective_price == 19.9

    def test_promo_price_dropped_when_not_on_promotion(self):
        procedure = Procedure(id="p", name="Design", duration=30, price=25.0, is_promo=False, promo_price=19.9)

        assert procedure.promo_price is None
        assert procedure.effective_price == 25.0

    @pytest.mark.parametrize("field,value", [("duration", 0), ("price", 0), ("price", -5)])
    def test_rejects_non_positive_values(self, field, value):
        data = {"id": "p", "name": "Design", "duration": 30, "price": 25.0, field: value}

        with pytest.raises(ValidationError):
            Procedure(**data)


class TestStatusTransitions:

    def test_confirmed_can_become_attended_or_cancelled(self):
        assert can_transition(AppointmentStatus.CONFIRMED, AppointmentStatus.ATTENDED)
        assert can_transition(AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED)

    @pytest.mark.parametrize("terminal", [AppointmentStatus.ATTENDED, AppointmentStatus.CANCELLED])
    def test_terminal_states_have_no_exits(self, terminal):
        for target in AppointmentStatus:
            assert not can_transition(terminal, target)


class TestAppointment:

    def test_time_is_normalized(self):
        appointment = Appointment(
            id="a",
            selected_procedures=[ProcedureSnapshot(id="p", name="Design", duration=30, price=25)],
            total_price=25,
            total_duration=30,
            customer_name="Ana",
            date=date(2024, 5, 10),
            time="9:05:00",
        )

        assert appointment.time == "09:05"
        assert appointment.status == AppointmentStatus.CONFIRMED

    def test_requires_at_least_one_procedure(self):
        with pytest.raises(ValidationError):
            Appointment(
                id="a",
                selected_procedures=[],
                total_price=0,
                total_duration=0,
                customer_name="Ana",
                date=date(2024, 5, 10),
                time="09:00",
            )

    def test_invalid_time_rejected(self):
        with pytest.raises(ValueError):
            normalize_time("25:00")


def test_snapshot_uses_effective_price_and_totals_add_up():
    procedures = [
        Procedure(id="a", name="Design", duration=30, price=25.0),
        Procedure(id="b", name="Maquiagem", duration=60, price=90.0, is_promo=True, promo_price=70.0),
    ]

    snapshots = snapshot_procedures(procedures)

    assert [s.price for s in snapshots] == [25.0, 70.0]
    assert appointment_totals(snapshots) == (95.0, 90)
