"""Shared test fixtures."""
import os

# Settings are read at import time, so they must be in place before agende loads.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "s3cret-pass")
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from datetime import date

import pytest

from agende import config
from agende.appointments import AppointmentStore
from agende.customers import CustomerStore
from agende.database import create_db_engine
from agende.financial import FinancialEntryStore
from agende.models import Appointment, AppointmentStatus, ProcedureSnapshot
from agende.procedures import ProcedureStore

BOOKING_DAY = date(2024, 5, 10)


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    db_engine = create_db_engine("sqlite:///:memory:")
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def procedure_store(engine):
    return ProcedureStore(engine)


@pytest.fixture
def appointment_store(engine):
    return AppointmentStore(engine)


@pytest.fixture
def customer_store(engine):
    return CustomerStore(engine)


@pytest.fixture
def financial_store(engine):
    return FinancialEntryStore(engine)


@pytest.fixture(autouse=True)
def google_token_path(tmp_path, monkeypatch):
    """Keep Google tokens out of the working tree."""
    path = tmp_path / "google_calendar.json"
    monkeypatch.setattr(config, "GOOGLE_TOKEN_PATH", str(path))
    return path


@pytest.fixture
def make_appointment():
    """Build an Appointment model without touching a store."""
    def _create(
        time: str = "09:00",
        duration: int = 60,
        day: date = BOOKING_DAY,
        status: AppointmentStatus = AppointmentStatus.CONFIRMED,
        appointment_id: str = "appt-1",
        price: float = 90.0,
        customer_name: str = "Maria Silva"
    ) -> Appointment:
        return Appointment(
            id=appointment_id,
            selected_procedures=[
                ProcedureSnapshot(id="proc-1", name="Maquiagem Social", duration=duration, price=price)
            ],
            total_price=price,
            total_duration=duration,
            customer_name=customer_name,
            date=day,
            time=time,
            status=status,
        )
    return _create
