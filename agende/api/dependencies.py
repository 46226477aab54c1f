"""FastAPI dependency injection functions."""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.engine import Engine

from agende.appointments import AppointmentStore
from agende.auth import AdminAuthenticator, InvalidCredentialsError
from agende.booking import BookingService
from agende.customers import CustomerStore
from agende.database import get_engine
from agende.financial import FinancialEntryStore
from agende.google_calendar import CalendarSync
from agende.procedures import ProcedureStore
from agende.suggestions import SuggestionService


def get_db_engine() -> Engine:
    """Process-wide engine. Tests override this with an in-memory one."""
    return get_engine()


# Stores are cached per engine: table creation runs once, sessions are per call.

@lru_cache(maxsize=8)
def _procedure_store(engine: Engine) -> ProcedureStore:
    return ProcedureStore(engine)


@lru_cache(maxsize=8)
def _appointment_store(engine: Engine) -> AppointmentStore:
    return AppointmentStore(engine)


@lru_cache(maxsize=8)
def _customer_store(engine: Engine) -> CustomerStore:
    return CustomerStore(engine)


@lru_cache(maxsize=8)
def _financial_store(engine: Engine) -> FinancialEntryStore:
    return FinancialEntryStore(engine)


@lru_cache(maxsize=8)
def _authenticator(engine: Engine) -> AdminAuthenticator:
    return AdminAuthenticator(engine)


def get_procedure_store(engine: Engine = Depends(get_db_engine)) -> ProcedureStore:
    return _procedure_store(engine)


def get_appointment_store(engine: Engine = Depends(get_db_engine)) -> AppointmentStore:
    return _appointment_store(engine)


def get_customer_store(engine: Engine = Depends(get_db_engine)) -> CustomerStore:
    return _customer_store(engine)


def get_financial_store(engine: Engine = Depends(get_db_engine)) -> FinancialEntryStore:
    return _financial_store(engine)


def get_authenticator(engine: Engine = Depends(get_db_engine)) -> AdminAuthenticator:
    return _authenticator(engine)


@lru_cache(maxsize=1)
def get_calendar_sync() -> CalendarSync:
    """Shared CalendarSync so the circuit breaker state survives across requests."""
    return CalendarSync()


@lru_cache(maxsize=1)
def get_suggestion_service() -> SuggestionService:
    return SuggestionService()


def get_booking_service(
    procedures: ProcedureStore = Depends(get_procedure_store),
    appointments: AppointmentStore = Depends(get_appointment_store),
    calendar_sync: CalendarSync = Depends(get_calendar_sync)
) -> BookingService:
    return BookingService(procedures, appointments, calendar_sync)


async def require_admin(
    x_session_token: Optional[str] = Header(None, description="Session token from /auth/login"),
    authenticator: AdminAuthenticator = Depends(get_authenticator)
) -> str:
    """
    FastAPI dependency for admin-only routes.

    Validates the X-Session-Token header and returns the username.

    Raises:
        HTTPException 401: If the token is missing, invalid or expired
    """
    try:
        return authenticator.validate_token(x_session_token or "")
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Session"}
        )
