"""Pydantic models for API request/response validation."""
import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agende.models import (
    Appointment,
    AppointmentStatus,
    FinancialEntryType,
    ManualFinancialEntry,
    normalize_time,
)


class ErrorResponse(BaseModel):
    """Error response schema."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Detailed error information")
    code: Optional[str] = Field(None, description="Error code")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Slot Unavailable",
                "detail": "09:30 on 2024-05-10 is not available for a 60-minute appointment",
                "code": "SLOT_UNAVAILABLE"
            }
        }
    )


# Auth

class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=200)


class LoginResponse(BaseModel):
    token: str = Field(..., description="Session token, send as X-Session-Token")
    username: str


class MeResponse(BaseModel):
    username: str


# Procedures

class ProcedureCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    duration: int = Field(..., gt=0, le=24 * 60, description="Minutes")
    price: float = Field(..., gt=0)
    description: str = Field("", max_length=2000)
    is_promo: bool = False
    promo_price: Optional[float] = Field(None, gt=0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Maquiagem Social",
                "duration": 60,
                "price": 90.0,
                "description": "Maquiagem profissional para eventos.",
                "is_promo": False
            }
        }
    )


class ProcedureUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    duration: Optional[int] = Field(None, gt=0, le=24 * 60)
    price: Optional[float] = Field(None, gt=0)
    description: Optional[str] = Field(None, max_length=2000)
    is_promo: Optional[bool] = None
    promo_price: Optional[float] = Field(None, gt=0)


# Customers

class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=2000)
    tags: List[str] = Field(default_factory=list, description="Tag display names")


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=2000)
    tags: Optional[List[str]] = Field(None, description="Replaces all tags when given")


# Appointments

class AppointmentRequest(BaseModel):
    """Body for booking and for editing an appointment."""
    procedure_ids: List[str] = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_phone: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=2000)
    date: dt.date
    time: str = Field(..., description="Start time, HH:MM (24h)")
    sinal_pago: bool = False
    payment_method: Optional[str] = Field(None, max_length=50)
    sync_to_calendar: bool = False

    @field_validator("time")
    @classmethod
    def _valid_time(cls, value: str) -> str:
        return normalize_time(value)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "procedure_ids": ["3f2a9c0e5b7d4e1f8a6c2b9d0e4f7a1c"],
                "customer_name": "Maria Silva",
                "customer_phone": "(11) 99999-0000",
                "date": "2024-05-10",
                "time": "09:00",
                "sinal_pago": True,
                "sync_to_calendar": True
            }
        }
    )


class StatusUpdate(BaseModel):
    status: AppointmentStatus


class CalendarSyncInfo(BaseModel):
    success: bool
    message: str
    link: Optional[str] = None
    event_id: Optional[str] = None


class AppointmentResponse(BaseModel):
    appointment: Appointment
    calendar: Optional[CalendarSyncInfo] = None
    warnings: List[str] = Field(default_factory=list)


class SlotsResponse(BaseModel):
    day: dt.date
    duration: int = Field(..., description="Total minutes of the selection")
    slots: List[str]


# Financial

class FinancialEntryCreate(BaseModel):
    type: FinancialEntryType
    description: str = Field("", max_length=500)
    amount: float = Field(..., gt=0)
    date: dt.date


# Reports

class DashboardResponse(BaseModel):
    year: int
    month: int
    attended: int
    cancelled: int
    confirmed: int
    total_booked: int


class FinancialSummaryResponse(BaseModel):
    year: int
    month: int
    appointment_revenue: float
    manual_income: float
    manual_expenses: float
    net_total: float
    attended_appointments: List[Appointment]
    entries: List[ManualFinancialEntry]


# Calendar

class CalendarStatusResponse(BaseModel):
    configured: bool = Field(..., description="OAuth client settings present")
    connected: bool = Field(..., description="A Google account is connected")


# Suggestions

class ScheduleSuggestionRequest(BaseModel):
    past_booking_data: Optional[str] = Field(
        None,
        max_length=10000,
        description="Free-text booking history. Built from stored appointments when omitted."
    )
    customer_preferences: str = Field("", max_length=2000)


class ProcedureSuggestionRequest(BaseModel):
    past_appointments: str = Field("", max_length=10000)
    preferences: str = Field("", max_length=2000)
