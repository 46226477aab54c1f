"""Domain records for procedures, appointments, customers and ledger entries.

Pydantic models double as the shape the stores return and the shape the API
serializes. Dates are plain calendar dates and times are "HH:MM" wall-clock
strings; nothing here carries a timezone.
"""
import datetime as dt
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator


class AppointmentStatus(str, Enum):
    """Appointment lifecycle states."""
    CONFIRMED = "CONFIRMED"
    ATTENDED = "ATTENDED"
    CANCELLED = "CANCELLED"


# CONFIRMED is the only state with outgoing transitions.
VALID_STATUS_TRANSITIONS = {
    AppointmentStatus.CONFIRMED: {AppointmentStatus.ATTENDED, AppointmentStatus.CANCELLED},
    AppointmentStatus.ATTENDED: set(),
    AppointmentStatus.CANCELLED: set(),
}

# Statuses whose appointments occupy their time slot.
BLOCKING_STATUSES = frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.ATTENDED})


def can_transition(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    """Check whether an appointment may move from `current` to `new`."""
    return new in VALID_STATUS_TRANSITIONS[current]


class FinancialEntryType(str, Enum):
    """Direction of a manual ledger entry."""
    INCOME = "income"
    EXPENSE = "expense"


def normalize_time(value: str) -> str:
    """Validate an "HH:MM" (or "HH:MM:SS") string and return it as "HH:MM"."""
    try:
        parts = value.strip().split(":")
        parsed = dt.time(int(parts[0]), int(parts[1]))
    except (AttributeError, IndexError, ValueError):
        raise ValueError(f"Invalid time '{value}'. Expected HH:MM (24h).")
    return parsed.strftime("%H:%M")


class Procedure(BaseModel):
    """A bookable service in the catalog."""
    id: str
    name: str = Field(..., min_length=1, max_length=200)
    duration: int = Field(..., gt=0, le=24 * 60, description="Duration in minutes")
    price: float = Field(..., gt=0)
    description: str = ""
    is_promo: bool = False
    promo_price: Optional[float] = Field(None, gt=0)

    @model_validator(mode="after")
    def _drop_inactive_promo_price(self):
        if not self.is_promo:
            self.promo_price = None
        return self

    @property
    def effective_price(self) -> float:
        """Promotional price while a promotion is active, otherwise the regular price."""
        if self.is_promo and self.promo_price is not None:
            return self.promo_price
        return self.price


class ProcedureSnapshot(BaseModel):
    """Copy of a procedure stored inside an appointment at booking time."""
    id: str
    name: str
    duration: int = Field(..., ge=0)
    price: float = Field(..., ge=0)


class Tag(BaseModel):
    """Customer tag. The id is derived from the name (see agende.tags)."""
    id: str
    name: str


class Customer(BaseModel):
    """A salon customer."""
    id: str
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = None
    notes: Optional[str] = None
    tags: List[Tag] = Field(default_factory=list)


class Appointment(BaseModel):
    """A booked appointment with its denormalized procedure snapshots."""
    id: str
    selected_procedures: List[ProcedureSnapshot] = Field(..., min_length=1)
    total_price: float = Field(..., ge=0)
    total_duration: int = Field(..., ge=0)
    customer_name: str = Field(..., min_length=1)
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    date: dt.date
    time: str
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    sinal_pago: bool = False
    payment_method: Optional[str] = None
    google_event_id: Optional[str] = None

    @field_validator("time")
    @classmethod
    def _normalize_time(cls, value: str) -> str:
        return normalize_time(value)

    @property
    def procedure_names(self) -> str:
        return ", ".join(p.name for p in self.selected_procedures)


class ManualFinancialEntry(BaseModel):
    """Income or expense recorded by hand, independent of appointments."""
    id: str
    type: FinancialEntryType
    description: str = ""
    amount: float = Field(..., gt=0)
    date: dt.date
    created_at: Optional[dt.datetime] = None


def snapshot_procedures(procedures: Iterable[Procedure]) -> List[ProcedureSnapshot]:
    """Freeze the current name, duration and effective price of each procedure."""
    return [
        ProcedureSnapshot(
            id=procedure.id,
            name=procedure.name,
            duration=procedure.duration,
            price=procedure.effective_price,
        )
        for procedure in procedures
    ]


def appointment_totals(snapshots: Iterable[ProcedureSnapshot]) -> Tuple[float, int]:
    """Return (total_price, total_duration) for a procedure selection."""
    snapshots = list(snapshots)
    total_price = round(sum(s.price for s in snapshots), 2)
    total_duration = sum(s.duration for s in snapshots)
    return total_price, total_duration
