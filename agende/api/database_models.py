"""SQLAlchemy table definitions for the booking store."""
from datetime import datetime, UTC

import bcrypt
from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utc_now():
    """Get current UTC timestamp."""
    return datetime.now(UTC)


class ProcedureRow(Base):
    """Procedure catalog."""
    __tablename__ = "procedures"

    id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False, index=True)
    duration = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    description = Column(Text, nullable=False, default="")
    is_promo = Column(Boolean, nullable=False, default=False)
    promo_price = Column(Float, nullable=True)

    def __repr__(self):
        return f"<Procedure(id={self.id}, name={self.name})>"


class AppointmentRow(Base):
    """Appointments. Dates and times are stored as plain strings (YYYY-MM-DD, HH:MM)."""
    __tablename__ = "appointments"

    id = Column(String(64), primary_key=True)
    selected_procedures = Column(JSON, nullable=False, default=list)  # ProcedureSnapshot dicts
    total_price = Column(Float, nullable=False, default=0)
    total_duration = Column(Integer, nullable=False, default=0)
    customer_name = Column(String(200), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    date = Column(String(10), nullable=False, index=True)
    time = Column(String(5), nullable=False)
    status = Column(String(20), nullable=False, default="CONFIRMED", index=True)
    sinal_pago = Column(Boolean, nullable=False, default=False)
    payment_method = Column(String(50), nullable=True)
    google_event_id = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<Appointment(id={self.id}, date={self.date}, time={self.time}, status={self.status})>"


class CustomerRow(Base):
    """Customers with their tags embedded as JSON."""
    __tablename__ = "customers"

    id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)  # [{"id": ..., "name": ...}]

    def __repr__(self):
        return f"<Customer(id={self.id}, name={self.name})>"


class FinancialEntryRow(Base):
    """Manual income/expense ledger."""
    __tablename__ = "financial_entries"

    id = Column(String(64), primary_key=True)
    type = Column(String(10), nullable=False)
    description = Column(Text, nullable=False, default="")
    amount = Column(Float, nullable=False)
    date = Column(String(10), nullable=False, index=True)
    created_at = Column(DateTime, default=utc_now, nullable=True)

    def __repr__(self):
        return f"<FinancialEntry(id={self.id}, type={self.type}, amount={self.amount})>"


class AdminSession(Base):
    """Admin login sessions with bcrypt-hashed tokens."""
    __tablename__ = "admin_sessions"

    # First 16 chars of the token ("st_" + 13 hex chars) for O(1) lookup
    token_prefix = Column(String(20), primary_key=True, index=True)
    token_hash = Column(String(255), nullable=False)
    username = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    last_activity = Column(DateTime, default=utc_now, nullable=False, index=True)

    @staticmethod
    def hash_token(token: str) -> str:
        """Hash session token using bcrypt."""
        return bcrypt.hashpw(token.encode(), bcrypt.gensalt()).decode()

    @staticmethod
    def verify_token(token: str, token_hash: str) -> bool:
        """Verify session token against hash."""
        return bcrypt.checkpw(token.encode(), token_hash.encode())

    @staticmethod
    def get_token_prefix(token: str) -> str:
        """Get first 16 chars for indexing."""
        return token[:16]

    def __repr__(self):
        return f"<AdminSession(prefix={self.token_prefix}, user={self.username})>"
