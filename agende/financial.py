"""Manual financial entries (income and expenses outside of appointments)."""
import uuid
from datetime import date
from typing import List

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from agende.api.database_models import Base, FinancialEntryRow, utc_now
from agende.appointments import month_bounds
from agende.database import store_operation
from agende.logging_config import get_logger
from agende.models import FinancialEntryType, ManualFinancialEntry

logger = get_logger(__name__)


def _to_model(row: FinancialEntryRow) -> ManualFinancialEntry:
    return ManualFinancialEntry(
        id=row.id,
        type=FinancialEntryType(row.type),
        description=row.description or "",
        amount=row.amount,
        date=row.date,
        created_at=row.created_at,
    )


class FinancialEntryStore:
    """Ledger of manual entries, queried one month at a time."""

    def __init__(self, engine: Engine):
        self.engine = engine
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def list_for_month(self, year: int, month: int) -> List[ManualFinancialEntry]:
        start, end = month_bounds(year, month)
        with store_operation("fetching financial entries"), self.SessionLocal() as db:
            rows = (
                db.query(FinancialEntryRow)
                .filter(FinancialEntryRow.date >= start, FinancialEntryRow.date <= end)
                .order_by(FinancialEntryRow.date, FinancialEntryRow.created_at)
                .all()
            )
            return [_to_model(row) for row in rows]

    def add_entry(
        self,
        entry_type: FinancialEntryType,
        amount: float,
        day: date,
        description: str = ""
    ) -> ManualFinancialEntry:
        entry = ManualFinancialEntry(
            id=uuid.uuid4().hex,
            type=entry_type,
            description=description,
            amount=amount,
            date=day,
            created_at=utc_now(),
        )
        with store_operation("adding financial entry"), self.SessionLocal() as db:
            db.add(FinancialEntryRow(
                id=entry.id,
                type=entry.type.value,
                description=entry.description,
                amount=entry.amount,
                date=entry.date.isoformat(),
                created_at=entry.created_at,
            ))
            db.commit()

        logger.info("financial_entry_added", entry_id=entry.id, type=entry.type.value, amount=entry.amount)
        return entry

    def delete_entry(self, entry_id: str) -> bool:
        with store_operation("deleting financial entry"), self.SessionLocal() as db:
            deleted = db.query(FinancialEntryRow).filter(FinancialEntryRow.id == entry_id).delete()
            db.commit()
        return deleted > 0
