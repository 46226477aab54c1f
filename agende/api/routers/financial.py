"""Manual financial entry endpoints."""
from typing import List

from fastapi import APIRouter, Depends, Query, status

from agende.api.dependencies import get_financial_store, require_admin
from agende.api.models import FinancialEntryCreate
from agende.database import NotFoundError
from agende.financial import FinancialEntryStore
from agende.models import ManualFinancialEntry

router = APIRouter(
    prefix="/api/v1/financial-entries",
    tags=["Financial"],
    dependencies=[Depends(require_admin)]
)


@router.get("", response_model=List[ManualFinancialEntry])
def list_entries(
    year: int = Query(..., ge=1900, le=9999),
    month: int = Query(..., ge=1, le=12),
    store: FinancialEntryStore = Depends(get_financial_store)
):
    return store.list_for_month(year, month)


@router.post("", response_model=ManualFinancialEntry, status_code=status.HTTP_201_CREATED)
def create_entry(request: FinancialEntryCreate, store: FinancialEntryStore = Depends(get_financial_store)):
    return store.add_entry(
        entry_type=request.type,
        amount=request.amount,
        day=request.date,
        description=request.description,
    )


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(entry_id: str, store: FinancialEntryStore = Depends(get_financial_store)):
    if not store.delete_entry(entry_id):
        raise NotFoundError("Financial entry", entry_id)
