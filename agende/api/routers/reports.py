"""Dashboard, monthly financial summary and CSV export."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from agende.api.dependencies import get_appointment_store, get_financial_store, require_admin
from agende.api.models import DashboardResponse, FinancialSummaryResponse
from agende.appointments import AppointmentStore
from agende.financial import FinancialEntryStore
from agende.reports import appointments_to_csv, dashboard_metrics, monthly_financial_summary

router = APIRouter(
    prefix="/api/v1/reports",
    tags=["Reports"],
    dependencies=[Depends(require_admin)]
)


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    year: int = Query(..., ge=1900, le=9999),
    month: int = Query(..., ge=1, le=12),
    store: AppointmentStore = Depends(get_appointment_store)
):
    metrics = dashboard_metrics(store.list_for_month(year, month))
    return DashboardResponse(
        year=year,
        month=month,
        attended=metrics.attended,
        cancelled=metrics.cancelled,
        confirmed=metrics.confirmed,
        total_booked=metrics.total_booked,
    )


@router.get("/financial", response_model=FinancialSummaryResponse)
def financial_summary(
    year: int = Query(..., ge=1900, le=9999),
    month: int = Query(..., ge=1, le=12),
    appointments: AppointmentStore = Depends(get_appointment_store),
    entries: FinancialEntryStore = Depends(get_financial_store)
):
    summary = monthly_financial_summary(
        appointments.list_for_month(year, month),
        entries.list_for_month(year, month)
    )
    return FinancialSummaryResponse(
        year=year,
        month=month,
        appointment_revenue=summary.appointment_revenue,
        manual_income=summary.manual_income,
        manual_expenses=summary.manual_expenses,
        net_total=summary.net_total,
        attended_appointments=summary.attended_appointments,
        entries=summary.entries,
    )


@router.get("/appointments.csv")
def export_appointments(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    store: AppointmentStore = Depends(get_appointment_store)
):
    """CSV of one month (year and month given) or of every appointment."""
    if year is not None and month is not None:
        appointments = store.list_for_month(year, month)
        filename = f"agendamentos_{year}-{month:02d}.csv"
    else:
        appointments = store.list_appointments()
        filename = f"agendamentos_todos_{date.today().isoformat()}.csv"

    return Response(
        content=appointments_to_csv(appointments),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
