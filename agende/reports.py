"""Monthly dashboard metrics, financial summary and CSV export.

All functions are pure: callers pass the month's appointments and entries.
"""
import csv
import io
from dataclasses import dataclass, field
from typing import Iterable, List

from agende.models import Appointment, AppointmentStatus, FinancialEntryType, ManualFinancialEntry

CSV_HEADER = [
    "ID",
    "Data",
    "Hora",
    "Nome Cliente",
    "Telefone Cliente",
    "Procedimentos",
    "Duracao Total (min)",
    "Preco Total (R$)",
    "Status",
    "Sinal Pago",
    "Observacoes",
]


@dataclass
class DashboardMetrics:
    attended: int
    cancelled: int
    confirmed: int
    total_booked: int


@dataclass
class FinancialSummary:
    """Attended revenue plus the manual ledger for one month."""
    appointment_revenue: float
    manual_income: float
    manual_expenses: float
    net_total: float
    attended_appointments: List[Appointment] = field(default_factory=list)
    entries: List[ManualFinancialEntry] = field(default_factory=list)


def dashboard_metrics(appointments: Iterable[Appointment]) -> DashboardMetrics:
    appointments = list(appointments)

    def count(status: AppointmentStatus) -> int:
        return sum(1 for a in appointments if a.status == status)

    return DashboardMetrics(
        attended=count(AppointmentStatus.ATTENDED),
        cancelled=count(AppointmentStatus.CANCELLED),
        confirmed=count(AppointmentStatus.CONFIRMED),
        total_booked=len(appointments),
    )


def monthly_financial_summary(
    appointments: Iterable[Appointment],
    entries: Iterable[ManualFinancialEntry]
) -> FinancialSummary:
    """
    Only ATTENDED appointments count as revenue. Net is
    revenue + manual income - manual expenses.
    """
    attended = sorted(
        (a for a in appointments if a.status == AppointmentStatus.ATTENDED),
        key=lambda a: (a.date, a.time)
    )
    entries = sorted(entries, key=lambda e: e.date)

    revenue = round(sum(a.total_price for a in attended), 2)
    income = round(sum(e.amount for e in entries if e.type == FinancialEntryType.INCOME), 2)
    expenses = round(sum(e.amount for e in entries if e.type == FinancialEntryType.EXPENSE), 2)

    return FinancialSummary(
        appointment_revenue=revenue,
        manual_income=income,
        manual_expenses=expenses,
        net_total=round(revenue + income - expenses, 2),
        attended_appointments=attended,
        entries=entries,
    )


def appointments_to_csv(appointments: Iterable[Appointment]) -> str:
    """CSV export; empty string when there is nothing to export."""
    appointments = list(appointments)
    if not appointments:
        return ""

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for appointment in appointments:
        writer.writerow([
            appointment.id,
            appointment.date.isoformat(),
            appointment.time,
            appointment.customer_name,
            appointment.customer_phone or "",
            appointment.procedure_names,
            appointment.total_duration,
            f"{appointment.total_price:.2f}",
            appointment.status.value,
            "Sim" if appointment.sinal_pago else "Nao",
            appointment.notes or "",
        ])
    return buffer.getvalue()
