"""AI scheduling assistant endpoints."""
from fastapi import APIRouter, Depends

from agende.api.dependencies import get_appointment_store, get_suggestion_service, require_admin
from agende.api.models import ProcedureSuggestionRequest, ScheduleSuggestionRequest
from agende.appointments import AppointmentStore
from agende.suggestions import (
    ProcedureSuggestion,
    ScheduleSuggestion,
    SuggestionService,
    format_booking_history,
)

router = APIRouter(
    prefix="/api/v1/suggestions",
    tags=["Suggestions"],
    dependencies=[Depends(require_admin)]
)


@router.post("/schedule", response_model=ScheduleSuggestion)
def optimize_schedule(
    request: ScheduleSuggestionRequest,
    service: SuggestionService = Depends(get_suggestion_service),
    store: AppointmentStore = Depends(get_appointment_store)
):
    """Suggested times and procedures. Uses the stored booking history when none is given."""
    history = request.past_booking_data
    if not history or not history.strip():
        history = format_booking_history(store.list_appointments())
    return service.optimize_schedule(history, request.customer_preferences)


@router.post("/procedures", response_model=ProcedureSuggestion)
def suggest_procedure(
    request: ProcedureSuggestionRequest,
    service: SuggestionService = Depends(get_suggestion_service)
):
    return service.suggest_procedure(request.past_appointments, request.preferences)
