"""AI scheduling assistant.

Two prompt flows over ChatOpenAI with structured output:
- optimize_schedule: suggested appointment times + recommended procedures
- suggest_procedure: procedures a client may like + reasoning

Independent of the slot engine; suggestions are advisory text only.
"""
import logging
from typing import Iterable, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, Field

from agende import config
from agende.input_sanitizer import InputSanitizer
from agende.models import Appointment

logger = logging.getLogger(__name__)


class SuggestionServiceError(Exception):
    """Raised when the language model cannot produce a suggestion."""
    pass


class ScheduleSuggestion(BaseModel):
    suggested_appointment_times: str = Field(
        ...,
        description="Suggested optimal appointment times, minimizing wait times and maximizing efficiency."
    )
    recommended_procedures: str = Field(
        ...,
        description="Recommended procedures for each customer based on past booking data and preferences."
    )


class ProcedureSuggestion(BaseModel):
    suggested_procedures: str = Field(
        ...,
        description="Procedures suggested from the past appointments and preferences."
    )
    reasoning: str = Field(
        ...,
        description="How the suggestions relate to the past appointments and preferences."
    )


SCHEDULE_SYSTEM_PROMPT = """You are an AI scheduling assistant designed to optimize appointment times and recommend procedures for a beauty salon.

Analyze the past booking data and customer preferences to suggest optimal appointment times and recommend relevant procedures for each customer.

Provide suggested appointment times that minimize wait times and maximize efficiency for the service provider, and recommend procedures tailored to each customer's preferences. Answer in plain text."""

PROCEDURE_SYSTEM_PROMPT = """You are a beauty consultant who suggests relevant procedures to clients based on their past appointments and preferences.

Suggest procedures the client might be interested in, and explain your reasoning."""


def format_booking_history(appointments: Iterable[Appointment]) -> str:
    """One line per appointment: date, time, procedures, duration, status."""
    lines = []
    for appointment in sorted(appointments, key=lambda a: (a.date, a.time)):
        lines.append(
            f"{appointment.date.isoformat()} {appointment.time} - "
            f"{appointment.procedure_names} ({appointment.total_duration} min) "
            f"[{appointment.status.value}] cliente: {appointment.customer_name}"
        )
    return "\n".join(lines)


class SuggestionService:
    """
    Usage:
        service = SuggestionService()
        result = service.optimize_schedule(history_text, "prefers mornings")
    """

    def __init__(self, llm: Optional[ChatOpenAI] = None):
        self._llm = llm

    @property
    def llm(self) -> ChatOpenAI:
        if self._llm is None:
            if not config.OPENAI_API_KEY:
                raise SuggestionServiceError("OPENAI_API_KEY is not configured")
            self._llm = ChatOpenAI(
                model=config.SUGGESTION_MODEL,
                temperature=0.2,
                timeout=15,
                api_key=config.OPENAI_API_KEY,
            )
        return self._llm

    def _ask(self, schema, system_prompt: str, human_prompt: str):
        structured_llm = self.llm.with_structured_output(schema)
        try:
            result = structured_llm.invoke([
                SystemMessage(content=system_prompt),
                HumanMessage(content=human_prompt),
            ])
        except Exception as e:
            logger.error("Suggestion request failed: %s", e)
            raise SuggestionServiceError(f"AI suggestion failed: {e}") from e

        if result is None:
            raise SuggestionServiceError("AI suggestion returned no output")
        return result

    def optimize_schedule(self, past_booking_data: str, customer_preferences: str) -> ScheduleSuggestion:
        booking_data = InputSanitizer.sanitize_text(past_booking_data)
        preferences = InputSanitizer.sanitize_text(customer_preferences)
        if not booking_data:
            raise ValueError("past_booking_data cannot be empty")

        return self._ask(
            ScheduleSuggestion,
            SCHEDULE_SYSTEM_PROMPT,
            f"Past Booking Data:\n{booking_data}\n\nCustomer Preferences:\n{preferences or 'None'}"
        )

    def suggest_procedure(self, past_appointments: str, preferences: str) -> ProcedureSuggestion:
        appointments_text = InputSanitizer.sanitize_text(past_appointments)
        preferences_text = InputSanitizer.sanitize_text(preferences)
        if not appointments_text and not preferences_text:
            raise ValueError("Provide past appointments or preferences")

        return self._ask(
            ProcedureSuggestion,
            PROCEDURE_SYSTEM_PROMPT,
            f"Past Appointments:\n{appointments_text or 'None'}\n\nPreferences:\n{preferences_text or 'None'}"
        )
