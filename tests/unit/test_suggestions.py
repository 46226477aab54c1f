"""Test the AI suggestion flows with a mocked language model."""
from unittest.mock import MagicMock

import pytest

from agende import config
from agende.models import AppointmentStatus
from agende.suggestions import (
    ProcedureSuggestion,
    ScheduleSuggestion,
    SuggestionService,
    SuggestionServiceError,
    format_booking_history,
)


def mock_llm(result=None, error=None):
    """LLM whose structured-output runnable returns `result` or raises `error`."""
    llm = MagicMock()
    structured = llm.with_structured_output.return_value
    if error is not None:
        structured.invoke.side_effect = error
    else:
        structured.invoke.return_value = result
    return llm


def prompt_text(llm) -> str:
    messages = llm.with_structured_output.return_value.invoke.call_args.args[0]
    return "\n".join(m.content for m in messages)


def test_optimize_schedule_returns_structured_output():
    expected = ScheduleSuggestion(
        suggested_appointment_times="Terças às 09:00",
        recommended_procedures="Design de sobrancelhas",
    )
    llm = mock_llm(expected)

    result = SuggestionService(llm=llm).optimize_schedule("2024-05-10 09:00 - Design", "prefere manhãs")

    assert result == expected
    llm.with_structured_output.assert_called_once_with(ScheduleSuggestion)
    assert "prefere manhãs" in prompt_text(llm)


def test_suggest_procedure_sanitizes_inputs():
    llm = mock_llm(ProcedureSuggestion(suggested_procedures="Maquiagem", reasoning="Eventos frequentes"))

    SuggestionService(llm=llm).suggest_procedure(
        "Maquiagem <script>alert(1)</script>em março",
        "<b>gosta</b> de tons neutros"
    )

    text = prompt_text(llm)
    assert "<script>" not in text
    assert "<b>" not in text
    assert "gosta de tons neutros" in text


def test_llm_failure_raises_service_error():
    llm = mock_llm(error=RuntimeError("rate limited"))

    with pytest.raises(SuggestionServiceError):
        SuggestionService(llm=llm).optimize_schedule("history", "")


def test_empty_output_raises_service_error():
    llm = mock_llm(result=None)

    with pytest.raises(SuggestionServiceError):
        SuggestionService(llm=llm).suggest_procedure("history", "")


def test_empty_inputs_rejected():
    service = SuggestionService(llm=mock_llm())

    with pytest.raises(ValueError):
        service.optimize_schedule("   ", "manhãs")
    with pytest.raises(ValueError):
        service.suggest_procedure("", "")


def test_missing_api_key(monkeypatch):
    monkeypatch.setattr(config, "OPENAI_API_KEY", None)

    with pytest.raises(SuggestionServiceError):
        SuggestionService().optimize_schedule("history", "")


def test_format_booking_history_is_chronological(make_appointment):
    appointments = [
        make_appointment("15:00", 30, appointment_id="b", status=AppointmentStatus.ATTENDED),
        make_appointment("09:00", 60, appointment_id="a"),
    ]

    lines = format_booking_history(appointments).splitlines()

    assert lines[0].startswith("2024-05-10 09:00 - Maquiagem Social (60 min) [CONFIRMED]")
    assert "[ATTENDED]" in lines[1]
