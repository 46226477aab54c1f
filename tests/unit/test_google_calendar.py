"""Test Google Calendar event building, token storage and best-effort sync."""
import json
from unittest.mock import Mock

import httplib2
import pytest
from googleapiclient.errors import HttpError

from agende import config, google_calendar
from agende.circuit_breaker import CircuitBreaker
from agende.google_calendar import (
    CalendarConfigError,
    CalendarNotConnectedError,
    CalendarSync,
    build_event,
)


def http_error(status: int) -> HttpError:
    return HttpError(httplib2.Response({"status": status}), b'{"error": {"message": "boom"}}')


def fake_service(created=None, error=None):
    service = Mock()
    execute = service.events.return_value.insert.return_value.execute
    if error is not None:
        execute.side_effect = error
    else:
        execute.return_value = created or {"id": "evt-1", "htmlLink": "https://calendar.google.com/evt-1"}
    return service


@pytest.fixture
def oauth_settings(monkeypatch):
    monkeypatch.setattr(config, "GOOGLE_CLIENT_ID", "client-id.apps.googleusercontent.com")
    monkeypatch.setattr(config, "GOOGLE_CLIENT_SECRET", "client-secret")
    monkeypatch.setattr(config, "GOOGLE_OAUTH_REDIRECT_URI", "http://localhost:8000/api/v1/calendar/google/callback")


class TestBuildEvent:

    def test_event_spans_stored_duration_in_local_timezone(self, make_appointment):
        appointment = make_appointment("09:00", 90)

        event = build_event(appointment, "America/Sao_Paulo")

        assert event["start"] == {"dateTime": "2024-05-10T09:00:00-03:00", "timeZone": "America/Sao_Paulo"}
        assert event["end"]["dateTime"] == "2024-05-10T10:30:00-03:00"

    def test_summary_and_description(self, make_appointment):
        appointment = make_appointment()
        appointment.customer_phone = "(11) 99999-0000"

        event = build_event(appointment, "America/Sao_Paulo")

        assert event["summary"] == "Maquiagem Social - Maria Silva"
        assert "Telefone/Whatsapp: (11) 99999-0000" in event["description"]
        assert "Observações: Nenhuma" in event["description"]


class TestOAuth:

    def test_authorization_url_requests_offline_access(self, oauth_settings):
        url = google_calendar.authorization_url(state="xyz")

        assert url.startswith("https://accounts.google.com/o/oauth2/auth")
        assert "access_type=offline" in url
        assert "prompt=consent" in url
        assert "calendar.events" in url
        assert "state=xyz" in url

    def test_missing_oauth_settings(self, monkeypatch):
        monkeypatch.setattr(config, "GOOGLE_CLIENT_ID", None)

        assert google_calendar.oauth_configured() is False
        with pytest.raises(CalendarConfigError):
            google_calendar.authorization_url()


class TestTokenFile:

    def test_not_connected_without_token(self, google_token_path):
        assert google_calendar.is_connected() is False
        assert google_calendar.load_credentials() is None
        assert google_calendar.disconnect() is False

    def test_load_stored_credentials(self, google_token_path):
        google_token_path.write_text(json.dumps({
            "client_id": "id",
            "client_secret": "secret",
            "refresh_token": "refresh",
            "token": "access",
        }))

        credentials = google_calendar.load_credentials()

        assert credentials.token == "access"
        assert google_calendar.is_connected() is True

    def test_corrupt_token_file_is_discarded(self, google_token_path):
        google_token_path.write_text("not json")

        assert google_calendar.load_credentials() is None
        assert not google_token_path.exists()

    def test_disconnect_removes_token(self, google_token_path):
        google_token_path.write_text("{}")

        assert google_calendar.disconnect() is True
        assert not google_token_path.exists()


class TestCalendarSync:

    def test_successful_sync(self, make_appointment):
        service = fake_service()
        sync = CalendarSync(service_factory=lambda: service, calendar_id="primary", timezone="America/Sao_Paulo")

        result = sync.sync_appointment(make_appointment())

        assert result.success is True
        assert result.event_id == "evt-1"
        assert result.link == "https://calendar.google.com/evt-1"
        insert_kwargs = service.events.return_value.insert.call_args.kwargs
        assert insert_kwargs["calendarId"] == "primary"
        assert insert_kwargs["body"]["summary"] == "Maquiagem Social - Maria Silva"

    def test_not_connected_reports_failure(self, make_appointment):
        def not_connected():
            raise CalendarNotConnectedError("no token")

        result = CalendarSync(service_factory=not_connected).sync_appointment(make_appointment())

        assert result.success is False
        assert "não conectado" in result.message

    def test_default_factory_without_token_reports_failure(self, make_appointment):
        result = CalendarSync().sync_appointment(make_appointment())

        assert result.success is False

    def test_http_error_reports_failure(self, make_appointment):
        service = fake_service(error=http_error(403))
        sync = CalendarSync(service_factory=lambda: service)

        result = sync.sync_appointment(make_appointment())

        assert result.success is False
        assert "403" in result.message

    def test_network_timeout_reports_failure(self, make_appointment):
        service = fake_service(error=TimeoutError("timed out"))
        sync = CalendarSync(service_factory=lambda: service)

        result = sync.sync_appointment(make_appointment())

        assert result.success is False
        assert result.event_id is None

    def test_token_refresh_io_error_reports_failure(self, make_appointment):
        def unreachable():
            raise OSError("Network is unreachable")

        result = CalendarSync(service_factory=unreachable).sync_appointment(make_appointment())

        assert result.success is False
        assert "conectar" in result.message

    def test_open_circuit_skips_google(self, make_appointment):
        service = fake_service(error=http_error(403))
        breaker = CircuitBreaker("google_calendar", failure_threshold=1, reset_timeout=60)
        sync = CalendarSync(service_factory=lambda: service, breaker=breaker)

        sync.sync_appointment(make_appointment())
        result = sync.sync_appointment(make_appointment())

        assert result.success is False
        assert "indisponível" in result.message
        assert service.events.return_value.insert.return_value.execute.call_count == 1


@pytest.mark.parametrize("status,transient", [(429, True), (503, True), (400, False), (403, False)])
def test_only_throttling_and_server_errors_are_retried(status, transient):
    assert google_calendar._is_transient(http_error(status)) is transient
