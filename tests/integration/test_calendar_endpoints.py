"""Test Google Calendar connection endpoints."""
from unittest.mock import Mock
from urllib.parse import parse_qs, urlparse

import pytest

from agende import config, google_calendar


@pytest.fixture
def oauth_settings(monkeypatch):
    monkeypatch.setattr(config, "GOOGLE_CLIENT_ID", "client-id.apps.googleusercontent.com")
    monkeypatch.setattr(config, "GOOGLE_CLIENT_SECRET", "client-secret")
    monkeypatch.setattr(config, "GOOGLE_OAUTH_REDIRECT_URI", "http://localhost:8000/api/v1/calendar/google/callback")


def test_status_when_not_connected(client, auth_headers, monkeypatch):
    monkeypatch.setattr(config, "GOOGLE_CLIENT_ID", None)

    response = client.get("/api/v1/calendar/google/status", headers=auth_headers)

    assert response.json() == {"configured": False, "connected": False}


def test_login_redirects_to_google(client, auth_headers, oauth_settings):
    response = client.get("/api/v1/calendar/google/login", headers=auth_headers, follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"].startswith("https://accounts.google.com/")


def test_login_without_oauth_settings(client, auth_headers, monkeypatch):
    monkeypatch.setattr(config, "GOOGLE_CLIENT_ID", None)

    response = client.get("/api/v1/calendar/google/login", headers=auth_headers, follow_redirects=False)

    assert response.status_code == 500
    assert response.json()["code"] == "CALENDAR_NOT_CONFIGURED"


def test_callback_with_error_returns_to_integrations_page(client):
    response = client.get("/api/v1/calendar/google/callback?error=access_denied", follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == f"{config.APP_BASE_URL}/settings/integrations?error=access_denied"


def test_callback_without_code(client):
    response = client.get("/api/v1/calendar/google/callback", follow_redirects=False)

    assert "/settings/integrations?error=" in response.headers["location"]


def test_logout_forgets_token(client, auth_headers, google_token_path):
    google_token_path.write_text("{}")

    response = client.post("/api/v1/calendar/google/logout", headers=auth_headers)

    assert response.json()["connected"] is False
    assert not google_token_path.exists()


def start_login(client, auth_headers) -> str:
    response = client.get("/api/v1/calendar/google/login", headers=auth_headers, follow_redirects=False)
    return parse_qs(urlparse(response.headers["location"]).query)["state"][0]


def test_login_binds_state_to_browser(client, auth_headers, oauth_settings):
    response = client.get("/api/v1/calendar/google/login", headers=auth_headers, follow_redirects=False)

    state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]
    assert f"google_oauth_state={state}" in response.headers["set-cookie"]


def test_callback_with_matching_state_connects(client, auth_headers, oauth_settings, monkeypatch):
    exchange_code = Mock()
    monkeypatch.setattr(google_calendar, "exchange_code", exchange_code)
    state = start_login(client, auth_headers)

    response = client.get(f"/api/v1/calendar/google/callback?code=auth-code&state={state}", follow_redirects=False)

    assert response.headers["location"].endswith("/settings/integrations?success=true")
    exchange_code.assert_called_once_with("auth-code")


def test_callback_with_foreign_state_is_rejected(client, auth_headers, oauth_settings, monkeypatch):
    exchange_code = Mock()
    monkeypatch.setattr(google_calendar, "exchange_code", exchange_code)
    start_login(client, auth_headers)

    response = client.get("/api/v1/calendar/google/callback?code=auth-code&state=forged", follow_redirects=False)

    assert "/settings/integrations?error=" in response.headers["location"]
    exchange_code.assert_not_called()


def test_callback_without_login_is_rejected(client, oauth_settings, monkeypatch):
    exchange_code = Mock()
    monkeypatch.setattr(google_calendar, "exchange_code", exchange_code)

    response = client.get("/api/v1/calendar/google/callback?code=auth-code&state=anything", follow_redirects=False)

    assert "/settings/integrations?error=" in response.headers["location"]
    exchange_code.assert_not_called()
