"""Google Calendar integration.

The salon connects one Google account through the OAuth web flow. Its
credentials are kept in a token file; every booking is then copied to that
calendar on a best-effort basis: a calendar failure is reported back to the
caller but never undoes the booking.
"""
import json
import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

import pytz
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from agende import config
from agende.availability import wall_clock
from agende.circuit_breaker import CircuitBreaker, CircuitBreakerOpen
from agende.models import Appointment

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.events"]
GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

TRANSIENT_STATUS_CODES = {429, 500, 502, 503, 504}


class CalendarConfigError(Exception):
    """Raised when the OAuth client id/secret/redirect are not configured."""
    pass


class CalendarNotConnectedError(Exception):
    """Raised when no Google account is connected."""
    pass


@dataclass
class CalendarSyncResult:
    """Outcome of copying one appointment to Google Calendar."""
    success: bool
    message: str
    link: Optional[str] = None
    event_id: Optional[str] = None


# ---------------------------------------------------------------------------
# OAuth
# ---------------------------------------------------------------------------

def oauth_configured() -> bool:
    return bool(
        config.GOOGLE_CLIENT_ID
        and config.GOOGLE_CLIENT_SECRET
        and config.GOOGLE_OAUTH_REDIRECT_URI
    )


def build_flow(state: Optional[str] = None) -> Flow:
    """
    Build the OAuth web flow from environment settings.

    Raises:
        CalendarConfigError: If the OAuth client is not configured
    """
    if not oauth_configured():
        raise CalendarConfigError("Google OAuth environment variables not set")

    client_config = {
        "web": {
            "client_id": config.GOOGLE_CLIENT_ID,
            "client_secret": config.GOOGLE_CLIENT_SECRET,
            "auth_uri": GOOGLE_AUTH_URI,
            "token_uri": GOOGLE_TOKEN_URI,
            "redirect_uris": [config.GOOGLE_OAUTH_REDIRECT_URI],
        }
    }
    return Flow.from_client_config(
        client_config,
        scopes=SCOPES,
        state=state,
        redirect_uri=config.GOOGLE_OAUTH_REDIRECT_URI,
        # The callback builds a fresh flow, so no PKCE verifier survives the redirect
        autogenerate_code_verifier=False,
    )


def authorization_url(state: Optional[str] = None) -> str:
    """Consent URL requesting offline access, so a refresh token is issued."""
    url, _ = build_flow(state).authorization_url(
        access_type="offline",
        prompt="consent",
        include_granted_scopes="true",
    )
    return url


def exchange_code(code: str, token_path: Optional[str] = None) -> Credentials:
    """Trade the callback code for credentials and persist them."""
    flow = build_flow()
    flow.fetch_token(code=code)
    credentials = flow.credentials
    save_credentials(credentials, token_path)
    logger.info("Google Calendar connected")
    return credentials


# ---------------------------------------------------------------------------
# Token file
# ---------------------------------------------------------------------------

def _token_path(token_path: Optional[str]) -> str:
    return token_path or config.GOOGLE_TOKEN_PATH


def save_credentials(credentials: Credentials, token_path: Optional[str] = None):
    path = _token_path(token_path)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(credentials.to_json())


def load_credentials(token_path: Optional[str] = None) -> Optional[Credentials]:
    """
    Load stored credentials, refreshing them when expired.

    Returns None when nothing usable is stored. A corrupt token file is
    removed so the next login starts clean.
    """
    path = _token_path(token_path)
    if not os.path.exists(path) or os.path.getsize(path) == 0:
        return None

    try:
        credentials = Credentials.from_authorized_user_file(path, SCOPES)
    except (ValueError, json.JSONDecodeError) as e:
        logger.warning("Discarding unreadable Google token file %s: %s", path, e)
        os.remove(path)
        return None

    if credentials.expired and credentials.refresh_token:
        credentials.refresh(Request())
        save_credentials(credentials, path)

    return credentials


def is_connected(token_path: Optional[str] = None) -> bool:
    path = _token_path(token_path)
    return os.path.exists(path) and os.path.getsize(path) > 0


def disconnect(token_path: Optional[str] = None) -> bool:
    """Forget the connected account. Returns False if none was connected."""
    path = _token_path(token_path)
    if not os.path.exists(path):
        return False
    os.remove(path)
    logger.info("Google Calendar disconnected")
    return True


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

def build_event(appointment: Appointment, timezone: Optional[str] = None) -> Dict[str, Any]:
    """Calendar event body for an appointment, spanning its stored duration."""
    tz_name = timezone or config.TIMEZONE
    tz = pytz.timezone(tz_name)

    start = wall_clock(appointment.date, appointment.time)
    end = start + timedelta(minutes=appointment.total_duration)

    procedures = appointment.procedure_names
    description = (
        f"Cliente: {appointment.customer_name}\n"
        f"Telefone/Whatsapp: {appointment.customer_phone or 'Não informado'}\n"
        f"Procedimentos: {procedures}\n\n"
        f"Observações: {appointment.notes or 'Nenhuma'}"
    )

    return {
        "summary": f"{procedures} - {appointment.customer_name}",
        "description": description,
        "start": {"dateTime": tz.localize(start).isoformat(), "timeZone": tz_name},
        "end": {"dateTime": tz.localize(end).isoformat(), "timeZone": tz_name},
    }


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, HttpError) and error.resp.status in TRANSIENT_STATUS_CODES


def _default_service():
    credentials = load_credentials()
    if credentials is None:
        raise CalendarNotConnectedError("Google Calendar is not connected")
    return build("calendar", "v3", credentials=credentials, cache_discovery=False)


class CalendarSync:
    """
    Copies appointments to the connected calendar.

    Insert calls retry transient HTTP errors and run behind a circuit breaker
    so a Google outage does not slow down every booking.
    """

    def __init__(
        self,
        service_factory: Optional[Callable[[], Any]] = None,
        calendar_id: Optional[str] = None,
        timezone: Optional[str] = None,
        breaker: Optional[CircuitBreaker] = None
    ):
        self.service_factory = service_factory or _default_service
        self.calendar_id = calendar_id or config.GOOGLE_CALENDAR_ID
        self.timezone = timezone or config.TIMEZONE
        self.breaker = breaker or CircuitBreaker("google_calendar", failure_threshold=5, reset_timeout=60)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception(_is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    def _insert(self, service, body: Dict[str, Any]) -> Dict[str, Any]:
        return service.events().insert(calendarId=self.calendar_id, body=body).execute()

    def sync_appointment(self, appointment: Appointment) -> CalendarSyncResult:
        """Create a calendar event for the appointment. Never raises for calendar failures."""
        try:
            service = self.service_factory()
        except CalendarNotConnectedError:
            return CalendarSyncResult(
                success=False,
                message="Google Calendar não conectado. Conecte nas configurações de integrações."
            )
        except GoogleAuthError as e:
            logger.warning("Google credentials unusable: %s", e)
            return CalendarSyncResult(
                success=False,
                message="Credenciais do Google expiradas ou revogadas. Conecte novamente."
            )
        except Exception as e:
            logger.error("Could not reach Google Calendar: %s", e, exc_info=True)
            return CalendarSyncResult(
                success=False,
                message="Não foi possível conectar ao Google Calendar."
            )

        body = build_event(appointment, self.timezone)
        try:
            created = self.breaker.call(self._insert, service, body)
        except CircuitBreakerOpen as e:
            logger.warning("Skipping calendar sync for %s: %s", appointment.id, e)
            return CalendarSyncResult(success=False, message="Google Calendar temporariamente indisponível.")
        except HttpError as e:
            logger.error("Google Calendar insert failed for %s: %s", appointment.id, e)
            return CalendarSyncResult(
                success=False,
                message=f"Erro ao adicionar ao Google Calendar (HTTP {e.resp.status})."
            )
        except GoogleAuthError as e:
            logger.error("Google Calendar auth failed for %s: %s", appointment.id, e)
            return CalendarSyncResult(success=False, message="Falha de autenticação com o Google Calendar.")
        except Exception as e:
            logger.error("Google Calendar insert failed for %s: %s", appointment.id, e, exc_info=True)
            return CalendarSyncResult(success=False, message="Erro ao adicionar ao Google Calendar.")

        link = created.get("htmlLink")
        logger.info("Calendar event %s created for appointment %s", created.get("id"), appointment.id)
        return CalendarSyncResult(
            success=True,
            message="Agendamento adicionado ao Google Calendar.",
            link=link,
            event_id=created.get("id"),
        )
