"""Google Calendar connection endpoints."""
import logging
import secrets
from urllib.parse import quote

from fastapi import APIRouter, Cookie, Depends, Query, status
from fastapi.responses import RedirectResponse
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from agende import config, google_calendar
from agende.api.dependencies import get_calendar_sync, require_admin
from agende.api.models import CalendarStatusResponse
from agende.google_calendar import CalendarConfigError, CalendarSync

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/calendar/google", tags=["Calendar"])

INTEGRATIONS_PAGE = "/settings/integrations"
STATE_COOKIE = "google_oauth_state"
STATE_COOKIE_PATH = "/api/v1/calendar/google"


def _integrations_redirect(query: str) -> RedirectResponse:
    return RedirectResponse(
        f"{config.APP_BASE_URL}{INTEGRATIONS_PAGE}?{query}",
        status_code=status.HTTP_307_TEMPORARY_REDIRECT
    )


@router.get("/login", dependencies=[Depends(require_admin)])
def login():
    """
    Redirect to Google's consent screen (500 when OAuth is not configured).

    The OAuth state goes into a short-lived cookie; the callback only accepts
    a code whose state matches it.
    """
    state = secrets.token_urlsafe(16)
    response = RedirectResponse(
        google_calendar.authorization_url(state=state),
        status_code=status.HTTP_307_TEMPORARY_REDIRECT
    )
    response.set_cookie(
        key=STATE_COOKIE,
        value=state,
        max_age=600,
        path=STATE_COOKIE_PATH,
        httponly=True,
        secure=config.GOOGLE_OAUTH_REDIRECT_URI.startswith("https"),
        samesite="lax",
    )
    return response


@router.get("/callback")
def callback(
    code: str = Query(None),
    error: str = Query(None),
    state: str = Query(None),
    expected_state: str = Cookie(None, alias=STATE_COOKIE),
    calendar_sync: CalendarSync = Depends(get_calendar_sync)
):
    """OAuth redirect target. Always lands back on the integrations page."""
    response = _finish_callback(code, error, state, expected_state, calendar_sync)
    response.delete_cookie(STATE_COOKIE, path=STATE_COOKIE_PATH)
    return response


def _finish_callback(code, error, state, expected_state, calendar_sync: CalendarSync) -> RedirectResponse:
    if error:
        logger.error("Google OAuth callback error: %s", error)
        return _integrations_redirect(f"error={quote(error)}")

    if not code:
        return _integrations_redirect(f"error={quote('Código de autorização não recebido.')}")

    if not state or not expected_state or not secrets.compare_digest(state.encode(), expected_state.encode()):
        logger.warning("Google OAuth callback rejected: state mismatch")
        return _integrations_redirect(f"error={quote('Sessão de autorização inválida. Tente novamente.')}")

    try:
        google_calendar.exchange_code(code)
    except CalendarConfigError:
        return _integrations_redirect(f"error={quote('Erro de configuração do servidor.')}")
    except OAuth2Error as e:
        logger.error("Token exchange failed: %s", e)
        return _integrations_redirect(f"error={quote('Falha ao obter tokens do Google: ' + str(e))}")

    calendar_sync.breaker.reset()
    return _integrations_redirect("success=true")


@router.post("/logout", response_model=CalendarStatusResponse, dependencies=[Depends(require_admin)])
def logout():
    google_calendar.disconnect()
    return CalendarStatusResponse(configured=google_calendar.oauth_configured(), connected=False)


@router.get("/status", response_model=CalendarStatusResponse, dependencies=[Depends(require_admin)])
def connection_status():
    return CalendarStatusResponse(
        configured=google_calendar.oauth_configured(),
        connected=google_calendar.is_connected(),
    )
