"""Admin login/logout."""
from typing import Optional

from fastapi import APIRouter, Depends, Header, status

from agende.api.dependencies import get_authenticator, require_admin
from agende.api.models import LoginRequest, LoginResponse, MeResponse
from agende.auth import AdminAuthenticator

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, authenticator: AdminAuthenticator = Depends(get_authenticator)):
    """Exchange the admin credentials for a session token (401 on mismatch)."""
    token = authenticator.login(request.username, request.password)
    return LoginResponse(token=token, username=request.username)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    username: str = Depends(require_admin),
    x_session_token: Optional[str] = Header(None),
    authenticator: AdminAuthenticator = Depends(get_authenticator)
):
    authenticator.logout(x_session_token)


@router.get("/me", response_model=MeResponse)
def me(username: str = Depends(require_admin)):
    return MeResponse(username=username)
