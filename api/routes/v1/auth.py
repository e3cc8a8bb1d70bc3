"""
api/routes/v1/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/v1/auth/signup        -- register email/password/2FA flag; 201
  POST /api/v1/auth/login         -- 200 + jwt cookie, or 206 + loginAttemptId
  POST /api/v1/auth/verify-2fa    -- 200 + jwt cookie on a matching code
  POST /api/v1/auth/logout        -- bans the presented token, clears cookie
  POST /api/v1/auth/verify-token  -- 200 if the token is valid and not banned

Each handler parses nothing itself: it passes raw strings to AuthService and
maps the typed outcome to a response. Failures are AuthServiceError
subclasses, turned into the error envelope by the handler in api/main.py.

Security:
  Cache-Control: no-store on every response that carries a session token.
  Login and verify-2fa never say which field was wrong.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.models import (
    LoginRequest,
    MessageResponse,
    SignupRequest,
    TwoFactorAuthResponse,
    Verify2FARequest,
    VerifyTokenRequest,
)
from auth.dependencies import get_app_settings, get_auth_service, get_session_token
from auth.service import AuthService, ChallengeIssued
from auth.tokens import clear_auth_cookie, set_auth_cookie
from core.config import Settings

# Auth policy: every route here is public -- these ARE the authentication
# endpoints. logout and verify-token authenticate by the token they receive.
router = APIRouter()


@router.post("/auth/signup", status_code=201, response_model=MessageResponse)
async def signup(
    body: SignupRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Register a new user. 409 if the email is already taken."""
    await service.signup(body.email, body.password, body.requires_2fa)
    return MessageResponse(message="User created successfully!")


@router.post("/auth/login", response_model=MessageResponse)
async def login(
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Check credentials; issue a session token or a 2FA challenge.

    Users without 2FA get 200 and the jwt cookie. Users with 2FA get 206 and a
    loginAttemptId to echo back to /verify-2fa; the code itself goes out by
    email and no token is issued yet.
    """
    outcome = await service.login(body.email, body.password)

    if isinstance(outcome, ChallengeIssued):
        resp = JSONResponse(
            status_code=206,
            content=TwoFactorAuthResponse(login_attempt_id=outcome.login_attempt_id.value).model_dump(by_alias=True),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(status_code=200, content=MessageResponse(message="Login successful").model_dump())
    set_auth_cookie(resp, outcome.token, settings)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/verify-2fa", response_model=MessageResponse)
async def verify_2fa(
    body: Verify2FARequest,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Exchange (loginAttemptId, 2FACode) for a session token. Single use."""
    outcome = await service.verify_2fa(body.email, body.login_attempt_id, body.two_fa_code)
    resp = JSONResponse(status_code=200, content=MessageResponse(message="Login successful").model_dump())
    set_auth_cookie(resp, outcome.token, settings)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout", response_model=MessageResponse)
async def logout(
    token: str | None = Depends(get_session_token),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Ban the presented token and clear the cookie.

    400 missing_token when no token was sent; 401 invalid_token when the token
    is expired, tampered with, or already logged out.
    """
    await service.logout(token)
    resp = JSONResponse(content=MessageResponse(message="Logged out.").model_dump())
    clear_auth_cookie(resp, settings)
    return resp


@router.post("/auth/verify-token", response_model=MessageResponse)
async def verify_token(
    body: VerifyTokenRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Validate a bare token for another service. Read-only."""
    await service.verify_token(body.token)
    return MessageResponse(message="Token is valid.")
