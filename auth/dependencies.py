"""
auth/dependencies.py -- FastAPI Depends() helpers for the auth routes.

The session token is read from two places, in priority order:
  1. JWT cookie (settings.jwt_cookie_name) -- set by login / verify-2fa.
  2. Authorization: Bearer <token> header -- API clients and other services.

get_session_token() is the soft variant (returns None when absent); the
service turns None into MissingToken so the "caller forgot the token" case
stays distinct from "token present but invalid".

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.service import AuthService
from core.config import Settings


def get_auth_service(request: Request) -> AuthService:
    """Return the AuthService built in the app lifespan."""
    return request.app.state.auth_service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_token(request: Request) -> str | None:
    settings: Settings = request.app.state.settings

    # 1. Cookie (browser clients)
    token: str | None = request.cookies.get(settings.jwt_cookie_name)

    # 2. Authorization: Bearer header (API clients)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:].strip()

    return token or None
