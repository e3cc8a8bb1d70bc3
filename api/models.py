"""
API request and response models for the auth service REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the value types in auth/models.py, which own the
domain rules. Fields here are plain strings: a body with the right shape but
a malformed email must reach AuthService and come back as 400
invalid_credentials, not be rejected by Pydantic as 422.

Field aliases keep the wire names the browser client already sends
("requires2FA", "loginAttemptId", "2FACode").
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /api/v1/auth/signup."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    password: str
    requires_2fa: bool = Field(alias="requires2FA")


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: str
    password: str


class Verify2FARequest(BaseModel):
    """Request body for POST /api/v1/auth/verify-2fa."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    login_attempt_id: str = Field(alias="loginAttemptId")
    two_fa_code: str = Field(alias="2FACode")


class VerifyTokenRequest(BaseModel):
    """Request body for POST /api/v1/auth/verify-token."""

    token: str


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class TwoFactorAuthResponse(BaseModel):
    """206 body returned when login needs a second factor. No token yet."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message: str = "2FA required"
    login_attempt_id: str = Field(serialization_alias="loginAttemptId")


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
