"""
auth/errors.py -- Exception taxonomy for the authentication core.

Two tiers:

  Component errors are raised by the codec, the token issuer and the stores.
  They describe what went wrong in the component's own terms (a malformed
  hash, an expired token, a missing challenge, a backend that did not answer).

  AuthServiceError subclasses are the only exceptions AuthService lets
  escape. There is exactly one per client-visible outcome, and the API layer
  maps each to a single HTTP status. Component errors are translated at the
  service boundary so driver details never reach a client.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Input parsing
# ---------------------------------------------------------------------------


class InvalidFormatError(ValueError):
    """Raw input failed its value-type grammar (email, attempt id, 2FA code)."""


class PasswordTooShortError(InvalidFormatError):
    """Raw password is shorter than the minimum length."""


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


class MalformedHashError(ValueError):
    """A stored string is not an Argon2id hash produced by hash_password()."""


class HashingError(RuntimeError):
    """The hashing backend failed to derive a hash (resource exhaustion)."""


class PasswordMismatchError(Exception):
    """Candidate password does not match the stored hash."""


class VerificationError(RuntimeError):
    """Verification could not run to completion."""


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


class TokenError(Exception):
    """Base class for every reason a session token is rejected."""


class MalformedTokenError(TokenError):
    pass


class BadSignatureError(TokenError):
    pass


class ExpiredTokenError(TokenError):
    pass


class RevokedTokenError(TokenError):
    pass


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class StoreError(RuntimeError):
    """A storage backend failed. The operation outcome is unknown."""


class UserAlreadyExistsError(Exception):
    pass


class UserNotFoundError(LookupError):
    pass


class ChallengeNotFoundError(LookupError):
    """No live 2FA challenge for the email (never issued, expired or consumed)."""


class EmailDeliveryError(RuntimeError):
    pass


# ---------------------------------------------------------------------------
# Service outcomes
# ---------------------------------------------------------------------------


class AuthServiceError(Exception):
    """Base class for client-visible failures returned by AuthService.

    code and message are stable: they are what the client sees. The
    underlying cause is kept on __cause__ for logging only.
    """

    code: str = "unexpected_error"
    message: str = "Unexpected error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class InvalidCredentials(AuthServiceError):
    code = "invalid_credentials"
    message = "Invalid credentials"


class IncorrectCredentials(AuthServiceError):
    code = "incorrect_credentials"
    message = "Incorrect credentials"


class UserAlreadyExists(AuthServiceError):
    code = "user_already_exists"
    message = "User already exists"


class MissingToken(AuthServiceError):
    code = "missing_token"
    message = "Missing auth token"


class InvalidToken(AuthServiceError):
    code = "invalid_token"
    message = "Invalid auth token"


class UnexpectedError(AuthServiceError):
    code = "unexpected_error"
    message = "Unexpected error"
