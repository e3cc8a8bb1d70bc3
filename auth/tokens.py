"""
auth/tokens.py -- Session token minting, validation, and cookie helpers.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the user's email (sub) and an absolute expiry (exp). The token is the
       whole session: minting writes nothing to storage.

  Validation order is cheapest-first:
       1. structure  -- header and payload must decode -> MalformedTokenError
       2. signature  -- HMAC must verify              -> BadSignatureError
       3. expiry     -- exp must be in the future     -> ExpiredTokenError
       4. revocation -- banned store must not hold it -> RevokedTokenError
       Only tokens that pass 1-3 cost a store round-trip, so garbage or stale
       tokens never reach Redis.

  Revocation: logout writes the raw token into the banned store with a TTL
       equal to token_ttl_seconds -- the same value used here at mint time --
       so a ban record never outlives the longest possible token life.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.errors import BadSignatureError, ExpiredTokenError, MalformedTokenError, RevokedTokenError
from auth.models import Email
from core.config import Settings

if TYPE_CHECKING:
    from auth.banned_tokens import BannedTokenStore

logger = logging.getLogger("authservice.auth")

_ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    """Identity and expiry recovered from a verified token."""

    sub: str
    exp: datetime


class TokenIssuer:
    """Mints and validates signed, expiring session tokens.

    Usage:
        issuer = TokenIssuer(settings.secret_key, settings.token_ttl_seconds)
        token = issuer.mint(email)
        claims = await issuer.validate(token, banned_token_store)
    """

    def __init__(self, secret_key: str, ttl_seconds: int) -> None:
        self._secret_key = secret_key
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenIssuer:
        return cls(settings.secret_key, settings.token_ttl_seconds)

    def mint(self, email: Email) -> str:
        """Encode a signed JWT for email, expiring ttl_seconds from now."""
        expire = datetime.now(timezone.utc) + timedelta(seconds=self.ttl_seconds)
        payload = {"sub": email.value, "exp": expire}
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def decode(self, token: str) -> TokenClaims:
        """Verify structure, signature and expiry without touching storage."""
        try:
            jwt.get_unverified_header(token)
            # Payload must also be a JSON object, checked before the signature.
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise MalformedTokenError("Token is not a well-formed JWT.") from exc

        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except ExpiredSignatureError as exc:
            raise ExpiredTokenError("Token has expired.") from exc
        except JWTClaimsError as exc:
            raise MalformedTokenError("Token claims are invalid.") from exc
        except JWTError as exc:
            raise BadSignatureError("Token signature verification failed.") from exc

        # jose only checks claims that are present; a signed token without
        # them was not minted here.
        if not isinstance(payload.get("sub"), str) or not isinstance(payload.get("exp"), int):
            raise MalformedTokenError("Token is missing required claims.")

        return TokenClaims(
            sub=payload["sub"],
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    async def validate(self, token: str, banned_store: BannedTokenStore) -> TokenClaims:
        """Full validation: decode() then the revocation check.

        StoreError from the banned store propagates unchanged -- an unknown
        revocation status must not be reported as "not revoked".
        """
        claims = self.decode(token)
        if await banned_store.contains_token(token):
            raise RevokedTokenError("Token has been revoked.")
        return claims


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, settings: Settings) -> None:
    """Write the session token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": cookie not sent on cross-site POST -- CSRF mitigation.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: matches the JWT expiry so both expire together.
    """
    response.set_cookie(
        settings.jwt_cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=settings.token_ttl_seconds,
    )


def clear_auth_cookie(response, settings: Settings) -> None:
    response.delete_cookie(
        settings.jwt_cookie_name,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )
