"""
auth/service.py -- Authentication orchestrator: signup, login, 2FA, logout.

AuthService composes the codec (auth/models.py, auth/passwords.py), the token
issuer (auth/tokens.py) and the three stores into the user-facing flows. It
receives plain strings from the boundary and returns typed outcomes:

  login()      -> Authenticated(token) | ChallengeIssued(login_attempt_id)
  verify_2fa() -> Authenticated(token)
  signup(), logout() -> None
  verify_token() -> TokenClaims

Every failure leaves as exactly one AuthServiceError subclass. Component
errors are translated here and chained with "from" so logs keep the cause
while the client sees only the stable code.

Login state machine:
  CredentialsPending -> CredentialsValid -> NoSecondFactor      -> Authenticated
                                         -> SecondFactorPending -> (verify_2fa) -> Authenticated

Information hiding:
  - Malformed email and short password both map to InvalidCredentials.
  - Unknown email and wrong password both map to IncorrectCredentials, and
    an unknown email still pays for one Argon2 verification against a dummy
    hash so response time does not reveal which case occurred.
  - A wrong attempt id and a wrong code are indistinguishable.

No store lock is held across any await in this module; each store call is its
own short critical section and hashing happens outside all of them.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import contextlib
import hmac
import logging
from dataclasses import dataclass

import redis.asyncio as aioredis
from argon2 import PasswordHasher

from auth.banned_tokens import BannedTokenStore, InMemoryBannedTokenStore, RedisBannedTokenStore
from auth.errors import (
    ChallengeNotFoundError,
    EmailDeliveryError,
    HashingError,
    IncorrectCredentials,
    InvalidCredentials,
    InvalidFormatError,
    InvalidToken,
    MissingToken,
    PasswordMismatchError,
    StoreError,
    TokenError,
    UnexpectedError,
    UserAlreadyExists,
    UserAlreadyExistsError,
    UserNotFoundError,
    VerificationError,
)
from auth.mailer import EmailClient, MockEmailClient
from auth.models import Email, LoginAttemptId, Password, TwoFACode, User
from auth.passwords import HashedPassword, build_hasher, hash_password, verify_password
from auth.store import InMemoryUserStore, SqlUserStore, UserStore
from auth.tokens import TokenClaims, TokenIssuer
from auth.two_fa import InMemoryTwoFACodeStore, RedisTwoFACodeStore, TwoFACodeStore
from core.config import Settings

logger = logging.getLogger("authservice.auth")

TWO_FA_EMAIL_SUBJECT = "2FA Code"


@dataclass(frozen=True)
class Authenticated:
    token: str


@dataclass(frozen=True)
class ChallengeIssued:
    login_attempt_id: LoginAttemptId


class AuthService:
    """Stateless orchestrator over injected stores.

    One instance serves every request; it is safe to share because all
    mutable state lives in the stores.
    """

    def __init__(
        self,
        user_store: UserStore,
        banned_token_store: BannedTokenStore,
        two_fa_code_store: TwoFACodeStore,
        email_client: EmailClient,
        token_issuer: TokenIssuer,
        hasher: PasswordHasher,
        redis_client: aioredis.Redis | None = None,
    ) -> None:
        self.user_store = user_store
        self.banned_token_store = banned_token_store
        self.two_fa_code_store = two_fa_code_store
        self.email_client = email_client
        self.token_issuer = token_issuer
        self.hasher = hasher
        self._redis_client = redis_client
        # Computed once so the first unknown-email login is not measurably
        # slower than later ones.
        self._dummy_hash = HashedPassword(hasher.hash("authservice-timing-dummy"))

    # ------------------------------------------------------------------
    # Signup
    # ------------------------------------------------------------------

    async def signup(self, raw_email: str, raw_password: str, requires_2fa: bool) -> None:
        try:
            email = Email.parse(raw_email)
            password = Password.parse(raw_password)
        except InvalidFormatError as exc:
            raise InvalidCredentials() from exc

        try:
            password_hash = await hash_password(password, self.hasher)
        except HashingError as exc:
            logger.exception("Password hashing failed during signup")
            raise UnexpectedError() from exc

        try:
            await self.user_store.add_user(User(email, password_hash, requires_2fa))
        except UserAlreadyExistsError as exc:
            raise UserAlreadyExists() from exc
        except StoreError as exc:
            raise UnexpectedError() from exc
        logger.info("User signed up (requires_2fa=%s)", requires_2fa)

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    async def login(self, raw_email: str, raw_password: str) -> Authenticated | ChallengeIssued:
        try:
            email = Email.parse(raw_email)
            password = Password.parse(raw_password)
        except InvalidFormatError as exc:
            raise InvalidCredentials() from exc

        try:
            await self.user_store.validate_user(email, password.value)
            user = await self.user_store.get_user(email)
        except UserNotFoundError as exc:
            await self._equalize_timing(password)
            raise IncorrectCredentials() from exc
        except PasswordMismatchError as exc:
            raise IncorrectCredentials() from exc
        except (StoreError, VerificationError) as exc:
            logger.exception("Credential check failed")
            raise UnexpectedError() from exc

        if not user.requires_2fa:
            logger.info("Login succeeded without second factor")
            return Authenticated(self.token_issuer.mint(email))

        return await self._issue_challenge(email)

    async def _issue_challenge(self, email: Email) -> ChallengeIssued:
        login_attempt_id = LoginAttemptId.generate()
        code = TwoFACode.generate()
        try:
            await self.two_fa_code_store.add_code(email, login_attempt_id, code)
        except StoreError as exc:
            raise UnexpectedError() from exc
        try:
            await self.email_client.send_email(email, TWO_FA_EMAIL_SUBJECT, code.value)
        except EmailDeliveryError as exc:
            logger.exception("Could not deliver 2FA code")
            raise UnexpectedError() from exc
        logger.info("Second factor required; challenge issued")
        return ChallengeIssued(login_attempt_id)

    async def _equalize_timing(self, password: Password) -> None:
        with contextlib.suppress(PasswordMismatchError, VerificationError):
            await verify_password(self._dummy_hash, password.value, self.hasher)

    # ------------------------------------------------------------------
    # Second factor
    # ------------------------------------------------------------------

    async def verify_2fa(self, raw_email: str, raw_login_attempt_id: str, raw_code: str) -> Authenticated:
        try:
            email = Email.parse(raw_email)
            login_attempt_id = LoginAttemptId.parse(raw_login_attempt_id)
            code = TwoFACode.parse(raw_code)
        except InvalidFormatError as exc:
            raise InvalidCredentials() from exc

        try:
            stored_attempt_id, stored_code = await self.two_fa_code_store.get_code(email)
        except ChallengeNotFoundError as exc:
            raise IncorrectCredentials() from exc
        except StoreError as exc:
            raise UnexpectedError() from exc

        # Both comparisons always run so timing does not reveal which one failed.
        attempt_matches = hmac.compare_digest(login_attempt_id.value, stored_attempt_id.value)
        code_matches = hmac.compare_digest(code.value, stored_code.value)
        if not (attempt_matches and code_matches):
            raise IncorrectCredentials()

        try:
            await self.two_fa_code_store.remove_code(email)
        except ChallengeNotFoundError as exc:
            # A concurrent request consumed the same challenge first.
            raise IncorrectCredentials() from exc
        except StoreError as exc:
            raise UnexpectedError() from exc

        logger.info("Second factor verified")
        return Authenticated(self.token_issuer.mint(email))

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    async def logout(self, token: str | None) -> None:
        """Ban token. The caller clears the client-side cookie afterwards."""
        if not token:
            raise MissingToken()
        await self.verify_token(token)
        try:
            await self.banned_token_store.store_token(token)
        except StoreError as exc:
            raise UnexpectedError() from exc
        logger.info("Session token revoked")

    async def verify_token(self, token: str) -> TokenClaims:
        try:
            return await self.token_issuer.validate(token, self.banned_token_store)
        except TokenError as exc:
            raise InvalidToken() from exc
        except StoreError as exc:
            raise UnexpectedError() from exc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        self.user_store.close()
        if self._redis_client is not None:
            await self._redis_client.aclose()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_auth_service(settings: Settings, email_client: EmailClient | None = None) -> AuthService:
    """Wire an AuthService from configuration.

    Backends are chosen once here, at startup. A single Redis client is
    shared by both Redis-backed stores when either is enabled.
    """
    hasher = build_hasher(settings)

    redis_client: aioredis.Redis | None = None
    if settings.uses_redis:
        redis_client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_timeout,
        )

    user_store: UserStore
    if settings.user_store_backend == "sql":
        user_store = SqlUserStore(settings.database_url, hasher=hasher)
    else:
        user_store = InMemoryUserStore(hasher=hasher)

    banned_token_store: BannedTokenStore
    if settings.banned_token_store_backend == "redis":
        banned_token_store = RedisBannedTokenStore(redis_client, settings.token_ttl_seconds)
    else:
        banned_token_store = InMemoryBannedTokenStore(settings.token_ttl_seconds)

    two_fa_code_store: TwoFACodeStore
    if settings.two_fa_store_backend == "redis":
        two_fa_code_store = RedisTwoFACodeStore(redis_client, settings.two_fa_code_ttl_seconds)
    else:
        two_fa_code_store = InMemoryTwoFACodeStore(settings.two_fa_code_ttl_seconds)

    logger.info(
        "Auth backends: users=%s banned_tokens=%s two_fa=%s",
        settings.user_store_backend,
        settings.banned_token_store_backend,
        settings.two_fa_store_backend,
    )
    return AuthService(
        user_store=user_store,
        banned_token_store=banned_token_store,
        two_fa_code_store=two_fa_code_store,
        email_client=email_client or MockEmailClient(),
        token_issuer=TokenIssuer.from_settings(settings),
        hasher=hasher,
        redis_client=redis_client,
    )
