"""
auth/two_fa.py -- Pending second-factor challenges, one per email.

A challenge is the pair (LoginAttemptId, TwoFACode) issued when a user with
requires_2fa logs in with a correct password. Rules every backing follows:

  - add_code() overwrites: a second login for the same email replaces the
    first challenge, so a resend never locks the user out and the older code
    stops working.
  - get_code() raises ChallengeNotFoundError for "never issued" and for
    "expired" alike -- callers cannot and need not tell them apart.
  - remove_code() is called once, after a successful match, to make the code
    single-use. It raises ChallengeNotFoundError when nothing was removed,
    which is how a concurrent replay that lost the race is detected.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from auth.errors import ChallengeNotFoundError, StoreError
from auth.models import Email, LoginAttemptId, TwoFACode

logger = logging.getLogger("authservice.store")

TWO_FA_CODE_KEY_PREFIX = "two_fa_code:"
DEFAULT_TWO_FA_TTL_SECONDS = 600


class TwoFACodeStore(Protocol):
    async def add_code(self, email: Email, login_attempt_id: LoginAttemptId, code: TwoFACode) -> None: ...

    async def get_code(self, email: Email) -> tuple[LoginAttemptId, TwoFACode]: ...

    async def remove_code(self, email: Email) -> None: ...


class InMemoryTwoFACodeStore:
    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TWO_FA_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._codes: dict[Email, tuple[LoginAttemptId, TwoFACode, float]] = {}
        self._lock = threading.Lock()

    async def add_code(self, email: Email, login_attempt_id: LoginAttemptId, code: TwoFACode) -> None:
        with self._lock:
            self._codes[email] = (login_attempt_id, code, self._clock() + self.ttl_seconds)

    async def get_code(self, email: Email) -> tuple[LoginAttemptId, TwoFACode]:
        with self._lock:
            entry = self._codes.get(email)
            if entry is None:
                raise ChallengeNotFoundError(str(email))
            login_attempt_id, code, expires_at = entry
            if expires_at <= self._clock():
                del self._codes[email]
                raise ChallengeNotFoundError(str(email))
            return login_attempt_id, code

    async def remove_code(self, email: Email) -> None:
        with self._lock:
            entry = self._codes.pop(email, None)
        if entry is None or entry[2] <= self._clock():
            raise ChallengeNotFoundError(str(email))


class RedisTwoFACodeStore:
    """Challenges as JSON pairs under "two_fa_code:<email>" with SET EX."""

    def __init__(self, client: Redis, ttl_seconds: int = DEFAULT_TWO_FA_TTL_SECONDS) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds

    async def add_code(self, email: Email, login_attempt_id: LoginAttemptId, code: TwoFACode) -> None:
        record = json.dumps([login_attempt_id.value, code.value])
        try:
            await self.client.set(_key(email), record, ex=self.ttl_seconds)
        except RedisError as exc:
            logger.error("Failed to store 2FA code: %s", exc)
            raise StoreError("Could not write 2FA challenge.") from exc

    async def get_code(self, email: Email) -> tuple[LoginAttemptId, TwoFACode]:
        try:
            raw = await self.client.get(_key(email))
        except RedisError as exc:
            logger.error("Failed to read 2FA code: %s", exc)
            raise StoreError("Could not read 2FA challenge.") from exc
        if raw is None:
            raise ChallengeNotFoundError(str(email))
        try:
            attempt_id, code = json.loads(raw)
            return LoginAttemptId.parse(attempt_id), TwoFACode.parse(code)
        except (TypeError, ValueError) as exc:
            raise StoreError("Stored 2FA challenge is corrupt.") from exc

    async def remove_code(self, email: Email) -> None:
        try:
            removed = await self.client.delete(_key(email))
        except RedisError as exc:
            logger.error("Failed to remove 2FA code: %s", exc)
            raise StoreError("Could not remove 2FA challenge.") from exc
        if not removed:
            raise ChallengeNotFoundError(str(email))


def _key(email: Email) -> str:
    return f"{TWO_FA_CODE_KEY_PREFIX}{email.value}"
