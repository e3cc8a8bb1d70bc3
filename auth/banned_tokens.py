"""
auth/banned_tokens.py -- Revocation ("ban") store for issued session tokens.

A token present in the store is rejected by TokenIssuer.validate() even if
its signature and expiry are fine. Records carry a TTL equal to the token
lifetime constant, so the store stays bounded: once the TTL elapses the
token would fail the expiry check anyway.

Two backings:
  InMemoryBannedTokenStore -- process-lifetime dict, for tests and single-
      process dev servers. A threading.Lock guards each dict operation; it is
      never held across an await.
  RedisBannedTokenStore    -- "banned_token:<token>" keys with SET EX, shared
      across instances and durable across restarts.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from auth.errors import StoreError

logger = logging.getLogger("authservice.store")

BANNED_TOKEN_KEY_PREFIX = "banned_token:"


class BannedTokenStore(Protocol):
    async def store_token(self, token: str) -> None: ...

    async def contains_token(self, token: str) -> bool: ...


class InMemoryBannedTokenStore:
    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._tokens: dict[str, float] = {}
        self._lock = threading.Lock()

    async def store_token(self, token: str) -> None:
        """Ban token. Re-banning refreshes the expiry; it is not an error."""
        with self._lock:
            self._purge_expired()
            self._tokens[token] = self._clock() + self.ttl_seconds

    async def contains_token(self, token: str) -> bool:
        with self._lock:
            expires_at = self._tokens.get(token)
            if expires_at is None:
                return False
            if expires_at <= self._clock():
                del self._tokens[token]
                return False
            return True

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._tokens)

    def _purge_expired(self) -> None:
        # Caller holds self._lock.
        now = self._clock()
        for token in [t for t, exp in self._tokens.items() if exp <= now]:
            del self._tokens[token]


class RedisBannedTokenStore:
    def __init__(self, client: Redis, ttl_seconds: int) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds

    async def store_token(self, token: str) -> None:
        try:
            await self.client.set(_key(token), 1, ex=self.ttl_seconds)
        except RedisError as exc:
            logger.error("Failed to store banned token: %s", exc)
            raise StoreError("Could not write revocation record.") from exc

    async def contains_token(self, token: str) -> bool:
        try:
            return bool(await self.client.exists(_key(token)))
        except RedisError as exc:
            logger.error("Failed to read banned token: %s", exc)
            raise StoreError("Could not read revocation record.") from exc


def _key(token: str) -> str:
    return f"{BANNED_TOKEN_KEY_PREFIX}{token}"
