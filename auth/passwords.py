"""
auth/passwords.py -- Argon2id password hashing and verification.

Security design decisions:
  Argon2id via argon2-cffi. Memory-hard and salted; the PHC string format
  ("$argon2id$v=19$m=...,t=...,p=...$salt$hash") carries its own parameters,
  so any PasswordHasher can verify a hash made with different work factors.
  A fresh random salt is drawn on every hash() call -- hashing the same
  password twice yields two different strings.

  Comparison is constant time inside argon2's verify(); we never compare
  digests ourselves.

  Hashing is CPU-bound (tens of milliseconds at the default cost). Both
  hash_password() and verify_password() run in a worker thread via
  asyncio.to_thread so a login never stalls the event loop for every other
  in-flight request. Callers must not hold a store lock across these awaits.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from argon2 import PasswordHasher, Type, extract_parameters
from argon2.exceptions import HashingError as Argon2HashingError
from argon2.exceptions import InvalidHashError, VerificationError as Argon2VerificationError, VerifyMismatchError

from auth.errors import HashingError, MalformedHashError, PasswordMismatchError, VerificationError
from auth.models import Password
from core.config import Settings

_PHC_PREFIX = "$argon2id$"
_MIN_SALT_LEN = 8
_MIN_HASH_LEN = 4


def build_hasher(settings: Settings) -> PasswordHasher:
    """Return an Argon2id hasher tuned from settings."""
    return PasswordHasher(
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
        type=Type.ID,
    )


@dataclass(frozen=True)
class HashedPassword:
    """An Argon2id PHC string. The only password form ever stored."""

    value: str

    @classmethod
    def parse(cls, stored: str) -> HashedPassword:
        """Rehydrate a hash read from storage.

        Accepts only Argon2id PHC strings; anything else (bcrypt, argon2i,
        truncated rows) raises MalformedHashError.
        """
        if not stored.startswith(_PHC_PREFIX):
            raise MalformedHashError("Stored value is not an Argon2id hash.")
        try:
            params = extract_parameters(stored)
        except InvalidHashError as exc:
            raise MalformedHashError("Stored value is not an Argon2id hash.") from exc
        if params.type is not Type.ID:
            raise MalformedHashError("Stored value is not an Argon2id hash.")
        # Argon2 never emits a salt under 8 bytes or a digest under 4.
        if params.salt_len < _MIN_SALT_LEN or params.hash_len < _MIN_HASH_LEN:
            raise MalformedHashError("Stored Argon2id hash is truncated.")
        return cls(stored)

    def __repr__(self) -> str:
        return "HashedPassword('<argon2id>')"

    def __str__(self) -> str:
        return self.value


async def hash_password(password: Password, hasher: PasswordHasher) -> HashedPassword:
    """Hash password off the event loop. Raises HashingError on failure."""
    try:
        digest = await asyncio.to_thread(hasher.hash, password.value)
    except Argon2HashingError as exc:
        raise HashingError("Password hashing failed.") from exc
    return HashedPassword(digest)


async def verify_password(hashed: HashedPassword, candidate: str, hasher: PasswordHasher) -> None:
    """Check candidate against hashed off the event loop.

    Returns None on match. Raises PasswordMismatchError on a wrong password and
    VerificationError if the hash could not be evaluated at all.
    """
    try:
        await asyncio.to_thread(hasher.verify, hashed.value, candidate)
    except VerifyMismatchError as exc:
        raise PasswordMismatchError() from exc
    except (Argon2VerificationError, InvalidHashError) as exc:
        raise VerificationError("Password verification failed.") from exc
