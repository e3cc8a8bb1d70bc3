"""Unit tests for auth/passwords.py -- Argon2id hashing.

Covers:
- hash then verify succeeds; a one-character change fails
- fresh salt: two hashes of the same password differ, both verify
- parse() accepts only Argon2id PHC strings
- hashes made with other work factors still verify
"""

import pytest
from argon2 import PasswordHasher, Type

from auth.errors import MalformedHashError, PasswordMismatchError
from auth.models import Password
from auth.passwords import HashedPassword, build_hasher, hash_password, verify_password


@pytest.fixture
def hasher(settings) -> PasswordHasher:
    return build_hasher(settings)


@pytest.mark.asyncio
async def test_hash_then_verify(hasher: PasswordHasher) -> None:
    hashed = await hash_password(Password.parse("password123"), hasher)
    await verify_password(hashed, "password123", hasher)


@pytest.mark.asyncio
async def test_wrong_password_is_mismatch(hasher: PasswordHasher) -> None:
    hashed = await hash_password(Password.parse("password123"), hasher)
    with pytest.raises(PasswordMismatchError):
        await verify_password(hashed, "password123x", hasher)


@pytest.mark.asyncio
async def test_hash_uses_fresh_salt(hasher: PasswordHasher) -> None:
    password = Password.parse("password123")
    first = await hash_password(password, hasher)
    second = await hash_password(password, hasher)
    assert first != second
    await verify_password(first, "password123", hasher)
    await verify_password(second, "password123", hasher)


@pytest.mark.asyncio
async def test_hash_is_argon2id_and_never_contains_password(hasher: PasswordHasher) -> None:
    hashed = await hash_password(Password.parse("password123"), hasher)
    assert hashed.value.startswith("$argon2id$")
    assert "password123" not in hashed.value
    assert "password123" not in repr(hashed)


@pytest.mark.asyncio
async def test_parse_accepts_stored_hash(hasher: PasswordHasher) -> None:
    hashed = await hash_password(Password.parse("password123"), hasher)
    assert HashedPassword.parse(hashed.value) == hashed


@pytest.mark.parametrize(
    "stored",
    [
        "",
        "password123",
        "$2b$12$abcdefghijklmnopqrstuuN1pO1YwZ6b6c8m7Uq1W5Rr0Jd5Vvq0e",
        "$argon2id$v=19$m=1024,t=1,p=1$truncated",
        "$argon2id$v=19$m=1024,t=1,p=1$c2FsdHNhbHQ$",
        "$argon2id$v=19$m=1024,t=1,p=1$$c2FsdHNhbHQ",
    ],
)
def test_parse_rejects_non_argon2id(stored: str) -> None:
    with pytest.raises(MalformedHashError):
        HashedPassword.parse(stored)


def test_parse_rejects_argon2i() -> None:
    other = PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1, type=Type.I).hash("password123")
    with pytest.raises(MalformedHashError):
        HashedPassword.parse(other)


@pytest.mark.asyncio
async def test_verify_reads_parameters_from_hash(hasher: PasswordHasher) -> None:
    """A hash made with stronger settings still verifies with today's hasher."""
    stronger = PasswordHasher(time_cost=2, memory_cost=2048, parallelism=1, type=Type.ID)
    hashed = HashedPassword.parse(stronger.hash("password123"))
    await verify_password(hashed, "password123", hasher)
