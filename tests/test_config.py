"""Unit tests for core/config.py -- SECRET_KEY policy and backend selection."""

import pytest
from pydantic import ValidationError

from core.config import Settings


def test_production_requires_secret_key() -> None:
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(debug=False, secret_key="")


def test_debug_generates_secret_key() -> None:
    settings = Settings(debug=True, secret_key="")
    assert len(settings.secret_key) >= 32


def test_short_secret_key_rejected() -> None:
    with pytest.raises(ValidationError, match="at least 32"):
        Settings(debug=True, secret_key="too-short")


def test_token_ttl_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        Settings(debug=True, token_ttl_seconds=0)


@pytest.mark.parametrize(
    "overrides, expected",
    [
        ({}, False),
        ({"banned_token_store_backend": "redis"}, True),
        ({"two_fa_store_backend": "redis"}, True),
    ],
)
def test_uses_redis(overrides: dict, expected: bool) -> None:
    assert Settings(debug=True, **overrides).uses_redis is expected


def test_unknown_backend_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(debug=True, user_store_backend="mongo")
