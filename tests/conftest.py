"""
tests/conftest.py -- Shared test fixtures for the auth service tests.

This module provides:
  - settings: a debug-mode Settings with a fixed key and cheap Argon2 costs
  - auth_service: an AuthService over fresh in-memory stores
  - api_client: TestClient wired to its own in-memory AuthService, plus that
    service so tests can read the 2FA code a login just issued

Design: the DEBUG env var must be set before any auth/core import so the
module-level get_settings() call in api/main.py auto-generates SECRET_KEY in
dev mode rather than raising ValueError.

Argon2 costs are lowered for speed. Verification reads the parameters from
the hash itself, so the code path is identical to production.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from auth.banned_tokens import InMemoryBannedTokenStore
from auth.mailer import MockEmailClient
from auth.passwords import build_hasher
from auth.service import AuthService
from auth.store import InMemoryUserStore
from auth.tokens import TokenIssuer
from auth.two_fa import InMemoryTwoFACodeStore
from core.config import Settings

TEST_SECRET_KEY = "test-secret-key-that-is-at-least-32-characters-long"


def make_settings(**overrides) -> Settings:
    values = {
        "debug": True,
        "secret_key": TEST_SECRET_KEY,
        "argon2_memory_cost": 1024,
        "argon2_time_cost": 1,
        "argon2_parallelism": 1,
    }
    values.update(overrides)
    return Settings(**values)


def make_auth_service(settings: Settings) -> AuthService:
    hasher = build_hasher(settings)
    return AuthService(
        user_store=InMemoryUserStore(hasher=hasher),
        banned_token_store=InMemoryBannedTokenStore(settings.token_ttl_seconds),
        two_fa_code_store=InMemoryTwoFACodeStore(settings.two_fa_code_ttl_seconds),
        email_client=MockEmailClient(),
        token_issuer=TokenIssuer.from_settings(settings),
        hasher=hasher,
    )


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def auth_service(settings: Settings) -> AuthService:
    return make_auth_service(settings)


def _patch_lifespan(settings: Settings, service: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-built test service into app.state so TestClient routes use
    isolated in-memory stores instead of whatever the environment configures.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = settings
        app.state.auth_service = service
        yield
        await service.close()

    return test_lifespan


@pytest.fixture
def api_client(settings: Settings) -> Generator[tuple[TestClient, AuthService], None, None]:
    """Yield (client, service) for API integration tests.

    Function-scoped: every test starts with empty stores and an empty cookie
    jar, so signup of a fixed email never collides across tests.
    """
    from api.main import app

    service = make_auth_service(settings)
    app.router.lifespan_context = _patch_lifespan(settings, service)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, service
