"""
tests/conftest.py -- Shared test fixtures for the accounts service.

This module provides:
  - store / issuer / service: isolated in-memory objects for unit tests
  - _patch_lifespan(): wires test collaborators into app.state
  - api_client: TestClient over the real FastAPI app

Design: the API fixture uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread.

bcrypt runs at cost factor 4 in tests; the workflow is identical, only
faster.

The DEBUG env var must be set before any api/auth/core import so
get_settings() auto-generates SECRET_KEY in dev mode instead of raising.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer
from tests.factories import TEST_ROUNDS, TEST_SECRET

# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(secret_key=TEST_SECRET, expire_seconds=3600)


@pytest.fixture
def service(store: UserStore, issuer: TokenIssuer) -> AuthService:
    return AuthService(store, issuer, hash_rounds=TEST_ROUNDS)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore, token_issuer: TokenIssuer):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test collaborators into app.state so TestClient routes
    see an isolated test DB rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.token_issuer = token_issuer
        app.state.auth_service = AuthService(user_store, token_issuer, hash_rounds=TEST_ROUNDS)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, UserStore, TokenIssuer], None, None]:
    """Yield (client, store, issuer) for API integration tests.

    One client per test module for speed; tests register their own unique
    emails so they do not depend on each other's state.
    """
    db_suffix = uuid.uuid4().hex[:8]
    user_store = UserStore(f"sqlite:///file:test_accounts_{db_suffix}?mode=memory&cache=shared&uri=true")
    token_issuer = TokenIssuer(secret_key=TEST_SECRET, expire_seconds=3600)

    app.router.lifespan_context = _patch_lifespan(user_store, token_issuer)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, user_store, token_issuer

    user_store.close()
