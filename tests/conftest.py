"""
tests/conftest.py -- Shared test fixtures for Authgate tests.

This module provides:
  - make_test_store(): creates an isolated in-memory user store
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - api_client: TestClient over the real app plus the store behind it
  - issuer / hasher: the same token issuer and hasher settings the app uses

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because route handlers offload store calls to worker threads. Plain :memory:
DBs are per-connection and would present a blank schema to each thread. The
named URI format (file:name?mode=memory&cache=shared&uri=true) shares one
in-memory instance across all connections in the same process.

Environment variables must be set before any api/ or core/ import so
get_settings() sees the test configuration (fast bcrypt, short TTL).
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: configure before importing the app.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-for-testing-12345")
os.environ.setdefault("JWT_EXPIRES_IN", "1h")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app, build_services
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import get_settings

TEST_SECRET = os.environ["JWT_SECRET"]
OTHER_SECRET = "a-completely-different-signing-secret-0987654321"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_test_store() -> UserStore:
    """Create an isolated named shared-memory SQLite user store."""
    return UserStore(f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(store: UserStore):
    """Return an async context manager that replaces the real lifespan.

    Uses the same build_services() wiring as production so routes see the
    real service, hasher and issuer on top of the isolated test store.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        build_services(app, get_settings(), store)
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, UserStore], None, None]:
    """Yield (client, store) for API integration tests.

    One TestClient per test module; tests use distinct emails so they do not
    interfere with each other.
    """
    store = make_test_store()
    app.router.lifespan_context = _patch_lifespan(store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, store

    store.close()


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = make_test_store()
    yield s
    s.close()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(secret=TEST_SECRET, ttl_seconds=3600)


@pytest.fixture
def other_issuer() -> TokenIssuer:
    """An issuer with a different secret, for forged-token cases."""
    return TokenIssuer(secret=OTHER_SECRET, ttl_seconds=3600)
