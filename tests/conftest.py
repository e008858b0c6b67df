"""
tests/conftest.py -- Shared test fixtures for the catalog API tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + products
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus a bearer token for a pre-created user

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

Environment must be set before any api/auth/core import:
  DEBUG=true               -- get_settings() auto-generates SECRET_KEY
  BCRYPT_ROUNDS=4          -- keep password hashing fast
  RATE_LIMIT_ENABLED=false -- repeated logins from one client are not throttled
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOCALE", "en")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenService, hash_password
from catalog.store import ProductStore
from core.messages import Translator

TEST_EMAIL = "tester@example.com"
TEST_PASSWORD = "testpass123"

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, ProductStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'auth', 'products').
    """
    auth_url = f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true"
    catalog_url = f"sqlite:///file:test_catalog_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=auth_url), ProductStore(db_url=catalog_url)


def _patch_lifespan(user_store: UserStore, products: ProductStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the on-disk defaults.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.translator = Translator("en")
        app.state.user_store = user_store
        app.state.products = products
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers but use isolated in-memory stores. A user with
    TEST_EMAIL / TEST_PASSWORD is created before the client starts and a
    bearer token is issued for it.
    """
    user_store, products = _make_test_stores(request.module.__name__.rsplit(".", 1)[-1])

    user = User(name="Test User", email=TEST_EMAIL, hashed_password=hash_password(TEST_PASSWORD))
    user.id = user_store.create_user(user)
    token = TokenService(user_store).issue(user)

    app.router.lifespan_context = _patch_lifespan(user_store, products)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, user.id

    user_store.close()
    products.close()


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    """Fresh in-memory UserStore (single connection pool, one thread)."""
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def product_store() -> Generator[ProductStore, None, None]:
    store = ProductStore("sqlite:///:memory:")
    yield store
    store.close()
