"""
tests/conftest.py -- Shared test fixtures for TaskVault.

This module provides:
  - shared_memory_url(): a fresh named shared-memory SQLite URL
  - make_stores(): AccountStore + TaskStore on one such database
  - client_for(): TestClient context manager with a patched lifespan
  - api_client: module-scoped TestClient with revocation enforced
  - account_store / task_store / registry: unit-test fixtures

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool, and because the
account and task stores hold separate engines that must see one database. The
named URI format (file:name?mode=memory&cache=shared&uri=true) shares one
in-memory instance across all connections in the same process.

Environment must be set before any core/auth import: DEBUG so get_settings()
auto-generates SECRET_KEY, RATE_LIMIT_ENABLED=false so the many logins in the
suite are not throttled, BCRYPT_ROUNDS=4 to keep hashing fast, and a small
LOGIN_RATE_LIMIT so the rate limit test needs only a handful of logins.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator, Iterator
from contextlib import asynccontextmanager, contextmanager

# CRITICAL: Set before any core/auth import -- settings are read at import time.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOGIN_RATE_LIMIT", "3/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import _purge_loop, app, wire_services
from auth.sessions import SessionRegistry
from auth.store import AccountStore
from tasks.store import TaskStore

TEST_EXPIRE_SECONDS = 1800

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def shared_memory_url(prefix: str = "taskvault") -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def make_stores(prefix: str = "taskvault") -> tuple[AccountStore, TaskStore]:
    """Create both stores on one isolated shared-memory database.

    AccountStore first: the tasks table references accounts.id.
    """
    url = shared_memory_url(prefix)
    return AccountStore(db_url=url), TaskStore(db_url=url)


def _patch_lifespan(
    account_store: AccountStore,
    task_store: TaskStore,
    registry: SessionRegistry,
    enforce_revocation: bool,
    scope_task_updates: bool,
):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state through the same
    wire_services() the real lifespan uses, and runs the real _purge_loop
    (with an interval no test waits out) so shutdown cancels and awaits it the
    same way.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        wire_services(
            app,
            account_store,
            task_store,
            registry,
            enforce_revocation=enforce_revocation,
            scope_task_updates=scope_task_updates,
        )
        app.state.purge_task = asyncio.create_task(_purge_loop(app, TEST_EXPIRE_SECONDS))
        yield
        app.state.purge_task.cancel()
        try:
            await app.state.purge_task
        except asyncio.CancelledError:
            pass

    return test_lifespan


@contextmanager
def client_for(
    prefix: str,
    enforce_revocation: bool = True,
    scope_task_updates: bool = False,
) -> Iterator[TestClient]:
    """Yield a TestClient for the real app backed by fresh test stores.

    Only one client_for() may be open at a time: the app is a module-level
    singleton and the lifespan writes to its app.state.
    """
    account_store, task_store = make_stores(prefix)
    registry = SessionRegistry(expire_seconds=TEST_EXPIRE_SECONDS)
    app.router.lifespan_context = _patch_lifespan(
        account_store, task_store, registry, enforce_revocation, scope_task_updates
    )
    try:
        with TestClient(app, raise_server_exceptions=True) as client:
            yield client
    finally:
        task_store.close()
        account_store.close()


def signup_and_login(client: TestClient, email: str, password: str = "Secret1!") -> str:
    """Create an account, log in, and return the token.

    The login response also sets the jwt cookie on the client. It is cleared
    here so later requests authenticate only with what the test passes
    explicitly -- the cookie would otherwise win over any Bearer header.
    """
    resp = client.post("/auth/signup", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    client.cookies.clear()
    return resp.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Integration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Module-scoped TestClient with ENFORCE_REVOCATION on (the default)."""
    with client_for("api") as client:
        yield client


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stores() -> Generator[tuple[AccountStore, TaskStore], None, None]:
    account_store, task_store = make_stores("unit")
    yield account_store, task_store
    task_store.close()
    account_store.close()


@pytest.fixture
def account_store(stores: tuple[AccountStore, TaskStore]) -> AccountStore:
    return stores[0]


@pytest.fixture
def task_store(stores: tuple[AccountStore, TaskStore]) -> TaskStore:
    return stores[1]


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry(expire_seconds=TEST_EXPIRE_SECONDS)
