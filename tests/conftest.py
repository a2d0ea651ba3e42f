"""
tests/conftest.py -- Shared test fixtures for Jobly unit and integration tests.

This module provides:
  - make_test_store(): a BoardStore on an isolated in-memory SQLite database
  - seed_store(): the companies, jobs and users most tests start from
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - store, job_ids: function-scoped seeded BoardStore for store tests
  - api_client: module-scoped TestClient plus admin and user tokens

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

Environment variables must be set before any core/auth/api import:
  DEBUG=true               -- get_settings() auto-generates SECRET_KEY
  BCRYPT_WORK_FACTOR=4     -- minimum bcrypt cost keeps hashing fast
  AUTH_RATE_LIMIT          -- high enough that the auth tests never hit 429
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set these before any core/auth/api import so get_settings() sees them.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_WORK_FACTOR", "4")
os.environ.setdefault("AUTH_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.dependencies import BearerAuthenticator
from auth.tokens import create_token
from board.models import Company, Job, User
from board.store import BoardStore
from core.config import get_settings

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_test_store(db_suffix: str) -> BoardStore:
    """Create a BoardStore on a named shared-memory SQLite database.

    Args:
        db_suffix: Unique string appended to the DB name so tests and test
                   modules never share state.
    """
    return BoardStore(db_url=f"sqlite:///file:test_jobly_{db_suffix}?mode=memory&cache=shared&uri=true")


def seed_store(store: BoardStore) -> dict[str, int]:
    """Insert the standard fixture data and return job ids keyed by title.

    Companies: c1 (1 employee), c2 (2), c3 (3).
    Jobs (all at c1): J1 100/0.1, J2 200/0.2, J3 300/0 (no equity).
    Users: u1 and u2 (password "password1", "password2"), admin ("adminpass").
    """
    for n in (1, 2, 3):
        store.create_company(
            Company(
                handle=f"c{n}",
                name=f"C{n}",
                description=f"Desc{n}",
                num_employees=n,
                logo_url=f"http://c{n}.img",
            )
        )

    job_ids: dict[str, int] = {}
    for title, salary, equity in (("J1", 100, 0.1), ("J2", 200, 0.2), ("J3", 300, 0.0)):
        job = store.create_job(Job(title=title, salary=salary, equity=equity, company_handle="c1"))
        job_ids[title] = job.id

    for n in (1, 2):
        store.register(
            User(username=f"u{n}", first_name=f"U{n}F", last_name=f"U{n}L", email=f"user{n}@user.com"),
            f"password{n}",
        )
    store.register(
        User(username="admin", first_name="Ad", last_name="Min", email="admin@user.com", is_admin=True),
        "adminpass",
    )
    return job_ids


def _patch_lifespan(store: BoardStore):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-created test store into app.state so TestClient routes see
    an isolated test DB rather than DATABASE_URL.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        app.state.authenticator = BearerAuthenticator(get_settings().secret_key)
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def store() -> Generator[BoardStore, None, None]:
    """Yield a freshly seeded store. Disposing the engine drops the database."""
    test_store = make_test_store(uuid.uuid4().hex)
    seed_store(test_store)
    yield test_store
    test_store.close()


@pytest.fixture()
def job_ids(store: BoardStore) -> dict[str, int]:
    """Return the seeded job ids keyed by title."""
    return {job.title: job.id for job in store.find_all_jobs()}


@dataclass
class ApiContext:
    client: TestClient
    store: BoardStore
    admin_token: str
    u1_token: str
    job_ids: dict[str, int]

    def auth(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="module")
def api_client() -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use an isolated in-memory store, one
    per test module. Tokens are signed with the same secret the app's
    BearerAuthenticator verifies against.
    """
    test_store = make_test_store(f"api_{uuid.uuid4().hex}")
    job_ids = seed_store(test_store)

    app.router.lifespan_context = _patch_lifespan(test_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(
            client=client,
            store=test_store,
            admin_token=create_token("admin", True),
            u1_token=create_token("u1", False),
            job_ids=job_ids,
        )

    test_store.close()
