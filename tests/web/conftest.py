"""
Fixtures for the Flask API tests.

The app owns the engine here: ``create_app`` initializes it from the test
settings and each request runs in its own ``session_scope()``.  Test data
is seeded through ``session_scope()`` as well, never through the shared
``session`` fixture.
"""

import os
from uuid import uuid4

import pytest

from church_config import AppSettings, DatabaseSettings, WebSettings
from church_kernel.db import create_tables, session_scope
from church_kernel.db.engine import drop_tables, reset_engine
from church_kernel.domain.clock import DeterministicClock
from church_web import create_app

SAME_SITE = {"Origin": "http://localhost"}


@pytest.fixture
def app():
    settings = AppSettings(
        database=DatabaseSettings(
            url=os.environ.get("DATABASE_URL", "sqlite:///:memory:")
        ),
        web=WebSettings(secret_key="test-secret", session_cookie_secure=False),
        log_level="DEBUG",
    )
    app = create_app(settings, clock=DeterministicClock())
    app.config["TESTING"] = True
    drop_tables()
    create_tables()
    yield app
    drop_tables()
    reset_engine()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """Put signed user claims into the client's session cookie."""

    def _login(role: str, user_id=None):
        user_id = user_id or uuid4()
        with client.session_transaction() as sess:
            sess["user_id"] = str(user_id)
            sess["role"] = role
        return user_id

    return _login


@pytest.fixture
def seed(app):
    """Run ``fn(session)`` in a committed unit of work and return its result."""

    def _seed(fn):
        with session_scope() as session:
            return fn(session)

    return _seed
