"""
Shared pytest fixtures for the Clearflow test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB reset (autouse)
    - client: Flask test client
    - make_department: Department factory
    - library, bursary: Pre-created departments
    - login: Puts an identity into the test client session
"""

import pytest

from clearflow import create_app
from clearflow.models import db as _db
from clearflow.services import DepartmentService


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield _db.session
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def make_department():
    """Factory creating departments with unique codes."""
    counter = {"n": 0}

    def _make(name=None, **kwargs):
        counter["n"] += 1
        n = counter["n"]
        return DepartmentService.create_department(
            name or f"Department {n}",
            kwargs.pop("code", f"DP{n:02d}"),
            kwargs.pop("faculty", "General"),
            **kwargs
        )

    return _make


@pytest.fixture()
def library(make_department):
    return make_department(
        "University Library",
        code="lib",
        requirements=[{"name": "Returned all library books"}],
    )


@pytest.fixture()
def bursary(make_department):
    return make_department(
        "Bursary",
        code="BUR",
        requirements=[{"name": "No outstanding fees", "document_required": True}],
    )


@pytest.fixture()
def login(client):
    """Store user_id/user_role in the client session like the auth service does."""

    def _login(user_id, role):
        with client.session_transaction() as sess:
            sess["user_id"] = user_id
            sess["user_role"] = role

    return _login
