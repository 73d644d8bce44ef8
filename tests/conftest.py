"""
Shared pytest fixtures for the onboarding checklist test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - user / trainer / admin: Pre-created users, one per role
    - make_user, make_item: factories for extra rows
    - auth_headers: Bearer header for a given user
    - password: plain-text password of factory users
"""

import pytest

from onboarding import create_app
from onboarding.models import db as _db
from onboarding.models.auth import ROLE_ADMIN, ROLE_TRAINER, ROLE_USER, User
from onboarding.models.checklist import ChecklistItem
from onboarding.services.jwt_service import generate_access_token
from onboarding.utils.crypto import hash_password

DEFAULT_PASSWORD = "Passw0rd!23"


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
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Factories ────────────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    counter = {"n": 0}

    def _make(name=None, email=None, role=ROLE_USER, password=DEFAULT_PASSWORD):
        counter["n"] += 1
        n = counter["n"]
        u = User(
            name=name or f"User {n}",
            email=email or f"user{n}@example.com",
            password_hash=hash_password(password) if password else None,
            role=role,
        )
        _db.session.add(u)
        _db.session.commit()
        return u

    return _make


@pytest.fixture()
def make_item():
    counter = {"n": 0}

    def _make(day=1, order_index=None, title=None, is_active=True, **kwargs):
        counter["n"] += 1
        n = counter["n"]
        item = ChecklistItem(
            day=day,
            category=kwargs.pop("category", "login"),
            title=title or f"Item {n}",
            summary=kwargs.pop("summary", f"Summary {n}"),
            steps=kwargs.pop("steps", ["step one", "step two"]),
            order_index=n if order_index is None else order_index,
            is_active=is_active,
            **kwargs,
        )
        _db.session.add(item)
        _db.session.commit()
        return item

    return _make


@pytest.fixture()
def user(make_user):
    return make_user(name="Regular User", email="user@example.com", role=ROLE_USER)


@pytest.fixture()
def trainer(make_user):
    return make_user(name="Trainer", email="trainer@example.com", role=ROLE_TRAINER)


@pytest.fixture()
def admin(make_user):
    return make_user(name="Admin", email="admin@example.com", role=ROLE_ADMIN)


def bearer(u):
    """Authorization header carrying a session token for *u*."""
    return {"Authorization": f"Bearer {generate_access_token(u.id, u.role)}"}


@pytest.fixture()
def auth_headers():
    return bearer


@pytest.fixture()
def password():
    """Plain-text password every factory-made user signs in with."""
    return DEFAULT_PASSWORD
