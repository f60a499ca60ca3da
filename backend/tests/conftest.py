"""
Pytest fixtures for expense_tracker backend tests.

Provides test database setup, a controllable clock, and per-user test clients.
"""

from datetime import datetime, timedelta

import pytest

from expense_tracker import create_app
from expense_tracker.config import TestConfig
from expense_tracker.extensions import db
from expense_tracker.time_utils import utcnow

PASSWORD = "correct-horse-battery"
COOKIE = "session_token"


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    # Clear all data but keep schema
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture(scope='function')
def clock(app):
    """Freeze the app clock at the current second for the duration of the test."""
    frozen = FrozenClock(utcnow().replace(microsecond=0))
    app.config["CLOCK"] = frozen
    yield frozen
    app.config.pop("CLOCK", None)


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


def register(client, email: str, password: str = PASSWORD):
    return client.post('/auth/register', json={'email': email, 'password': password})


def login(client, email: str, password: str = PASSWORD):
    return client.post('/auth/login', json={'email': email, 'password': password})


def session_cookie(client):
    """Current value of the session cookie in the client's jar, or None."""
    cookie = client.get_cookie(COOKIE)
    return cookie.value if cookie is not None else None


def set_cookie_header(response) -> str:
    """The Set-Cookie header for the session cookie ('' if absent)."""
    for header in response.headers.getlist('Set-Cookie'):
        if header.startswith(f"{COOKIE}="):
            return header
    return ""


def create_account(client, name: str = "Wallet", balance: float = 100.0) -> dict:
    response = client.post('/accounts', json={'name': name, 'type': 'Cash', 'balance': balance})
    assert response.status_code == 201, response.get_json()
    return response.get_json()


@pytest.fixture(scope='function')
def user_a(app, db_session):
    """Logged-in client for user A plus their account."""
    c = app.test_client()
    response = register(c, "alice@mail.com")
    assert response.status_code == 201
    account = create_account(c, "A wallet", 100.0)
    return {"client": c, "id": response.get_json()["id"], "account": account}


@pytest.fixture(scope='function')
def user_b(app, db_session):
    """Logged-in client for user B plus their account."""
    c = app.test_client()
    response = register(c, "bob@mail.com")
    assert response.status_code == 201
    account = create_account(c, "B wallet", 50.0)
    return {"client": c, "id": response.get_json()["id"], "account": account}
