# Overview: Pytest coverage for registration, login, logout and the session cookie.

"""
Authentication Flow Tests

SECURITY TESTS:
1. Duplicate registration (case-insensitive) is a 409
2. Unknown email and wrong password are indistinguishable
3. Only the SHA-256 hash of a token is persisted
4. A new login invalidates the previous token
5. Logout is idempotent and always clears the cookie
6. Protected routes reject missing, unknown and expired sessions
"""

from datetime import timedelta

import pytest

from expense_tracker.models import SessionToken, User
from expense_tracker.services.session_service import hash_token

from conftest import PASSWORD, login, register, session_cookie, set_cookie_header


def stored_expiry(db_session, token):
    return (
        db_session.query(SessionToken.expires_at)
        .filter_by(token_hash=hash_token(token))
        .scalar()
    )


class TestRegister:
    def test_register_creates_user_and_session(self, client, db_session):
        response = register(client, "  Alice@Mail.com ")

        assert response.status_code == 201
        body = response.get_json()
        assert body["email"] == "alice@mail.com"
        assert isinstance(body["id"], int)
        assert session_cookie(client)

    def test_duplicate_email_case_insensitive(self, app, db_session):
        first = register(app.test_client(), "dup@mail.com")
        second = register(app.test_client(), "DUP@mail.com")

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.get_json() == {"error": "Email already registered"}
        assert db_session.query(User).count() == 1

    @pytest.mark.parametrize("email", ["", "   ", "not-an-email", "a@", 42])
    def test_invalid_email(self, client, email):
        response = client.post('/auth/register', json={"email": email, "password": PASSWORD})
        assert response.status_code == 400

    @pytest.mark.parametrize("password", ["short", "x" * 11, "y" * 129, " " * 20, None])
    def test_invalid_password(self, client, password):
        response = client.post('/auth/register', json={"email": "p@mail.com", "password": password})
        assert response.status_code == 400

    def test_password_length_counts_code_points(self, client):
        # 12 code points, 24 bytes
        response = register(client, "unicode@mail.com", "é" * 12)
        assert response.status_code == 201

    @pytest.mark.parametrize("password", ["p" * 128, "é" * 40])
    def test_long_password_register_and_login(self, app, db_session, password):
        assert register(app.test_client(), "long@mail.com", password).status_code == 201

        client = app.test_client()
        assert login(client, "long@mail.com", password).status_code == 200
        assert login(client, "long@mail.com", password[:-4]).status_code == 401

    def test_unknown_field_rejected(self, client):
        response = client.post(
            '/auth/register',
            json={"email": "x@mail.com", "password": PASSWORD, "admin": True},
        )
        assert response.status_code == 400
        assert response.get_json() == {"error": "Field not allowed: admin"}

    def test_empty_body_rejected(self, client):
        response = client.post('/auth/register', data="", content_type="application/json")
        assert response.status_code == 400

    def test_array_body_rejected(self, client):
        response = client.post('/auth/register', json=[{"email": "x@mail.com"}])
        assert response.status_code == 400

    def test_password_is_hashed(self, client, db_session):
        register(client, "hash@mail.com")
        user = db_session.query(User).filter_by(email="hash@mail.com").one()
        assert user.password_hash != PASSWORD
        assert user.password_hash.startswith("$2")


class TestLogin:
    def test_login_success(self, app, db_session):
        register(app.test_client(), "login@mail.com")
        client = app.test_client()

        response = login(client, "LOGIN@mail.com")

        assert response.status_code == 200
        assert response.get_json()["email"] == "login@mail.com"
        assert session_cookie(client)

    def test_wrong_password_and_unknown_email_are_identical(self, app, db_session):
        register(app.test_client(), "known@mail.com")
        client = app.test_client()

        wrong_password = login(client, "known@mail.com", "wrong-password-123")
        unknown_email = login(client, "unknown@mail.com")

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.get_json() == unknown_email.get_json() == {"error": "Invalid credentials"}
        assert session_cookie(client) is None

    def test_new_login_invalidates_previous_token(self, app, db_session):
        first = app.test_client()
        register(first, "single@mail.com")
        old_token = session_cookie(first)

        second = app.test_client()
        login(second, "single@mail.com")

        assert first.get('/accounts').status_code == 401
        assert second.get('/accounts').status_code == 200
        assert db_session.query(SessionToken).filter_by(token_hash=hash_token(old_token)).count() == 0


class TestSessionCookie:
    def test_cookie_attributes(self, client, clock):
        response = register(client, "cookie@mail.com")
        header = set_cookie_header(response)

        assert "HttpOnly" in header
        assert "SameSite=Strict" in header
        assert "Path=/" in header
        assert "Max-Age=86400" in header
        assert "Secure" not in header

    def test_secure_flag_over_https(self, client):
        response = client.post(
            '/auth/register',
            json={"email": "tls@mail.com", "password": PASSWORD},
            base_url="https://localhost",
        )
        assert response.status_code == 201
        assert "Secure" in set_cookie_header(response)

    def test_only_token_hash_is_stored(self, client, db_session):
        register(client, "store@mail.com")
        token = session_cookie(client)

        rows = db_session.query(SessionToken).all()
        assert len(rows) == 1
        assert rows[0].token_hash == hash_token(token)
        assert rows[0].token_hash != token
        assert token not in {getattr(rows[0], c.key) for c in SessionToken.__table__.columns}


class TestLogout:
    def test_logout_twice_is_204_with_cleared_cookie(self, client, db_session):
        register(client, "bye@mail.com")

        first = client.post('/auth/logout')
        second = client.post('/auth/logout')

        for response in (first, second):
            assert response.status_code == 204
            assert "Max-Age=0" in set_cookie_header(response)
        assert session_cookie(client) is None
        assert db_session.query(SessionToken).count() == 0

    def test_logout_without_cookie(self, client):
        response = client.post('/auth/logout')
        assert response.status_code == 204
        assert "Max-Age=0" in set_cookie_header(response)

    def test_logout_with_unknown_token(self, client):
        client.set_cookie("session_token", "forged-token")
        response = client.post('/auth/logout')
        assert response.status_code == 204

    def test_token_rejected_after_logout(self, app, db_session):
        client = app.test_client()
        register(client, "after@mail.com")
        token = session_cookie(client)
        client.post('/auth/logout')

        replay = app.test_client()
        replay.set_cookie("session_token", token)
        assert replay.get('/accounts').status_code == 401


class TestRequireAuth:
    @pytest.mark.parametrize("method,path", [
        ("get", "/expenses"),
        ("post", "/expenses"),
        ("get", "/expenses/1"),
        ("put", "/expenses/1"),
        ("delete", "/expenses/1"),
        ("get", "/expenses/aggregates?query=totals_by_month"),
        ("get", "/incomes"),
        ("get", "/budgets"),
        ("get", "/accounts"),
        ("get", "/recurring-expenses"),
        ("get", "/reports/income-vs-expense"),
    ])
    def test_missing_cookie_is_401(self, client, method, path):
        response = getattr(client, method)(path)
        assert response.status_code == 401
        assert response.get_json() == {"error": "Unauthorized"}

    def test_unknown_token_clears_cookie(self, client):
        client.set_cookie("session_token", "not-a-real-token")
        response = client.get('/expenses')

        assert response.status_code == 401
        assert "Max-Age=0" in set_cookie_header(response)
        assert session_cookie(client) is None

    def test_expired_session_is_rejected_and_deleted(self, client, db_session, clock):
        register(client, "expire@mail.com")
        clock.advance(hours=24)

        response = client.get('/expenses')

        assert response.status_code == 401
        assert response.get_json() == {"error": "Session expired"}
        assert "Max-Age=0" in set_cookie_header(response)
        assert db_session.query(SessionToken).count() == 0

    def test_session_near_expiry_is_refreshed(self, client, db_session, clock):
        register(client, "refresh@mail.com")
        token = session_cookie(client)
        clock.advance(hours=17)

        response = client.get('/expenses')

        assert response.status_code == 200
        header = set_cookie_header(response)
        assert header.startswith(f"session_token={token}")
        assert "Max-Age=86400" in header
        assert stored_expiry(db_session, token) == clock() + timedelta(hours=24)

    def test_session_far_from_expiry_is_untouched(self, client, db_session, clock):
        register(client, "steady@mail.com")
        token = session_cookie(client)
        issued_expiry = stored_expiry(db_session, token)
        clock.advance(hours=15)

        response = client.get('/expenses')

        assert response.status_code == 200
        assert set_cookie_header(response) == ""
        assert stored_expiry(db_session, token) == issued_expiry
