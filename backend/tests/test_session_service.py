# Overview: Pytest coverage for SessionManager and the password/credential helpers.

from datetime import datetime, timedelta

import pytest

from expense_tracker.errors import ConflictError, SessionExpiredError, UnauthenticatedError, ValidationError
from expense_tracker.models import SessionToken, User
from expense_tracker.services import auth_service
from expense_tracker.services.session_service import SessionManager, generate_token, hash_token

from conftest import PASSWORD, FrozenClock


@pytest.fixture
def user(db_session):
    return auth_service.register_user(db_session, "sess@mail.com", PASSWORD)


@pytest.fixture
def manager(db_session):
    clock = FrozenClock(datetime(2024, 3, 1, 9, 0, 0))
    return SessionManager(db_session, ttl=timedelta(hours=24), clock=clock)


class TestTokens:
    def test_generate_token_is_random_and_url_safe(self):
        tokens = {generate_token() for _ in range(20)}
        assert len(tokens) == 20
        for token in tokens:
            assert len(token) == 43
            assert all(c.isalnum() or c in "-_" for c in token)

    def test_hash_token_is_sha256_hex(self):
        digest = hash_token("abc")
        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


class TestSessionManager:
    def test_issue_stores_hash_and_expiry(self, db_session, manager, user):
        token, expires_at = manager.issue(user.id)

        assert expires_at == datetime(2024, 3, 2, 9, 0, 0)
        row = db_session.query(SessionToken).one()
        assert row.token_hash == hash_token(token)
        assert row.user_id == user.id

    def test_issue_replaces_previous_session(self, db_session, manager, user):
        old_token, _ = manager.issue(user.id)
        new_token, _ = manager.issue(user.id)

        assert db_session.query(SessionToken).count() == 1
        with pytest.raises(UnauthenticatedError):
            manager.validate(old_token)
        assert manager.validate(new_token).user_id == user.id

    @pytest.mark.parametrize("token", [None, "", "unknown"])
    def test_validate_rejects_missing_and_unknown(self, manager, user, token):
        with pytest.raises(UnauthenticatedError) as exc_info:
            manager.validate(token)
        assert not isinstance(exc_info.value, SessionExpiredError)

    def test_validate_expired_deletes_row(self, db_session, manager, user):
        token, _ = manager.issue(user.id)
        manager.clock.advance(hours=24)

        with pytest.raises(SessionExpiredError):
            manager.validate(token)
        assert db_session.query(SessionToken).count() == 0

    def test_validate_just_before_expiry(self, manager, user):
        token, _ = manager.issue(user.id)
        manager.clock.advance(hours=23, minutes=59, seconds=59)
        assert manager.validate(token).user_id == user.id

    def test_refresh_within_threshold(self, db_session, manager, user):
        token, _ = manager.issue(user.id)
        now = manager.clock.advance(hours=17)

        validated = manager.maybe_refresh(manager.validate(token))

        assert validated.refreshed
        assert validated.expires_at == now + timedelta(hours=24)
        stored = db_session.query(SessionToken.expires_at).filter_by(token_hash=hash_token(token)).scalar()
        assert stored == now + timedelta(hours=24)

    def test_no_refresh_at_exact_threshold(self, manager, user):
        token, expires_at = manager.issue(user.id)
        manager.clock.advance(hours=16)

        validated = manager.maybe_refresh(manager.validate(token))

        assert not validated.refreshed
        assert validated.expires_at == expires_at

    def test_no_refresh_far_from_expiry(self, manager, user):
        token, expires_at = manager.issue(user.id)
        manager.clock.advance(hours=1)

        validated = manager.maybe_refresh(manager.validate(token))

        assert not validated.refreshed
        assert validated.expires_at == expires_at

    def test_revoke_is_idempotent(self, db_session, manager, user):
        token, _ = manager.issue(user.id)

        assert manager.revoke(token) is True
        assert manager.revoke(token) is False
        assert manager.revoke(None) is False
        assert db_session.query(SessionToken).count() == 0

    def test_purge_expired(self, db_session, manager, user):
        other = auth_service.register_user(db_session, "other@mail.com", PASSWORD)
        manager.issue(user.id)
        manager.clock.advance(hours=12)
        live_token, _ = manager.issue(other.id)
        manager.clock.advance(hours=12)

        assert manager.purge_expired() == 1
        assert manager.validate(live_token).user_id == other.id


class TestCredentials:
    def test_sanitize_email(self):
        assert auth_service.sanitize_email("  Mixed.Case@Mail.COM ") == "mixed.case@mail.com"

    @pytest.mark.parametrize("email", [None, "", "nope", "two@@mail.com"])
    def test_sanitize_email_rejects(self, email):
        with pytest.raises(ValidationError):
            auth_service.sanitize_email(email)

    @pytest.mark.parametrize("password,ok", [
        ("a" * 11, False),
        ("a" * 12, True),
        ("a" * 128, True),
        ("a" * 129, False),
        ("ü" * 12, True),
    ])
    def test_password_length_bounds(self, password, ok):
        if ok:
            auth_service.validate_password(password)
        else:
            with pytest.raises(auth_service.PasswordValidationError):
                auth_service.validate_password(password)

    def test_hash_and_verify(self, app):
        digest = auth_service.hash_password(PASSWORD, rounds=4)
        assert auth_service.verify_password(PASSWORD, digest)
        assert not auth_service.verify_password("something-else-1", digest)
        assert not auth_service.verify_password(PASSWORD, "not-a-bcrypt-digest")

    @pytest.mark.parametrize("password", ["q" * 128, "é" * 40, "é" * 128])
    def test_long_passwords_hash_and_verify(self, app, password):
        digest = auth_service.hash_password(password, rounds=4)
        assert auth_service.verify_password(password, digest)
        assert not auth_service.verify_password(password[:-1] + "x", digest)

    def test_bytes_past_72_still_count(self, app):
        digest = auth_service.hash_password("q" * 72, rounds=4)
        assert auth_service.verify_password("q" * 72, digest)
        assert not auth_service.verify_password("q" * 80, digest)

    def test_dummy_hash_uses_configured_rounds(self, app, monkeypatch):
        assert auth_service._dummy_hash().startswith("$2b$04$")

        monkeypatch.setitem(app.config, "BCRYPT_ROUNDS", 5)
        assert auth_service._dummy_hash().startswith("$2b$05$")

    def test_unknown_email_pays_real_cost(self, db_session, user, monkeypatch):
        checked = []
        real_verify = auth_service.verify_password

        def spy(password, password_hash):
            checked.append(password_hash[:7])
            return real_verify(password, password_hash)

        monkeypatch.setattr(auth_service, "verify_password", spy)
        auth_service.authenticate(db_session, "sess@mail.com", "wrong-password!")
        auth_service.authenticate(db_session, "ghost@mail.com", PASSWORD)

        assert checked[0] == checked[1] == "$2b$04$"

    def test_register_conflict(self, db_session, user):
        with pytest.raises(ConflictError):
            auth_service.register_user(db_session, "SESS@mail.com", PASSWORD)

    def test_authenticate(self, db_session, user):
        assert auth_service.authenticate(db_session, "Sess@Mail.com", PASSWORD).id == user.id
        assert auth_service.authenticate(db_session, "sess@mail.com", "wrong-password!") is None
        assert auth_service.authenticate(db_session, "ghost@mail.com", PASSWORD) is None
        assert auth_service.authenticate(db_session, "", PASSWORD) is None

    def test_delete_user_cascades(self, db_session, manager, user):
        user_id = user.id
        manager.issue(user_id)

        assert auth_service.delete_user(db_session, user_id) is True
        assert auth_service.delete_user(db_session, user_id) is False
        assert db_session.query(User).count() == 0
        assert db_session.query(SessionToken).count() == 0
