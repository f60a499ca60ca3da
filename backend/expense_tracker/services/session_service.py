# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

Tokens are cryptographically secure, hashed in database, and time-limited.

Lifecycle:
    Anonymous --issue--> Active --(remaining < TTL/3)--> refreshed in place
    Active --(expires_at <= now | revoke | new issue)--> row removed

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes, URL-safe base64)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Sliding 24-hour expiry, refreshed at most ~3 times per TTL window
- Single session per user: issuing a new one deletes all older ones
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.orm import Session

from ..errors import SessionExpiredError, UnauthenticatedError
from ..models import SessionToken
from ..time_utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(hours=24)


@dataclass
class ValidatedSession:
    """Outcome of SessionManager.validate; `refreshed` is set by maybe_refresh."""
    user_id: int
    token_hash: str
    expires_at: datetime
    refreshed: bool = False


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns a 43-character URL-safe string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy (unlike passwords), so a fast hash is
    sufficient. Returns hex-encoded hash string.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class SessionManager:
    """
    Issues, validates, refreshes and revokes session tokens.

    The database session and the clock are injected; nothing here reads
    global state, so tests can drive expiry by moving the clock.
    """

    def __init__(
        self,
        session: Session,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.ttl = ttl
        self.clock = clock

    @property
    def refresh_threshold(self) -> timedelta:
        return self.ttl / 3

    def issue(self, user_id: int) -> tuple[str, datetime]:
        """
        Create a new session for user_id, replacing any existing one.

        Returns (plaintext_token, expires_at). The delete of older sessions and
        the insert happen in one transaction; on failure nothing is changed.
        """
        plaintext_token = generate_token()
        token_hash = hash_token(plaintext_token)
        expires_at = self.clock() + self.ttl

        try:
            self.session.query(SessionToken).filter(
                SessionToken.user_id == user_id
            ).delete(synchronize_session=False)
            self.session.add(SessionToken(
                token_hash=token_hash,
                user_id=user_id,
                expires_at=expires_at,
            ))
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return plaintext_token, expires_at

    def validate(self, token: str) -> ValidatedSession:
        """
        Resolve a plaintext token to its owning user.

        Raises:
            UnauthenticatedError: no session row for this token
            SessionExpiredError: row found but expired (the row is deleted)
        """
        if not token:
            raise UnauthenticatedError()

        token_hash = hash_token(token)
        record = self.session.query(SessionToken).filter(
            SessionToken.token_hash == token_hash
        ).first()
        if record is None:
            raise UnauthenticatedError()

        now = self.clock()
        if record.expires_at <= now:
            self._delete(token_hash)
            raise SessionExpiredError()

        return ValidatedSession(
            user_id=record.user_id,
            token_hash=token_hash,
            expires_at=record.expires_at,
        )

    def maybe_refresh(self, validated: ValidatedSession) -> ValidatedSession:
        """
        Extend expires_at to now + TTL when less than TTL/3 remains.

        The token value never changes; only the expiry moves. A failed refresh
        write is logged and the request proceeds on the current expiry.
        """
        now = self.clock()
        if validated.expires_at - now >= self.refresh_threshold:
            return validated

        new_expiry = now + self.ttl
        try:
            self.session.query(SessionToken).filter(
                SessionToken.token_hash == validated.token_hash
            ).update({SessionToken.expires_at: new_expiry}, synchronize_session=False)
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.exception("Session refresh failed for user %s", validated.user_id)
            return validated

        validated.expires_at = new_expiry
        validated.refreshed = True
        return validated

    def revoke(self, token: str | None) -> bool:
        """
        Delete the session for token. Idempotent.

        Returns True if a row was removed, False if none existed.
        """
        if not token:
            return False
        return self._delete(hash_token(token)) > 0

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete every session whose expiry has passed. Returns count deleted."""
        cutoff = now or self.clock()
        deleted = self.session.query(SessionToken).filter(
            SessionToken.expires_at <= cutoff
        ).delete(synchronize_session=False)
        self.session.commit()
        return deleted

    def _delete(self, token_hash: str) -> int:
        try:
            deleted = self.session.query(SessionToken).filter(
                SessionToken.token_hash == token_hash
            ).delete(synchronize_session=False)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return deleted
