from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class User(db.Model):
    """
    User accounts for authentication and record ownership.

    Email is stored lowercased and is globally unique; comparisons are
    therefore case-insensitive. Deleting a user cascades to every owned
    record and to the user's session.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    sessions = db.relationship(
        "SessionToken", back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"


class SessionToken(db.Model):
    """
    Authenticated session, keyed by the SHA-256 hash of the client token.

    The plaintext token only ever lives in the client's cookie.
    At most one row per user exists at a time (see SessionManager.issue).
    """
    __tablename__ = "sessions"

    token_hash = db.Column(db.String(64), primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    expires_at = db.Column(db.DateTime, nullable=False)

    user = db.relationship("User", back_populates="sessions")

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "expires_at": to_utc_z(self.expires_at),
        }
