# Overview: Service-layer operations for credentials; password hashing, email normalization, registration, login.

"""
Credential Store and Password Hasher

Users are identified by a lowercased, syntactically valid email address.
Passwords are hashed with bcrypt (salted, cost factor 12 by default) and
only the digest is persisted.

SECURITY NOTES:
- Password length is validated in code points before hashing: [12, 128]
- bcrypt sees a SHA-256 pre-hash, never the raw password (72 byte input limit)
- Unknown email and wrong password produce the same failure (None) and the
  same bcrypt cost
- Session tokens are managed separately (see session_service.py)
"""

from __future__ import annotations

import base64
import hashlib
import re

import bcrypt
from flask import current_app, has_app_context
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import ConflictError, ValidationError
from ..models import User
from ..time_utils import utcnow

DEFAULT_BCRYPT_ROUNDS = 12
PASSWORD_MIN_LENGTH = 12
PASSWORD_MAX_LENGTH = 128
EMAIL_MAX_LENGTH = 255

# local@domain.tld; no whitespace, exactly one @, dotted hostname labels
_EMAIL_RE = re.compile(
    r"^[^@\s]{1,64}@"
    r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?"
    r"(?:\.[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?)+$"
)

# Digests of a throwaway password, one per cost factor, so that logins for
# unknown emails pay for the same bcrypt comparison as real ones.
_DUMMY_HASHES: dict[int, str] = {}


class PasswordValidationError(ValidationError):
    """Raised when a password is outside the accepted length range."""


def _bcrypt_rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS))
    return DEFAULT_BCRYPT_ROUNDS


def _dummy_hash() -> str:
    rounds = _bcrypt_rounds()
    if rounds not in _DUMMY_HASHES:
        salt = bcrypt.gensalt(rounds=rounds)
        _DUMMY_HASHES[rounds] = bcrypt.hashpw(_bcrypt_input("not-a-real-password"), salt).decode("utf-8")
    return _DUMMY_HASHES[rounds]


def _bcrypt_input(password: str) -> bytes:
    """
    SHA-256 pre-hash, base64 encoded (44 bytes).

    bcrypt rejects input over 72 bytes and a 128 code point password can be
    up to 512 UTF-8 bytes, so every password goes through this first.
    """
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def sanitize_email(email) -> str:
    """
    Trim, lowercase and syntax-check an email address.

    Raises ValidationError for empty or malformed input.
    """
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("Email is required")
    normalized = email.strip().lower()
    if len(normalized) > EMAIL_MAX_LENGTH or not _EMAIL_RE.match(normalized):
        raise ValidationError("Invalid email address")
    return normalized


def validate_password(password) -> None:
    """
    Validate password length in Unicode code points.

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or not password.strip():
        raise PasswordValidationError("Password is required")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise PasswordValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        raise PasswordValidationError(f"Password must be {PASSWORD_MAX_LENGTH} characters or fewer")


def hash_password(password: str, rounds: int | None = None) -> str:
    """
    Hash password using bcrypt.

    Password is validated before hashing and pre-hashed with SHA-256, so
    the full password counts regardless of its UTF-8 length.
    """
    validate_password(password)
    salt = bcrypt.gensalt(rounds=rounds or _bcrypt_rounds())
    hashed = bcrypt.hashpw(_bcrypt_input(password), salt)
    return hashed.decode("utf-8")  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including
    malformed digests). bcrypt.checkpw() compares in constant time.
    """
    try:
        return bcrypt.checkpw(_bcrypt_input(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


def register_user(session: Session, email, password) -> User:
    """
    Create a new user.

    Raises:
        ValidationError: invalid email or password
        ConflictError: email already registered (case-insensitive)
    """
    normalized = sanitize_email(email)
    validate_password(password)

    if session.query(User.id).filter(User.email == normalized).first() is not None:
        raise ConflictError("Email already registered")

    user = User(
        email=normalized,
        password_hash=hash_password(password),
        created_at=utcnow(),
    )
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        session.rollback()
        raise ConflictError("Email already registered")
    return user


def authenticate(session: Session, email, password) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise. No distinction is
    made between "no such user" and "wrong password".
    """
    try:
        normalized = sanitize_email(email)
    except ValidationError:
        return None
    if not isinstance(password, str) or not password.strip():
        return None

    user = session.query(User).filter(User.email == normalized).first()
    if user is None:
        verify_password(password, _dummy_hash())
        return None

    if verify_password(password, user.password_hash):
        return user
    return None


def delete_user(session: Session, user_id: int) -> bool:
    """
    Delete a user; owned records and the session go with it (ON DELETE CASCADE).

    Returns False if the user did not exist.
    """
    deleted = session.query(User).filter(User.id == user_id).delete(synchronize_session=False)
    session.commit()
    return deleted > 0


def list_users(session: Session) -> list[User]:
    return session.query(User).order_by(User.id).all()
