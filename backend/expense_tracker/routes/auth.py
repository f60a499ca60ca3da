# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /auth/register: create user, start session (201)
- POST /auth/login: verify credentials, start session (200)
- POST /auth/logout: end session, always 204

The session token travels only in the HttpOnly `session_token` cookie.
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import clear_session_cookie, cookie_name, session_manager, set_session_cookie
from ..services import auth_service
from ..errors import ValidationError
from .common import read_json, store


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

CREDENTIAL_FIELDS = {"email", "password"}


def _read_credentials() -> dict:
    data = read_json()
    unknown = sorted(set(data) - CREDENTIAL_FIELDS)
    if unknown:
        raise ValidationError(f"Field not allowed: {unknown[0]}")
    return data


def _start_session(user, status_code: int):
    token, expires_at = session_manager().issue(user.id)
    response = jsonify(user.to_dict())
    response.status_code = status_code
    return set_session_cookie(response, token, expires_at)


@auth_bp.post("/register")
def register_route():
    """
    Register with {email, password}.

    400 invalid email/password, 409 email already registered.
    """
    data = _read_credentials()
    user = auth_service.register_user(store(), data.get("email"), data.get("password"))
    current_app.logger.info("Registered user %s", user.id)
    return _start_session(user, 201)


@auth_bp.post("/login")
def login_route():
    """
    Authenticate with {email, password} and create a session.

    Any previous session for the same user stops working.
    """
    data = _read_credentials()
    user = auth_service.authenticate(store(), data.get("email"), data.get("password"))
    if user is None:
        return jsonify({"error": "Invalid credentials"}), 401
    return _start_session(user, 200)


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke the session (if any) and clear the cookie.

    Idempotent: always 204, even without a cookie or with an unknown token.
    """
    token = request.cookies.get(cookie_name())
    try:
        session_manager().revoke(token)
    except Exception:
        current_app.logger.exception("Failed to delete session on logout")

    response = current_app.response_class(status=204)
    return clear_session_cookie(response)
