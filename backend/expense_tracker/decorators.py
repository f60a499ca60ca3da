# Overview: Request decorators for API routes; the session cookie is resolved to a user id here.

from datetime import datetime, timedelta
from functools import wraps

from flask import after_this_request, current_app, g, jsonify, request

from .errors import UnauthenticatedError
from .extensions import db
from .services.session_service import SessionManager
from .time_utils import utcnow


def get_clock():
    """The app-wide clock; tests swap it through the CLOCK config key."""
    return current_app.config.get("CLOCK") or utcnow


def session_manager() -> SessionManager:
    return SessionManager(
        db.session,
        ttl=timedelta(hours=current_app.config["SESSION_TTL_HOURS"]),
        clock=get_clock(),
    )


def cookie_name() -> str:
    return current_app.config["SESSION_COOKIE_NAME_AUTH"]


def set_session_cookie(response, token: str, expires_at: datetime):
    """HttpOnly, SameSite=Strict, Path=/, Secure on encrypted transport."""
    max_age = int((expires_at - get_clock()()).total_seconds())
    response.set_cookie(
        cookie_name(),
        token,
        max_age=max(max_age, 0),
        expires=expires_at,
        path="/",
        httponly=True,
        samesite="Strict",
        secure=request.is_secure,
    )
    return response


def clear_session_cookie(response):
    response.set_cookie(
        cookie_name(),
        "",
        max_age=0,
        expires=0,
        path="/",
        httponly=True,
        samesite="Strict",
        secure=request.is_secure,
    )
    return response


def require_auth(f):
    """
    Require a valid session cookie and establish the caller's identity.

    Sets g.user_id and passes it to the view as the `user_id` keyword. This is
    the only place a user id for scoping comes from.

    SECURITY: Returns 401 if:
    - No session cookie (or an empty one); the store is not touched
    - Unknown token (cookie is cleared)
    - Expired token (row deleted, cookie cleared)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = request.cookies.get(cookie_name())
        if not token:
            return jsonify({"error": "Unauthorized"}), 401

        manager = session_manager()
        try:
            validated = manager.validate(token)
        except UnauthenticatedError as exc:
            response = jsonify({"error": exc.message})
            response.status_code = 401
            return clear_session_cookie(response)

        validated = manager.maybe_refresh(validated)
        if validated.refreshed:
            @after_this_request
            def _reissue_cookie(response):
                return set_session_cookie(response, token, validated.expires_at)

        g.user_id = validated.user_id
        kwargs["user_id"] = validated.user_id
        return f(*args, **kwargs)

    return decorated_function
