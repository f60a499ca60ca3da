# Overview: Error taxonomy shared by services and routes; each class maps to one HTTP status.

from __future__ import annotations


class ServiceError(Exception):
    """Base for errors that carry a client-safe message and an HTTP status."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError, ValueError):
    """400-level input problem."""
    status_code = 400


class UnauthenticatedError(ServiceError):
    """401: missing, unknown, or revoked session."""
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class SessionExpiredError(UnauthenticatedError):
    """401: session row existed but its expiry has passed (row already removed)."""

    def __init__(self, message: str = "Session expired"):
        super().__init__(message)


class NotFoundError(ServiceError):
    """404: record absent or owned by another user."""
    status_code = 404


class ConflictError(ServiceError, ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""
    status_code = 409
