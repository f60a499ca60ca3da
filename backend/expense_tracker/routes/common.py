# Overview: Helpers shared by the API blueprints.

from flask import request

from ..decorators import get_clock
from ..errors import ValidationError
from ..extensions import db


def read_json():
    """
    Parse the request body as a single JSON object.

    Raises ValidationError for an empty body, malformed JSON, or a
    non-object document.
    """
    if not request.get_data(cache=True):
        raise ValidationError("Request body must not be empty")
    payload = request.get_json(force=True, silent=True)
    if payload is None:
        raise ValidationError("Invalid JSON body")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a single JSON object")
    return payload


def store():
    """The request-scoped database session handed to services."""
    return db.session


def clock():
    return get_clock()
