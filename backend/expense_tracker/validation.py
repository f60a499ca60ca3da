from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import DateTime, Float, Integer, String, Text

from .errors import ValidationError
from .time_utils import coerce_timestamp


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - ignored_fields: accepted in the body but never written (e.g. echoed "id")
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    ignored_fields: set[str] = field(default_factory=lambda: {"id"})


def _columns_by_key(model) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Floats (amounts, balances) - finite numbers only, bool is not a number here
    if isinstance(coltype, Float):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                raise ValidationError(f"{col.key} must be a number")
        else:
            raise ValidationError(f"{col.key} must be a number")
        if not math.isfinite(number):
            raise ValidationError(f"{col.key} must be a finite number")
        return number

    # Integers (foreign keys)
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        raise ValidationError(f"{col.key} must be an integer")

    # Datetimes (canonical, RFC3339, RFC3339-nano, date-only; normalized to UTC)
    if isinstance(coltype, DateTime):
        try:
            dt = coerce_timestamp(value)
        except ValueError:
            raise ValidationError(f"{col.key} must be a valid timestamp")
        if dt is None:
            raise ValidationError(f"{col.key} must be a valid timestamp")
        return dt

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if not isinstance(value, str):
            raise ValidationError(f"{col.key} must be a string")
        return value.strip()

    return value


def validate_payload(
    *,
    model,
    payload: Any,
    policy: ModelValidationPolicy,
    partial: bool = False,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.
    """
    if payload is None:
        raise ValidationError("Request body must not be empty")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a single JSON object")

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k in policy.ignored_fields:
            continue
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) is None)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    patch: dict = {}

    for k, raw in payload.items():
        if k in policy.ignored_fields:
            continue
        col = cols[k]

        if raw is None:
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def require_positive_amount(patch: dict, field_name: str = "amount") -> None:
    amount = patch.get(field_name)
    if amount is None or amount <= 0:
        raise ValidationError(f"{field_name} must be greater than 0")


def require_non_negative_amount(patch: dict, field_name: str = "amount") -> None:
    amount = patch.get(field_name)
    if amount is None or amount < 0:
        raise ValidationError(f"{field_name} must be >= 0")
