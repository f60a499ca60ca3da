# Overview: Service-layer operations for budgets; encapsulates business logic and database work.

from __future__ import annotations

from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..models import Budget
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, require_non_negative_amount, validate_payload
from .ownership import apply_patch, delete_owned, get_owned

BUDGET_POLICY = ModelValidationPolicy(
    writable_fields={"category", "amount", "start_date", "end_date"},
    required_on_create={"category", "amount"},
)


def _clean(payload, clock: Callable[[], datetime]) -> dict:
    """start_date defaults to now, end_date to start_date."""
    patch = validate_payload(model=Budget, payload=payload, policy=BUDGET_POLICY)
    require_non_negative_amount(patch)
    if patch.get("start_date") is None:
        patch["start_date"] = clock()
    if patch.get("end_date") is None:
        patch["end_date"] = patch["start_date"]
    if patch["end_date"] < patch["start_date"]:
        raise ValidationError("end_date must not be before start_date")
    return patch


def list_budgets(session: Session, user_id: int) -> list[Budget]:
    return (
        session.query(Budget)
        .filter(Budget.user_id == user_id)
        .order_by(Budget.start_date, Budget.id)
        .all()
    )


def get_budget(session: Session, user_id: int, budget_id: int) -> Budget:
    return get_owned(session, Budget, user_id, budget_id, "Budget")


def create_budget(session: Session, user_id: int, payload, clock: Callable[[], datetime] = utcnow) -> Budget:
    budget = Budget(user_id=user_id, **_clean(payload, clock))
    session.add(budget)
    session.commit()
    return budget


def update_budget(
    session: Session,
    user_id: int,
    budget_id: int,
    payload,
    clock: Callable[[], datetime] = utcnow,
) -> Budget:
    patch = _clean(payload, clock)
    budget = get_budget(session, user_id, budget_id)
    apply_patch(budget, patch)
    session.commit()
    return budget


def delete_budget(session: Session, user_id: int, budget_id: int) -> None:
    delete_owned(session, Budget, user_id, budget_id, "Budget")
