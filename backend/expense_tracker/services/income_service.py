# Overview: Service-layer operations for incomes; credits the linked account on creation.

from __future__ import annotations

from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..models import Account, Income
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, require_positive_amount, validate_payload
from .ownership import apply_patch, delete_owned, get_owned

CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"amount", "source", "note", "date", "account_id"},
    required_on_create={"amount", "source"},
)

UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"amount", "source", "note", "date"},
    required_on_create={"amount", "source"},
    ignored_fields={"id", "account_id"},
)


def list_incomes(session: Session, user_id: int) -> list[Income]:
    return (
        session.query(Income)
        .filter(Income.user_id == user_id)
        .order_by(Income.date, Income.id)
        .all()
    )


def get_income(session: Session, user_id: int, income_id: int) -> Income:
    return get_owned(session, Income, user_id, income_id, "Income")


def create_income(
    session: Session,
    user_id: int,
    payload,
    clock: Callable[[], datetime] = utcnow,
) -> Income:
    """Insert an income and credit its account in one transaction."""
    patch = validate_payload(model=Income, payload=payload, policy=CREATE_POLICY)
    require_positive_amount(patch)
    if not patch.get("account_id"):
        raise ValidationError("Account is required")
    if patch.get("date") is None:
        patch["date"] = clock()

    get_owned(session, Account, user_id, patch["account_id"], "Account")

    income = Income(user_id=user_id, **patch)
    try:
        session.add(income)
        session.query(Account).filter(
            Account.id == patch["account_id"],
            Account.user_id == user_id,
        ).update(
            {Account.balance: Account.balance + patch["amount"]},
            synchronize_session=False,
        )
        session.commit()
    except Exception:
        session.rollback()
        raise
    return income


def update_income(
    session: Session,
    user_id: int,
    income_id: int,
    payload,
    clock: Callable[[], datetime] = utcnow,
) -> Income:
    patch = validate_payload(model=Income, payload=payload, policy=UPDATE_POLICY)
    require_positive_amount(patch)
    if patch.get("date") is None:
        patch["date"] = clock()
    patch.setdefault("note", None)

    income = get_income(session, user_id, income_id)
    apply_patch(income, patch)
    session.commit()
    return income


def delete_income(session: Session, user_id: int, income_id: int) -> None:
    delete_owned(session, Income, user_id, income_id, "Income")
