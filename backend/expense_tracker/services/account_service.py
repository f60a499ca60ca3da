# Overview: Service-layer operations for accounts; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy.orm import Session

from ..models import Account
from ..validation import ModelValidationPolicy, validate_payload
from .ownership import apply_patch, delete_owned, get_owned

ACCOUNT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "type", "balance"},
    required_on_create={"name", "type"},
)


def _clean(payload) -> dict:
    patch = validate_payload(model=Account, payload=payload, policy=ACCOUNT_POLICY)
    if patch.get("balance") is None:
        patch["balance"] = 0.0
    return patch


def list_accounts(session: Session, user_id: int) -> list[Account]:
    return session.query(Account).filter(Account.user_id == user_id).order_by(Account.id).all()


def get_account(session: Session, user_id: int, account_id: int) -> Account:
    return get_owned(session, Account, user_id, account_id, "Account")


def create_account(session: Session, user_id: int, payload) -> Account:
    account = Account(user_id=user_id, **_clean(payload))
    session.add(account)
    session.commit()
    return account


def update_account(session: Session, user_id: int, account_id: int, payload) -> Account:
    """Replace name/type/balance. Setting balance here is a manual adjustment."""
    patch = _clean(payload)
    account = get_account(session, user_id, account_id)
    apply_patch(account, patch)
    session.commit()
    return account


def delete_account(session: Session, user_id: int, account_id: int) -> None:
    """Linked expenses/incomes keep existing with account_id set to NULL."""
    delete_owned(session, Account, user_id, account_id, "Account")
