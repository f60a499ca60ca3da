# Overview: Service-layer operations for expenses; CRUD, list filters, and per-user aggregates.

"""
Expenses are always read and written through the owner's user id.

Creating an expense debits its account in the same transaction: either the
expense row and the balance change both land, or neither does.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Mapping

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..models import Account, Expense
from ..time_utils import parse_timestamp, utcnow
from ..validation import ModelValidationPolicy, require_positive_amount, validate_payload
from .ownership import apply_patch, delete_owned, get_owned

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

AGGREGATE_QUERIES = ("totals_by_month", "totals_by_category")

CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"amount", "category", "note", "date", "account_id"},
    required_on_create={"amount", "category"},
)

# account_id is fixed at creation; it is accepted (and ignored) on update so
# clients can send back what they read.
UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"amount", "category", "note", "date"},
    required_on_create={"amount", "category"},
    ignored_fields={"id", "account_id"},
)


@dataclass
class ExpenseFilters:
    date_from: datetime | None = None
    date_to: datetime | None = None
    category: str | None = None
    amount_min: float | None = None
    amount_max: float | None = None
    q: str | None = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0


def _arg(args: Mapping, name: str) -> str | None:
    value = args.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _float_arg(args: Mapping, name: str) -> float | None:
    raw = _arg(args, name)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number")


def _timestamp_arg(args: Mapping, name: str) -> datetime | None:
    raw = _arg(args, name)
    if raw is None:
        return None
    try:
        return parse_timestamp(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a valid timestamp")


def parse_filters(args: Mapping, default_limit: int = DEFAULT_LIMIT, max_limit: int = MAX_LIMIT) -> ExpenseFilters:
    """
    Build filters from query-string args.

    limit: missing/invalid/<=0 -> default, capped at max. offset: missing/invalid/<0 -> 0.
    Malformed dates or amounts are a ValidationError.
    """
    try:
        limit = int(args.get("limit", ""))
    except ValueError:
        limit = default_limit
    if limit <= 0:
        limit = default_limit
    limit = min(limit, max_limit)

    try:
        offset = int(args.get("offset", ""))
    except ValueError:
        offset = 0
    offset = max(offset, 0)

    return ExpenseFilters(
        date_from=_timestamp_arg(args, "date_from"),
        date_to=_timestamp_arg(args, "date_to"),
        category=_arg(args, "category"),
        amount_min=_float_arg(args, "amount_min"),
        amount_max=_float_arg(args, "amount_max"),
        q=_arg(args, "q"),
        limit=limit,
        offset=offset,
    )


def list_expenses(session: Session, user_id: int, filters: ExpenseFilters | None = None) -> list[Expense]:
    filters = filters or ExpenseFilters()
    query = session.query(Expense).filter(Expense.user_id == user_id)

    if filters.date_from is not None:
        query = query.filter(Expense.date >= filters.date_from)
    if filters.date_to is not None:
        query = query.filter(Expense.date <= filters.date_to)
    if filters.category is not None:
        query = query.filter(Expense.category == filters.category)
    if filters.amount_min is not None:
        query = query.filter(Expense.amount >= filters.amount_min)
    if filters.amount_max is not None:
        query = query.filter(Expense.amount <= filters.amount_max)
    if filters.q is not None:
        query = query.filter(Expense.note.contains(filters.q, autoescape=True))

    return (
        query.order_by(Expense.date, Expense.id)
        .limit(filters.limit)
        .offset(filters.offset)
        .all()
    )


def get_expense(session: Session, user_id: int, expense_id: int) -> Expense:
    return get_owned(session, Expense, user_id, expense_id, "Expense")


def create_expense(
    session: Session,
    user_id: int,
    payload,
    clock: Callable[[], datetime] = utcnow,
) -> Expense:
    """
    Insert an expense and debit its account atomically.

    Raises ValidationError if account_id is missing, NotFoundError if the
    account is not the caller's.
    """
    patch = validate_payload(model=Expense, payload=payload, policy=CREATE_POLICY)
    require_positive_amount(patch)
    if not patch.get("account_id"):
        raise ValidationError("Account is required")
    if patch.get("date") is None:
        patch["date"] = clock()

    # Ownership check before any write
    get_owned(session, Account, user_id, patch["account_id"], "Account")

    expense = Expense(user_id=user_id, **patch)
    try:
        session.add(expense)
        session.query(Account).filter(
            Account.id == patch["account_id"],
            Account.user_id == user_id,
        ).update(
            {Account.balance: Account.balance - patch["amount"]},
            synchronize_session=False,
        )
        session.commit()
    except Exception:
        session.rollback()
        raise
    return expense


def update_expense(
    session: Session,
    user_id: int,
    expense_id: int,
    payload,
    clock: Callable[[], datetime] = utcnow,
) -> Expense:
    """Replace amount/category/note/date. The linked account balance is not re-adjusted."""
    patch = validate_payload(model=Expense, payload=payload, policy=UPDATE_POLICY)
    require_positive_amount(patch)
    if patch.get("date") is None:
        patch["date"] = clock()
    patch.setdefault("note", None)

    expense = get_expense(session, user_id, expense_id)
    apply_patch(expense, patch)
    session.commit()
    return expense


def delete_expense(session: Session, user_id: int, expense_id: int) -> None:
    delete_owned(session, Expense, user_id, expense_id, "Expense")


def totals_by_month(session: Session, user_id: int) -> dict[str, float]:
    month = func.strftime("%Y-%m", Expense.date).label("month")
    rows = (
        session.query(month, func.sum(Expense.amount).label("total"))
        .filter(Expense.user_id == user_id)
        .group_by("month")
        .order_by("month")
        .all()
    )
    return {row.month: float(row.total) for row in sorted(rows, key=lambda r: r.month)}


def totals_by_category(session: Session, user_id: int) -> dict[str, float]:
    rows = (
        session.query(Expense.category, func.sum(Expense.amount).label("total"))
        .filter(Expense.user_id == user_id)
        .group_by(Expense.category)
        .order_by(Expense.category)
        .all()
    )
    return {row.category: float(row.total) for row in sorted(rows, key=lambda r: r.category)}


def aggregate(session: Session, user_id: int, query_name: str | None) -> dict[str, float]:
    if query_name == "totals_by_month":
        return totals_by_month(session, user_id)
    if query_name == "totals_by_category":
        return totals_by_category(session, user_id)
    raise ValidationError("Invalid aggregate query")
