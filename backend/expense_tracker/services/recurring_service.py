# Overview: Service-layer operations for recurring expenses; CRUD plus the background materializer.

"""
Recurring Expense Materializer

Each tick, every definition with next_due_date <= now (across all users)
is turned into one concrete expense dated at that due date, and its
next_due_date is advanced by exactly one period. Each definition is its own
transaction: a failure rolls back that definition only and the batch moves on.

A definition that is still overdue after one advance waits for the next tick.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..models import FREQUENCIES, Expense, RecurringExpense
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, require_positive_amount, validate_payload
from .ownership import apply_patch, delete_owned, get_owned

logger = logging.getLogger(__name__)

RECURRING_POLICY = ModelValidationPolicy(
    writable_fields={"amount", "category", "note", "frequency", "next_due_date"},
    required_on_create={"amount", "category", "frequency"},
)


def normalize_frequency(value) -> str:
    if not isinstance(value, str):
        raise ValidationError("Invalid frequency")
    freq = value.strip().lower()
    if freq not in FREQUENCIES:
        raise ValidationError("Invalid frequency")
    return freq


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(dt: datetime, n: int) -> datetime:
    """Calendar month add; the day is clipped to the target month's length (Jan 31 + 1 -> Feb 28/29)."""
    month = dt.month - 1 + n
    year = dt.year + month // 12
    month = month % 12 + 1
    day = min(dt.day, last_day_of_month(year, month))
    return dt.replace(year=year, month=month, day=day)


def advance_due_date(due: datetime, frequency: str) -> datetime:
    """
    Move a due date forward by one period.

    Raises ValueError for an unknown frequency.
    """
    freq = (frequency or "").strip().lower()
    if freq == "daily":
        return due + timedelta(days=1)
    if freq == "weekly":
        return due + timedelta(days=7)
    if freq == "monthly":
        return add_months(due, 1)
    if freq == "yearly":
        return add_months(due, 12)
    raise ValueError(f"unknown frequency: {frequency!r}")


def _clean(payload, clock: Callable[[], datetime]) -> dict:
    patch = validate_payload(model=RecurringExpense, payload=payload, policy=RECURRING_POLICY)
    require_positive_amount(patch)
    patch["frequency"] = normalize_frequency(patch.get("frequency"))
    if patch.get("next_due_date") is None:
        patch["next_due_date"] = clock()
    patch.setdefault("note", None)
    return patch


def list_recurring_expenses(session: Session, user_id: int) -> list[RecurringExpense]:
    return (
        session.query(RecurringExpense)
        .filter(RecurringExpense.user_id == user_id)
        .order_by(RecurringExpense.next_due_date, RecurringExpense.id)
        .all()
    )


def get_recurring_expense(session: Session, user_id: int, recurring_id: int) -> RecurringExpense:
    return get_owned(session, RecurringExpense, user_id, recurring_id, "Recurring expense")


def create_recurring_expense(
    session: Session,
    user_id: int,
    payload,
    clock: Callable[[], datetime] = utcnow,
) -> RecurringExpense:
    recurring = RecurringExpense(user_id=user_id, **_clean(payload, clock))
    session.add(recurring)
    session.commit()
    return recurring


def update_recurring_expense(
    session: Session,
    user_id: int,
    recurring_id: int,
    payload,
    clock: Callable[[], datetime] = utcnow,
) -> RecurringExpense:
    patch = _clean(payload, clock)
    recurring = get_recurring_expense(session, user_id, recurring_id)
    apply_patch(recurring, patch)
    session.commit()
    return recurring


def delete_recurring_expense(session: Session, user_id: int, recurring_id: int) -> None:
    delete_owned(session, RecurringExpense, user_id, recurring_id, "Recurring expense")


@dataclass
class MaterializationResult:
    processed: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


class RecurringExpenseMaterializer:
    """
    Converts due recurring definitions into expenses.

    Runs outside any request: it is tenant-wide and never raises to its
    caller for per-definition problems.
    """

    def __init__(self, session: Session, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.clock = clock

    def due_ids(self, now: datetime) -> list[int]:
        rows = (
            self.session.query(RecurringExpense.id)
            .filter(RecurringExpense.next_due_date <= now)
            .order_by(RecurringExpense.next_due_date, RecurringExpense.id)
            .all()
        )
        return [row.id for row in rows]

    def run_once(self) -> MaterializationResult:
        now = self.clock()
        result = MaterializationResult()

        # Snapshot ids first; each definition then gets its own transaction.
        for recurring_id in self.due_ids(now):
            try:
                if self._materialize(recurring_id, now):
                    result.processed.append(recurring_id)
            except Exception:
                self.session.rollback()
                logger.exception("Failed to materialize recurring expense %s", recurring_id)
                result.failed.append(recurring_id)

        logger.info(
            "Recurring expense tick at %s: %d materialized, %d failed",
            now.isoformat(), len(result.processed), len(result.failed),
        )
        return result

    def _materialize(self, recurring_id: int, now: datetime) -> bool:
        recurring = self.session.get(RecurringExpense, recurring_id)
        # Deleted or rescheduled since the snapshot
        if recurring is None or recurring.next_due_date > now:
            return False

        due = recurring.next_due_date
        self.session.add(Expense(
            user_id=recurring.user_id,
            amount=recurring.amount,
            category=recurring.category,
            note=recurring.note,
            date=due,
        ))
        recurring.next_due_date = advance_due_date(due, recurring.frequency)
        self.session.commit()
        return True
