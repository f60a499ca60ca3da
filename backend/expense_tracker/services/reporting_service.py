# Overview: Service-layer operations for reports; monthly income vs. expense.

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import Expense, Income


def _monthly_totals(session: Session, model, user_id: int) -> dict[str, float]:
    month = func.strftime("%Y-%m", model.date).label("month")
    rows = (
        session.query(month, func.sum(model.amount).label("total"))
        .filter(model.user_id == user_id)
        .group_by("month")
        .all()
    )
    return {row.month: float(row.total) for row in rows}


def income_vs_expense(session: Session, user_id: int) -> list[dict]:
    """
    One entry per month that has any income or expense, oldest first.

    A month with only one side reports 0 for the other.
    """
    incomes = _monthly_totals(session, Income, user_id)
    expenses = _monthly_totals(session, Expense, user_id)

    months = sorted(set(incomes) | set(expenses))
    return [
        {
            "month": month,
            "income": incomes.get(month, 0.0),
            "expense": expenses.get(month, 0.0),
        }
        for month in months
    ]
