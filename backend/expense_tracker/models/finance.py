from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

FREQUENCIES = ("daily", "weekly", "monthly", "yearly")


def _owner_fk():
    return db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )


def _account_fk():
    return db.Column(
        db.Integer, db.ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True, index=True,
    )


class Account(db.Model):
    """Money container (cash, bank, e-wallet). Balance moves with linked expenses/incomes."""
    __tablename__ = "accounts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    type = db.Column(db.String(64), nullable=False)
    balance = db.Column(db.Float, nullable=False, default=0.0)
    user_id = _owner_fk()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "balance": self.balance,
        }


class Expense(db.Model):
    __tablename__ = "expenses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    amount = db.Column(db.Float, nullable=False)
    category = db.Column(db.String(120), nullable=False)
    note = db.Column(db.Text, nullable=True)
    date = db.Column(db.DateTime, nullable=False, index=True)
    user_id = _owner_fk()
    account_id = _account_fk()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": self.amount,
            "category": self.category,
            "note": self.note or "",
            "date": to_utc_z(self.date),
            "account_id": self.account_id,
        }


class Income(db.Model):
    __tablename__ = "incomes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    amount = db.Column(db.Float, nullable=False)
    source = db.Column(db.String(120), nullable=False)
    note = db.Column(db.Text, nullable=True)
    date = db.Column(db.DateTime, nullable=False, index=True)
    user_id = _owner_fk()
    account_id = _account_fk()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": self.amount,
            "source": self.source,
            "note": self.note or "",
            "date": to_utc_z(self.date),
            "account_id": self.account_id,
        }


class Budget(db.Model):
    __tablename__ = "budgets"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(120), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    user_id = _owner_fk()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "amount": self.amount,
            "start_date": to_utc_z(self.start_date),
            "end_date": to_utc_z(self.end_date),
        }


class RecurringExpense(db.Model):
    """
    Template for an expense that repeats on a fixed calendar frequency.

    next_due_date is advanced only by the materializer or an explicit
    user update.
    """
    __tablename__ = "recurring_expenses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    amount = db.Column(db.Float, nullable=False)
    category = db.Column(db.String(120), nullable=False)
    note = db.Column(db.Text, nullable=True)
    frequency = db.Column(db.String(16), nullable=False)
    next_due_date = db.Column(db.DateTime, nullable=False, index=True)
    user_id = _owner_fk()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": self.amount,
            "category": self.category,
            "note": self.note or "",
            "frequency": self.frequency,
            "next_due_date": to_utc_z(self.next_due_date),
        }
