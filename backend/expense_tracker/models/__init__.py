from .auth import User, SessionToken
from .finance import Account, Expense, Income, Budget, RecurringExpense, FREQUENCIES

__all__ = [
    'User', 'SessionToken',
    'Account', 'Expense', 'Income', 'Budget', 'RecurringExpense', 'FREQUENCIES',
]
