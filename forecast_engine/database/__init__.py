"""
Database Module for the Forecast Engine

SQLAlchemy models and the repository the engine reads through.
"""

from .models import (
    db,
    User,
    Account,
    Category,
    Transaction,
    Budget,
    Goal,
    RecurringTransaction,
    CategoryPrediction
)
from .records import (
    TransactionType,
    TransactionStatus,
    RecurrenceFrequency,
    TransactionRecord,
    AccountRecord,
    BudgetRecord,
    GoalRecord,
    RecurringScheduleRecord
)
from .repository import FinanceRepository, SQLAlchemyFinanceRepository

__all__ = [
    'db',
    'User',
    'Account',
    'Category',
    'Transaction',
    'Budget',
    'Goal',
    'RecurringTransaction',
    'CategoryPrediction',
    'TransactionType',
    'TransactionStatus',
    'RecurrenceFrequency',
    'TransactionRecord',
    'AccountRecord',
    'BudgetRecord',
    'GoalRecord',
    'RecurringScheduleRecord',
    'FinanceRepository',
    'SQLAlchemyFinanceRepository',
]
