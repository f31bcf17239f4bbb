"""
Plain records passed between the repository and the engine.

The engine never sees ORM objects: every read returns one of these
dataclasses so estimators can be exercised against any data source.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class TransactionType(Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class TransactionStatus(Enum):
    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"


class RecurrenceFrequency(Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


@dataclass(frozen=True)
class TransactionRecord:
    amount: float
    date: date
    category_id: Optional[str]
    type: TransactionType
    status: TransactionStatus = TransactionStatus.COMPLETED


@dataclass(frozen=True)
class AccountRecord:
    id: str
    current_balance: float


@dataclass(frozen=True)
class BudgetRecord:
    id: str
    category_id: str
    amount: float
    start_date: date
    end_date: Optional[date] = None
    category_name: Optional[str] = None
    period: str = "MONTHLY"


@dataclass(frozen=True)
class GoalRecord:
    id: str
    name: str
    target_amount: float
    target_date: Optional[date] = None


@dataclass(frozen=True)
class RecurringScheduleRecord:
    amount: float
    type: TransactionType
    frequency: RecurrenceFrequency
    start_date: date
    is_active: bool = True
    end_date: Optional[date] = None
