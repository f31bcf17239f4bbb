"""
Read interfaces the engine consumes, and their SQLAlchemy implementation.

Every method is a plain read except `save_prediction`, which upserts the
prediction cache keyed by (user_id, category_id, month).
"""

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError

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
    AccountRecord,
    BudgetRecord,
    GoalRecord,
    RecurrenceFrequency,
    RecurringScheduleRecord,
    TransactionRecord,
    TransactionStatus,
    TransactionType
)

logger = logging.getLogger(__name__)


class FinanceRepository(ABC):
    """Collaborator reads used by the forecasting and simulation engine."""

    @abstractmethod
    def list_transactions(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        category_id: Optional[str] = None,
        types: Iterable[TransactionType] = (TransactionType.EXPENSE,)
    ) -> List[TransactionRecord]:
        """Completed transactions of the given types, `start` and `end` inclusive."""

    def list_expense_transactions(
        self,
        user_id: str,
        category_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[TransactionRecord]:
        return self.list_transactions(
            user_id, start=start, end=end, category_id=category_id,
            types=(TransactionType.EXPENSE,)
        )

    @abstractmethod
    def list_category_ids(self, user_id: str, type: TransactionType = TransactionType.EXPENSE) -> List[str]:
        pass

    @abstractmethod
    def list_active_accounts(self, user_id: str) -> List[AccountRecord]:
        pass

    @abstractmethod
    def find_budget(self, user_id: str, category_id: str, period: str = "MONTHLY") -> Optional[BudgetRecord]:
        """Most recent budget for the category, or None."""

    @abstractmethod
    def list_budgets(self, user_id: str, period: str = "MONTHLY") -> List[BudgetRecord]:
        pass

    @abstractmethod
    def list_active_goals(self, user_id: str) -> List[GoalRecord]:
        pass

    @abstractmethod
    def list_active_recurring_schedules(self, user_id: str) -> List[RecurringScheduleRecord]:
        pass

    @abstractmethod
    def list_user_ids(self) -> List[str]:
        pass

    @abstractmethod
    def save_prediction(self, user_id: str, prediction) -> None:
        pass

    @abstractmethod
    def get_cached_prediction(self, user_id: str, category_id: str, month: date) -> Optional[Dict[str, Any]]:
        pass

    def total_balance(self, user_id: str) -> float:
        """Sum of active account balances."""
        return sum(a.current_balance for a in self.list_active_accounts(user_id))


class SQLAlchemyFinanceRepository(FinanceRepository):
    """
    FinanceRepository backed by the Flask-SQLAlchemy models.

    Must be used inside an application context.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def list_transactions(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        category_id: Optional[str] = None,
        types: Iterable[TransactionType] = (TransactionType.EXPENSE,)
    ) -> List[TransactionRecord]:
        query = self.session.query(Transaction).filter(
            Transaction.user_id == user_id,
            Transaction.status == TransactionStatus.COMPLETED.value,
            Transaction.type.in_([t.value for t in types])
        )
        if category_id is not None:
            query = query.filter(Transaction.category_id == category_id)
        if start is not None:
            query = query.filter(Transaction.date >= start)
        if end is not None:
            query = query.filter(Transaction.date <= end)

        return [
            TransactionRecord(
                amount=float(t.amount),
                date=t.date,
                category_id=t.category_id,
                type=TransactionType(t.type),
                status=TransactionStatus(t.status)
            )
            for t in query.order_by(Transaction.date).all()
        ]

    def list_category_ids(self, user_id: str, type: TransactionType = TransactionType.EXPENSE) -> List[str]:
        rows = self.session.query(Category.id)\
                           .filter_by(user_id=user_id, type=type.value)\
                           .order_by(Category.name)\
                           .all()
        return [row.id for row in rows]

    def list_active_accounts(self, user_id: str) -> List[AccountRecord]:
        accounts = self.session.query(Account).filter_by(user_id=user_id, is_active=True).all()
        return [AccountRecord(id=a.id, current_balance=float(a.current_balance or 0)) for a in accounts]

    def find_budget(self, user_id: str, category_id: str, period: str = "MONTHLY") -> Optional[BudgetRecord]:
        budget = self.session.query(Budget)\
                             .filter_by(user_id=user_id, category_id=category_id, period=period)\
                             .order_by(Budget.start_date.desc())\
                             .first()
        return self._budget_record(budget) if budget else None

    def list_budgets(self, user_id: str, period: str = "MONTHLY") -> List[BudgetRecord]:
        budgets = self.session.query(Budget)\
                              .filter_by(user_id=user_id, period=period)\
                              .order_by(Budget.start_date.desc())\
                              .all()
        return [self._budget_record(b) for b in budgets]

    def list_active_goals(self, user_id: str) -> List[GoalRecord]:
        goals = self.session.query(Goal).filter_by(user_id=user_id, status='ACTIVE').all()
        return [
            GoalRecord(
                id=g.id,
                name=g.name,
                target_amount=float(g.target_amount),
                target_date=g.target_date
            )
            for g in goals
        ]

    def list_active_recurring_schedules(self, user_id: str) -> List[RecurringScheduleRecord]:
        schedules = self.session.query(RecurringTransaction)\
                                .filter_by(user_id=user_id, is_active=True)\
                                .all()
        return [
            RecurringScheduleRecord(
                amount=float(r.amount),
                type=TransactionType(r.type),
                frequency=RecurrenceFrequency(r.frequency),
                start_date=r.start_date,
                is_active=r.is_active,
                end_date=r.end_date
            )
            for r in schedules
        ]

    def list_user_ids(self) -> List[str]:
        return [row.id for row in self.session.query(User.id).order_by(User.created_at).all()]

    def save_prediction(self, user_id: str, prediction) -> None:
        try:
            self._upsert_prediction(user_id, prediction)
            self.session.commit()
        except IntegrityError:
            # Another writer inserted the same key first; update its row instead.
            self.session.rollback()
            logger.warning(
                f"Concurrent insert for prediction {prediction.category_id}/{prediction.month}, retrying as update"
            )
            self._upsert_prediction(user_id, prediction)
            self.session.commit()

    def get_cached_prediction(self, user_id: str, category_id: str, month: date) -> Optional[Dict[str, Any]]:
        row = self.session.query(CategoryPrediction)\
                          .filter_by(user_id=user_id, category_id=category_id, month=month)\
                          .first()
        return row.to_dict() if row else None

    def _upsert_prediction(self, user_id: str, prediction) -> None:
        row = self.session.query(CategoryPrediction).filter_by(
            user_id=user_id,
            category_id=prediction.category_id,
            month=prediction.month
        ).first()

        if row is None:
            row = CategoryPrediction(
                user_id=user_id,
                category_id=prediction.category_id,
                month=prediction.month
            )
            self.session.add(row)

        row.predicted = prediction.predicted_amount
        row.confidence = prediction.confidence
        row.lower_bound = prediction.lower_bound
        row.upper_bound = prediction.upper_bound
        row.factors = prediction.factors.to_dict()
        row.updated_at = datetime.utcnow()
        self.session.flush()

    @staticmethod
    def _budget_record(budget: Budget) -> BudgetRecord:
        return BudgetRecord(
            id=budget.id,
            category_id=budget.category_id,
            amount=float(budget.amount),
            start_date=budget.start_date,
            end_date=budget.end_date,
            category_name=budget.category.name if budget.category else None,
            period=budget.period
        )
