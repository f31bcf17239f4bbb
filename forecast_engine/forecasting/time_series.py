"""
Monthly time series for categorized expenses.

Forecasts are built from closed months only: a window requested for a
reference date ends with the month before the reference month.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional

from ..database.records import TransactionRecord
from ..database.repository import FinanceRepository

logger = logging.getLogger(__name__)


def month_start(value: date) -> date:
    """First day of the month containing `value`."""
    return date(value.year, value.month, 1)


def add_months(value: date, months: int) -> date:
    """First day of the month `months` away from `value`'s month."""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_end(value: date) -> date:
    return add_months(value, 1) - timedelta(days=1)


def period_key(value: date) -> str:
    """YYYY-MM label for a date."""
    return f"{value.year:04d}-{value.month:02d}"


def months_between(start: date, end: date) -> int:
    """Whole calendar months from `start`'s month to `end`'s month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


@dataclass(frozen=True)
class MonthlyAggregate:
    """Sum of a category's expenses in one calendar month."""
    category_id: Optional[str]
    period: str
    total_amount: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "category_id": self.category_id,
            "period": self.period,
            "total_amount": round(self.total_amount, 2)
        }


def fold_monthly(
    transactions: List[TransactionRecord],
    periods: List[str]
) -> Dict[str, float]:
    """Sum transactions into the given YYYY-MM buckets, zero-filled."""
    totals = {period: 0.0 for period in periods}
    for t in transactions:
        key = period_key(t.date)
        if key in totals:
            totals[key] += t.amount
    return totals


class TimeSeriesAggregator:
    """
    Builds zero-filled monthly expense histories from the transaction store.

    Example:
    ```python
    aggregator = TimeSeriesAggregator(repository)
    history = aggregator.monthly_history("user-1", "groceries", 6, date(2024, 7, 15))
    # six entries, 2024-01 .. 2024-06
    ```
    """

    def __init__(self, repository: FinanceRepository):
        self.repository = repository

    def monthly_history(
        self,
        user_id: str,
        category_id: str,
        months_back: int,
        reference_date: date
    ) -> List[MonthlyAggregate]:
        """
        Monthly sums for the `months_back` closed months before `reference_date`.

        Args:
            user_id: Owner of the transactions
            category_id: Expense category
            months_back: Window length in months
            reference_date: Any day of the first month excluded from the window

        Returns:
            Exactly `months_back` aggregates, oldest first
        """
        if months_back <= 0:
            return []

        window_end_month = add_months(reference_date, -1)
        window_start = add_months(reference_date, -months_back)
        periods = [period_key(add_months(window_start, i)) for i in range(months_back)]

        transactions = self.repository.list_expense_transactions(
            user_id,
            category_id=category_id,
            start=window_start,
            end=month_end(window_end_month)
        )
        totals = fold_monthly(transactions, periods)

        return [
            MonthlyAggregate(category_id=category_id, period=period, total_amount=totals[period])
            for period in periods
        ]

    def monthly_values(
        self,
        user_id: str,
        category_id: str,
        months_back: int,
        reference_date: date
    ) -> List[float]:
        return [
            m.total_amount
            for m in self.monthly_history(user_id, category_id, months_back, reference_date)
        ]

    def all_time_monthly_totals(self, user_id: str, category_id: str) -> Dict[str, float]:
        """Monthly sums over every month that has at least one transaction."""
        totals: Dict[str, float] = {}
        for t in self.repository.list_expense_transactions(user_id, category_id=category_id):
            key = period_key(t.date)
            totals[key] = totals.get(key, 0.0) + t.amount
        return totals
