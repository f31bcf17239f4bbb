"""
Cash Flow Projector

Month-by-month balance projection combining recurring schedules (the fixed
side) with per-category expense predictions (the variable side).

Known simplifications:
- Variable income is not modelled and is always 0.
- DAILY recurring schedules are not counted in the fixed totals.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..database.records import RecurrenceFrequency, RecurringScheduleRecord, TransactionType
from ..database.repository import FinanceRepository
from ..settings import MAX_PROJECTION_MONTHS
from .expense_predictor import ExpensePredictor
from .time_series import add_months, month_end, month_start, period_key

logger = logging.getLogger(__name__)

WEEKS_PER_MONTH = 4


class ProjectionScenario(Enum):
    """Which edge of the prediction band drives the primary projection"""
    REALISTIC = "REALISTIC"        # Point predictions
    OPTIMISTIC = "OPTIMISTIC"      # Prediction minus one deviation
    PESSIMISTIC = "PESSIMISTIC"    # Prediction plus one deviation


@dataclass
class FlowBreakdown:
    fixed: float
    variable: float
    total: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "fixed": round(self.fixed, 2),
            "variable": round(self.variable, 2),
            "total": round(self.total, 2)
        }


@dataclass
class MonthlyProjection:
    """Projected flows and balances for one month"""
    month: str
    income: FlowBreakdown
    expenses: FlowBreakdown
    period_balance: float
    accumulated_balance: float
    optimistic_balance: float
    pessimistic_balance: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "income": self.income.to_dict(),
            "expenses": self.expenses.to_dict(),
            "balance": {
                "period": round(self.period_balance, 2),
                "accumulated": round(self.accumulated_balance, 2)
            },
            "scenario_bounds": {
                "optimistic": round(self.optimistic_balance, 2),
                "pessimistic": round(self.pessimistic_balance, 2)
            }
        }


@dataclass
class CashFlowProjection:
    """Result of a cash-flow projection"""
    initial_balance: float
    months: int
    scenario: ProjectionScenario
    data: List[MonthlyProjection] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "initial_balance": round(self.initial_balance, 2),
            "months": self.months,
            "scenario": self.scenario.value,
            "data": [m.to_dict() for m in self.data]
        }


@dataclass
class BalanceForecast:
    forecast_month: str
    predicted_balance: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "forecast_month": self.forecast_month,
            "predicted_balance": round(self.predicted_balance, 2)
        }


def schedule_amount_for_month(schedule: RecurringScheduleRecord, target_month: date) -> float:
    """
    Amount a recurring schedule contributes to a month.

    WEEKLY counts four occurrences, YEARLY only lands in its start month,
    DAILY is not modelled. Schedules not yet started or already ended
    contribute nothing.
    """
    if schedule.start_date > month_end(target_month):
        return 0.0
    if schedule.end_date and schedule.end_date < target_month:
        return 0.0

    if schedule.frequency == RecurrenceFrequency.WEEKLY:
        return schedule.amount * WEEKS_PER_MONTH
    if schedule.frequency == RecurrenceFrequency.MONTHLY:
        return schedule.amount
    if schedule.frequency == RecurrenceFrequency.YEARLY:
        return schedule.amount if schedule.start_date.month == target_month.month else 0.0
    return 0.0


class CashFlowProjector:
    """
    Multi-month cash-flow projection for a user.

    Example:
    ```python
    projector = CashFlowProjector(repository, predictor)
    projection = projector.calculate_cash_flow("user-1", months=6)
    for month in projection.data:
        print(month.month, month.accumulated_balance)
    ```
    """

    def __init__(
        self,
        repository: FinanceRepository,
        predictor: ExpensePredictor,
        today: Optional[Callable[[], date]] = None
    ):
        self.repository = repository
        self.predictor = predictor
        self.today = today or predictor.today

    def calculate_cash_flow(
        self,
        user_id: str,
        months: int = 6,
        scenario: ProjectionScenario = ProjectionScenario.REALISTIC
    ) -> CashFlowProjection:
        """
        Project income, expenses and balances month by month.

        Args:
            user_id: User to project
            months: Number of months, starting with the current one (capped at 24)
            scenario: Which variable-expense estimate drives the primary balance

        Returns:
            CashFlowProjection with one MonthlyProjection per month
        """
        months = max(1, min(months, MAX_PROJECTION_MONTHS))
        initial_balance = self.repository.total_balance(user_id)
        variable_category_ids = self.predictor.detect_variable_categories(user_id)
        schedules = self.repository.list_active_recurring_schedules(user_id)

        daily = [s for s in schedules if s.frequency == RecurrenceFrequency.DAILY]
        if daily:
            logger.warning(f"{len(daily)} DAILY recurring schedule(s) for user {user_id} are not projected")

        logger.info(
            f"Projecting {months} months ({scenario.value}) for user {user_id} "
            f"with {len(variable_category_ids)} variable categories"
        )

        start_month = month_start(self.today())
        accumulated = initial_balance
        optimistic_accumulated = initial_balance
        pessimistic_accumulated = initial_balance
        data = []

        for i in range(months):
            target_month = add_months(start_month, i)

            fixed_income, fixed_expenses = self._fixed_flows(schedules, target_month)
            variable_income = 0.0
            realistic, optimistic, pessimistic = self._variable_expenses(
                user_id, variable_category_ids, target_month
            )
            variable_expenses = {
                ProjectionScenario.REALISTIC: realistic,
                ProjectionScenario.OPTIMISTIC: optimistic,
                ProjectionScenario.PESSIMISTIC: pessimistic
            }[scenario]

            total_income = fixed_income + variable_income
            total_expenses = fixed_expenses + variable_expenses
            period_balance = total_income - total_expenses
            accumulated += period_balance

            optimistic_accumulated += total_income - (fixed_expenses + optimistic)
            pessimistic_accumulated += total_income - (fixed_expenses + pessimistic)

            data.append(MonthlyProjection(
                month=period_key(target_month),
                income=FlowBreakdown(fixed=fixed_income, variable=variable_income, total=total_income),
                expenses=FlowBreakdown(fixed=fixed_expenses, variable=variable_expenses, total=total_expenses),
                period_balance=period_balance,
                accumulated_balance=accumulated,
                optimistic_balance=optimistic_accumulated,
                pessimistic_balance=pessimistic_accumulated
            ))

        return CashFlowProjection(
            initial_balance=initial_balance,
            months=months,
            scenario=scenario,
            data=data
        )

    def balance_forecast(self, user_id: str, months: int = 1) -> BalanceForecast:
        """Accumulated balance at the end of the last projected month."""
        projection = self.calculate_cash_flow(user_id, months)
        last = projection.data[-1]
        return BalanceForecast(forecast_month=last.month, predicted_balance=last.accumulated_balance)

    def _fixed_flows(
        self,
        schedules: List[RecurringScheduleRecord],
        target_month: date
    ) -> Tuple[float, float]:
        income = 0.0
        expenses = 0.0
        for schedule in schedules:
            amount = schedule_amount_for_month(schedule, target_month)
            if schedule.type == TransactionType.INCOME:
                income += amount
            elif schedule.type == TransactionType.EXPENSE:
                expenses += amount
        return income, expenses

    def _variable_expenses(
        self,
        user_id: str,
        category_ids: List[str],
        target_month: date
    ) -> Tuple[float, float, float]:
        """Realistic, optimistic and pessimistic variable expense for a month."""
        realistic = 0.0
        optimistic = 0.0
        pessimistic = 0.0
        for category_id in category_ids:
            prediction = self.predictor.predict_category_expense(user_id, category_id, target_month)
            if prediction is None:
                continue
            realistic += prediction.predicted_amount
            optimistic += prediction.predicted_amount - prediction.deviation
            pessimistic += prediction.predicted_amount + prediction.deviation
        return realistic, optimistic, pessimistic
