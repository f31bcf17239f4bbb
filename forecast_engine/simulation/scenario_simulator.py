"""
Scenario Simulator

"What if" analysis: applies a discrete financial event to a 12-month
baseline balance projection and judges whether the balance stays positive.

The event is modelled as a per-month cash delta which is prefix-summed into
a cumulative deduction and subtracted from the baseline series.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ..database.records import TransactionType
from ..database.repository import FinanceRepository
from ..forecasting.time_series import add_months, month_end, month_start, months_between
from ..settings import EngineSettings

logger = logging.getLogger(__name__)

PROJECTION_MONTHS = 12
BASELINE_MONTHS = 3

ALL_GOALS_AT_RISK = "All goals (negative balance projected)"


class ScenarioType(Enum):
    BIG_PURCHASE = "BIG_PURCHASE"
    INCOME_LOSS = "INCOME_LOSS"
    EMERGENCY_EXPENSE = "EMERGENCY_EXPENSE"
    NEW_RECURRING = "NEW_RECURRING"
    DEBT_PAYMENT = "DEBT_PAYMENT"

    @property
    def is_lump_sum(self) -> bool:
        """One payment (optionally split), as opposed to a monthly effect."""
        return self in (ScenarioType.BIG_PURCHASE, ScenarioType.EMERGENCY_EXPENSE, ScenarioType.DEBT_PAYMENT)


class RecommendationType(Enum):
    CUT = "CUT"
    DELAY = "DELAY"
    INSTALLMENT = "INSTALLMENT"


@dataclass
class ScenarioInput:
    """
    A hypothetical event.

    Lump-sum types (BIG_PURCHASE, EMERGENCY_EXPENSE, DEBT_PAYMENT) use
    `installments`; monthly types (INCOME_LOSS, NEW_RECURRING) use `end_date`.
    """
    type: ScenarioType
    amount: float
    start_date: date
    installments: Optional[int] = None
    end_date: Optional[date] = None
    description: Optional[str] = None

    @property
    def is_split(self) -> bool:
        return self.type.is_lump_sum and self.installments is not None and self.installments > 1


@dataclass
class ActionRecommendation:
    type: RecommendationType
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type.value, "message": self.message}


@dataclass
class Baseline:
    avg_income: float
    avg_expense: float

    @property
    def monthly_surplus(self) -> float:
        return self.avg_income - self.avg_expense


@dataclass
class ScenarioResult:
    """Outcome of a simulated scenario"""
    is_viable: bool
    current_balance: float
    projected_balance: List[float]
    lowest_balance: float
    impacted_goals: List[str] = field(default_factory=list)
    recommendations: List[ActionRecommendation] = field(default_factory=list)
    monthly_surplus: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_viable": self.is_viable,
            "current_balance": round(self.current_balance, 2),
            "projected_balance": [round(b, 2) for b in self.projected_balance],
            "lowest_balance": round(self.lowest_balance, 2),
            "impacted_goals": self.impacted_goals,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "monthly_surplus": round(self.monthly_surplus, 2)
        }


def scenario_deltas(
    scenario: ScenarioInput,
    horizon: int,
    start_offset: int = 0,
    end_offset: Optional[int] = None
) -> np.ndarray:
    """
    Cash removed from the balance in each month of the horizon.

    Args:
        scenario: The event
        horizon: Number of months
        start_offset: Month index the event starts in
        end_offset: Last month index of a monthly effect (inclusive), None for open-ended
    """
    deltas = np.zeros(horizon)
    if start_offset >= horizon:
        return deltas

    if scenario.type.is_lump_sum:
        if scenario.is_split:
            installment = scenario.amount / scenario.installments
            for k in range(scenario.installments):
                if start_offset + k < horizon:
                    deltas[start_offset + k] = installment
        else:
            deltas[start_offset] = scenario.amount
    else:
        if end_offset is not None and end_offset < start_offset:
            # Ended before the window opens
            return deltas
        last = horizon - 1 if end_offset is None else min(end_offset, horizon - 1)
        deltas[start_offset:last + 1] = scenario.amount

    return deltas


class ScenarioSimulator:
    """
    Projects the effect of a financial event on the next 12 months.

    Example:
    ```python
    simulator = ScenarioSimulator(repository)
    result = simulator.simulate("user-1", ScenarioInput(
        type=ScenarioType.BIG_PURCHASE,
        amount=5000,
        installments=10,
        start_date=date.today()
    ))
    print(result.is_viable, result.lowest_balance)
    ```
    """

    def __init__(
        self,
        repository: FinanceRepository,
        settings: Optional[EngineSettings] = None,
        today: Callable[[], date] = date.today
    ):
        self.repository = repository
        self.settings = settings or EngineSettings()
        self.today = today

    def simulate(self, user_id: str, scenario: ScenarioInput) -> ScenarioResult:
        logger.info(f"Simulating scenario {scenario.type.value} for user {user_id}")

        current_month = month_start(self.today())
        baseline = self.baseline(user_id, current_month)
        current_balance = self.repository.total_balance(user_id)

        baseline_series = current_balance + baseline.monthly_surplus * np.arange(1, PROJECTION_MONTHS + 1)

        start_offset = max(0, months_between(current_month, scenario.start_date))
        end_offset = None
        if scenario.end_date is not None:
            end_offset = months_between(current_month, scenario.end_date)

        deltas = scenario_deltas(scenario, PROJECTION_MONTHS, start_offset, end_offset)
        series = baseline_series - np.cumsum(deltas)

        projected = [float(v) for v in series]
        lowest_balance = min(projected)
        is_viable = lowest_balance >= 0

        return ScenarioResult(
            is_viable=is_viable,
            current_balance=current_balance,
            projected_balance=projected,
            lowest_balance=lowest_balance,
            impacted_goals=self.detect_goal_impact(lowest_balance),
            recommendations=self.recommend(scenario, is_viable, lowest_balance),
            monthly_surplus=baseline.monthly_surplus
        )

    def compare(self, user_id: str, scenarios: List[ScenarioInput]) -> List[ScenarioResult]:
        """Simulate several scenarios independently, preserving input order."""
        return [self.simulate(user_id, s) for s in scenarios]

    def baseline(self, user_id: str, current_month: date) -> Baseline:
        """Average monthly income and expense over the last three closed months."""
        transactions = self.repository.list_transactions(
            user_id,
            start=add_months(current_month, -BASELINE_MONTHS),
            end=month_end(add_months(current_month, -1)),
            types=(TransactionType.INCOME, TransactionType.EXPENSE)
        )
        income = sum(t.amount for t in transactions if t.type == TransactionType.INCOME)
        expense = sum(t.amount for t in transactions if t.type == TransactionType.EXPENSE)
        return Baseline(avg_income=income / BASELINE_MONTHS, avg_expense=expense / BASELINE_MONTHS)

    def detect_goal_impact(self, lowest_balance: float) -> List[str]:
        # Coarse: a negative balance puts every goal funded from reserves at risk.
        if lowest_balance < 0:
            return [ALL_GOALS_AT_RISK]
        return []

    def recommend(
        self,
        scenario: ScenarioInput,
        is_viable: bool,
        lowest_balance: float
    ) -> List[ActionRecommendation]:
        if is_viable:
            return []

        recommendations = []
        if scenario.type.is_lump_sum:
            if scenario.is_split:
                message = "Increase the number of installments to reduce the monthly impact."
            else:
                message = "Consider paying in installments."
            recommendations.append(ActionRecommendation(RecommendationType.INSTALLMENT, message))

        recommendations.append(ActionRecommendation(
            RecommendationType.DELAY,
            "Your balance would turn negative. Consider postponing this decision."
        ))

        if abs(lowest_balance) < self.settings.cut_threshold:
            recommendations.append(ActionRecommendation(
                RecommendationType.CUT,
                "Small cuts in non-essential categories could make this viable."
            ))

        return recommendations
