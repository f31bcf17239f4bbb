"""
Affordability Scorer

Answers "can I afford this purchase now?" with a 0-100 score built from six
independent sub-scores:

    balance  25   current balance against the price
    budget   20   remaining category budget against the price
    reserve  20   balance left after buying against fixed safety margins
    goal     15   12-month scenario simulation of the purchase
    history  10   placeholder, always full credit
    timing   10   late-month purchase with a low balance

The budget tiers are kept as designed: a remaining budget covering half the
price earns the same partial credit as one that fits within a 10% overflow.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..database.records import BudgetRecord
from ..database.repository import FinanceRepository
from ..forecasting.time_series import month_end, month_start
from ..settings import EngineSettings
from ..simulation.scenario_simulator import ScenarioInput, ScenarioSimulator, ScenarioType
from .weighted_scoring import AdditiveScoringEngine, ScoreComponent

logger = logging.getLogger(__name__)

BUDGET_OVERFLOW_TOLERANCE = 0.1
LATE_MONTH_DAY = 20


class AffordabilityStatus(Enum):
    CAN_AFFORD = "CAN_AFFORD"
    CAUTION = "CAUTION"
    NOT_RECOMMENDED = "NOT_RECOMMENDED"

    @property
    def color(self) -> str:
        """Badge color for display."""
        return {
            AffordabilityStatus.CAN_AFFORD: "#10B981",       # Green
            AffordabilityStatus.CAUTION: "#F59E0B",          # Yellow
            AffordabilityStatus.NOT_RECOMMENDED: "#EF4444"   # Red
        }[self]


STATUS_THRESHOLDS = {
    70: AffordabilityStatus.CAN_AFFORD.value,
    40: AffordabilityStatus.CAUTION.value,
    0: AffordabilityStatus.NOT_RECOMMENDED.value
}


@dataclass
class AffordabilityRequest:
    amount: float
    category_id: str
    installments: Optional[int] = None
    payment_method: Optional[str] = None


@dataclass
class AffordabilityContext:
    """Everything the sub-scores look at, read once per check."""
    user_id: str
    request: AffordabilityRequest
    balance: float
    budget: Optional[BudgetRecord]
    today: date


@dataclass
class AffordabilityResult:
    score: int
    status: AffordabilityStatus
    breakdown: Dict[str, float]
    recommendations: List[str] = field(default_factory=list)
    request: Dict[str, Any] = field(default_factory=dict)

    @property
    def badge_color(self) -> str:
        return self.status.color

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "status": self.status.value,
            "badge_color": self.badge_color,
            "breakdown": self.breakdown,
            "recommendations": self.recommendations,
            "request": self.request
        }


class AffordabilityScorer:
    """
    Weighted multi-factor affordability check.

    Any sub-score can be replaced by name:
    ```python
    scorer = AffordabilityScorer(repository, simulator,
                                 overrides={"history": lambda ctx: 5})
    result = scorer.check("user-1", AffordabilityRequest(amount=800, category_id="electronics"))
    ```
    """

    def __init__(
        self,
        repository: FinanceRepository,
        simulator: ScenarioSimulator,
        settings: Optional[EngineSettings] = None,
        today: Callable[[], date] = date.today,
        overrides: Optional[Dict[str, Callable[[AffordabilityContext], float]]] = None
    ):
        self.repository = repository
        self.simulator = simulator
        self.settings = settings or EngineSettings()
        self.today = today

        self.engine = AdditiveScoringEngine(
            components=[
                ScoreComponent("balance", 25, self.balance_score, "Current balance covers the price"),
                ScoreComponent("budget", 20, self.budget_score, "Remaining category budget"),
                ScoreComponent("reserve", 20, self.reserve_score, "Safety margin left after buying"),
                ScoreComponent("goal", 15, self.goal_score, "12-month projection stays positive"),
                ScoreComponent("history", 10, self.history_score, "Comparison with past purchases"),
                ScoreComponent("timing", 10, self.timing_score, "Late month with a low balance"),
            ],
            status_thresholds=STATUS_THRESHOLDS
        )
        for name, scorer in (overrides or {}).items():
            self.engine.override(name, scorer)

    def check(self, user_id: str, request: AffordabilityRequest) -> AffordabilityResult:
        context = AffordabilityContext(
            user_id=user_id,
            request=request,
            balance=self.repository.total_balance(user_id),
            budget=self.repository.find_budget(user_id, request.category_id, period="MONTHLY"),
            today=self.today()
        )

        result = self.engine.score(context, metadata={
            "installments": request.installments,
            "payment_method": request.payment_method
        })
        # Status follows the reported integer score, not the raw fractional total
        score = int(round(result.total))
        status = AffordabilityStatus(self.engine.determine_status(score))
        logger.info(
            f"Affordability for user {user_id}: {score} ({status.value}), "
            f"payment method {request.payment_method or 'unspecified'}"
        )

        return AffordabilityResult(
            score=score,
            status=status,
            breakdown=result.component_scores,
            recommendations=self.recommendations(status, result.component_scores),
            request=result.metadata
        )

    # --- Sub-scores ---

    def balance_score(self, ctx: AffordabilityContext) -> float:
        amount = ctx.request.amount
        if ctx.balance >= amount:
            return 25
        if ctx.balance >= amount * 0.8:
            return 15
        if ctx.balance >= amount * 0.5:
            return 5
        return 0

    def budget_score(self, ctx: AffordabilityContext) -> float:
        if ctx.budget is None:
            return 20

        amount = ctx.request.amount
        remaining = ctx.budget.amount - self._spent_this_month(ctx)
        if remaining >= amount:
            return 20
        if remaining >= amount * 0.5:
            return 10
        if remaining + ctx.budget.amount * BUDGET_OVERFLOW_TOLERANCE >= amount:
            return 10
        return 0

    def reserve_score(self, ctx: AffordabilityContext) -> float:
        post_balance = ctx.balance - ctx.request.amount
        if post_balance <= 0:
            return 0
        if post_balance > self.settings.reserve_safe_margin:
            return 20
        if post_balance > self.settings.reserve_min_margin:
            return 10
        return 0

    def goal_score(self, ctx: AffordabilityContext) -> float:
        simulation = self.simulator.simulate(ctx.user_id, ScenarioInput(
            type=ScenarioType.BIG_PURCHASE,
            amount=ctx.request.amount,
            start_date=ctx.today,
            installments=ctx.request.installments,
            description="Affordability check"
        ))
        if simulation.is_viable and not simulation.impacted_goals:
            return 15
        if simulation.is_viable:
            return 10
        return 0

    def history_score(self, ctx: AffordabilityContext) -> float:
        return 10

    def timing_score(self, ctx: AffordabilityContext) -> float:
        if ctx.today.day > LATE_MONTH_DAY and ctx.balance < self.settings.timing_low_balance:
            return 0
        return 10

    # --- Helpers ---

    def _spent_this_month(self, ctx: AffordabilityContext) -> float:
        transactions = self.repository.list_expense_transactions(
            ctx.user_id,
            category_id=ctx.request.category_id,
            start=month_start(ctx.today),
            end=month_end(ctx.today)
        )
        return sum(t.amount for t in transactions)

    def recommendations(self, status: AffordabilityStatus, breakdown: Dict[str, float]) -> List[str]:
        recs = []
        if status == AffordabilityStatus.CAN_AFFORD:
            recs.append("Go ahead! The impact on your finances is low.")
        elif status == AffordabilityStatus.CAUTION:
            if breakdown["balance"] < 10:
                recs.append("Your balance is low for this purchase.")
            if breakdown["budget"] < 10:
                recs.append("This purchase will exceed your category budget.")
            recs.append("Consider paying in installments or waiting until next month.")
        else:
            recs.append("Not recommended right now.")
            if breakdown["goal"] < 5:
                recs.append("This purchase puts your goals at risk.")
            recs.append("If possible, postpone this purchase to avoid debt.")
        return recs
