"""
Inflation Impact Projector

Compounds an annual inflation rate and a salary adjustment against
purchasing power, goal targets and monthly budgets.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from ..database.repository import FinanceRepository
from ..settings import EngineSettings

logger = logging.getLogger(__name__)

REFERENCE_VALUE = 1000.0
DAYS_PER_YEAR = 365.25
LOW_REAL_GAIN = 1.0


@dataclass
class InflationSimulationInput:
    inflation_rate: float        # Annual, percent
    salary_adjustment: float     # Annual, percent
    period_months: int = 12


@dataclass
class PurchasingPowerPoint:
    month: int
    nominal_value: float
    real_value: float

    def to_dict(self) -> Dict[str, float]:
        return {"month": self.month, "nominal_value": self.nominal_value, "real_value": self.real_value}


@dataclass
class GoalInflationImpact:
    goal_id: str
    name: str
    original_target: float
    adjusted_target: float
    difference: float
    years_to_target: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "goal_id": self.goal_id,
            "name": self.name,
            "original_target": self.original_target,
            "adjusted_target": self.adjusted_target,
            "difference": self.difference,
            "years_to_target": self.years_to_target
        }


@dataclass
class BudgetInflationImpact:
    budget_id: str
    category_name: Optional[str]
    current_amount: float
    projected_amount: float
    monthly_increase: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "budget_id": self.budget_id,
            "category_name": self.category_name,
            "current_amount": self.current_amount,
            "projected_amount": self.projected_amount,
            "monthly_increase": self.monthly_increase
        }


@dataclass
class InflationImpact:
    """Result of an inflation simulation"""
    real_gain_rate: float
    purchasing_power_lost: float
    purchasing_power_projections: List[PurchasingPowerPoint] = field(default_factory=list)
    affected_goals: List[GoalInflationImpact] = field(default_factory=list)
    budget_impacts: List[BudgetInflationImpact] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "real_gain_rate": self.real_gain_rate,
            "purchasing_power_lost": self.purchasing_power_lost,
            "purchasing_power_projections": [p.to_dict() for p in self.purchasing_power_projections],
            "affected_goals": [g.to_dict() for g in self.affected_goals],
            "budget_impacts": [b.to_dict() for b in self.budget_impacts],
            "recommendations": self.recommendations
        }


PRESET_SCENARIOS = [
    {
        "title": "Optimistic",
        "inflation_rate": 3.0,
        "salary_adjustment": 6.0,
        "description": "Controlled inflation with a 3% real gain."
    },
    {
        "title": "Current (realistic)",
        "inflation_rate": 4.62,
        "salary_adjustment": 4.62,
        "description": "Salary adjustment only replaces inflation."
    },
    {
        "title": "Pessimistic",
        "inflation_rate": 8.0,
        "salary_adjustment": 2.0,
        "description": "High inflation with a significant real salary loss."
    },
]


def real_gain_rate(inflation_rate: float, salary_adjustment: float) -> float:
    """Percent change in purchasing power of income."""
    return ((1 + salary_adjustment / 100) / (1 + inflation_rate / 100) - 1) * 100


def monthly_rate(annual_rate: float) -> float:
    """Monthly rate compounding to the given annual percent."""
    return (1 + annual_rate / 100) ** (1 / 12) - 1


class InflationImpactProjector:
    """
    Projects how inflation erodes purchasing power, goals and budgets.

    Example:
    ```python
    projector = InflationImpactProjector(repository)
    impact = projector.simulate("user-1", InflationSimulationInput(inflation_rate=5, salary_adjustment=0))
    print(impact.real_gain_rate)  # -4.76
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

    def simulate(self, user_id: str, params: InflationSimulationInput) -> InflationImpact:
        logger.info(
            f"Simulating inflation {params.inflation_rate}% / salary {params.salary_adjustment}% "
            f"over {params.period_months} months for user {user_id}"
        )
        gain = real_gain_rate(params.inflation_rate, params.salary_adjustment)
        month_inflation = monthly_rate(params.inflation_rate)

        projections = self._purchasing_power(month_inflation, params.period_months)
        lost = REFERENCE_VALUE - projections[-1].real_value

        affected_goals = self._goal_impacts(user_id, params.inflation_rate)
        budget_impacts = self._budget_impacts(user_id, month_inflation, params.period_months)

        return InflationImpact(
            real_gain_rate=round(gain, 2),
            purchasing_power_lost=round(lost, 2),
            purchasing_power_projections=projections,
            affected_goals=affected_goals,
            budget_impacts=budget_impacts,
            recommendations=self._recommendations(gain, affected_goals)
        )

    def preset_scenarios(self) -> List[Dict[str, Any]]:
        return [dict(s) for s in PRESET_SCENARIOS]

    def _purchasing_power(self, month_inflation: float, period_months: int) -> List[PurchasingPowerPoint]:
        points = []
        real_value = REFERENCE_VALUE
        for month in range(period_months + 1):
            points.append(PurchasingPowerPoint(
                month=month,
                nominal_value=REFERENCE_VALUE,
                real_value=round(real_value, 2)
            ))
            real_value = real_value / (1 + month_inflation)
        return points

    def _goal_impacts(self, user_id: str, inflation_rate: float) -> List[GoalInflationImpact]:
        today = self.today()
        impacts = []
        for goal in self.repository.list_active_goals(user_id):
            if goal.target_date is None:
                continue
            years = (goal.target_date - today).days / DAYS_PER_YEAR
            if years <= 0:
                continue

            adjusted = goal.target_amount * (1 + inflation_rate / 100) ** years
            impacts.append(GoalInflationImpact(
                goal_id=goal.id,
                name=goal.name,
                original_target=goal.target_amount,
                adjusted_target=round(adjusted, 2),
                difference=round(adjusted - goal.target_amount, 2),
                years_to_target=round(years, 1)
            ))
        return impacts

    def _budget_impacts(
        self,
        user_id: str,
        month_inflation: float,
        period_months: int
    ) -> List[BudgetInflationImpact]:
        impacts = []
        for budget in self.repository.list_budgets(user_id, period="MONTHLY"):
            projected = budget.amount * (1 + month_inflation) ** period_months
            impacts.append(BudgetInflationImpact(
                budget_id=budget.id,
                category_name=budget.category_name,
                current_amount=budget.amount,
                projected_amount=round(projected, 2),
                monthly_increase=round(projected - budget.amount, 2)
            ))
        return impacts

    def _recommendations(self, gain: float, affected_goals: List[GoalInflationImpact]) -> List[str]:
        recommendations = []
        if gain < 0:
            recommendations.append(
                "Your purchasing power is shrinking. Consider cutting expenses or negotiating a raise."
            )
        elif gain < LOW_REAL_GAIN:
            recommendations.append("Your real gain is low. Keep budgets under tight control.")
        else:
            recommendations.append("You are beating inflation! Consider investing the surplus.")

        if any(g.difference > self.settings.goal_inflation_warning for g in affected_goals):
            recommendations.append(
                "Some long-term goals may cost considerably more. Consider reviewing their targets."
            )
        return recommendations
