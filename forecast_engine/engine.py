"""
Single entry point wiring every estimator to one repository.
"""

from datetime import date
from typing import Callable, List, Optional

from .database.repository import FinanceRepository
from .forecasting.cash_flow_projector import CashFlowProjection, CashFlowProjector, ProjectionScenario
from .forecasting.expense_predictor import ExpensePredictor, Prediction
from .forecasting.prediction_job import PredictionRefreshJob
from .patterns.affordability import AffordabilityRequest, AffordabilityResult, AffordabilityScorer
from .settings import EngineSettings
from .simulation.inflation import InflationImpact, InflationImpactProjector, InflationSimulationInput
from .simulation.scenario_simulator import ScenarioInput, ScenarioResult, ScenarioSimulator


class ForecastEngine:
    """
    Facade over the forecasting and simulation services.

    Example:
    ```python
    engine = ForecastEngine(SQLAlchemyFinanceRepository())
    projection = engine.calculate_cash_flow("user-1", months=6)
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

        self.predictor = ExpensePredictor(repository, self.settings, today)
        self.projector = CashFlowProjector(repository, self.predictor, today)
        self.simulator = ScenarioSimulator(repository, self.settings, today)
        self.affordability = AffordabilityScorer(repository, self.simulator, self.settings, today)
        self.inflation = InflationImpactProjector(repository, self.settings, today)

    def predict_category_expense(
        self,
        user_id: str,
        category_id: str,
        target_month: Optional[date] = None
    ) -> Optional[Prediction]:
        return self.predictor.predict_category_expense(user_id, category_id, target_month)

    def detect_variable_categories(self, user_id: str) -> List[str]:
        return self.predictor.detect_variable_categories(user_id)

    def predict_variable_expenses(self, user_id: str, target_month: Optional[date] = None) -> List[Prediction]:
        return self.predictor.predict_variable_expenses(user_id, target_month)

    def calculate_cash_flow(
        self,
        user_id: str,
        months: int = 6,
        scenario: ProjectionScenario = ProjectionScenario.REALISTIC
    ) -> CashFlowProjection:
        return self.projector.calculate_cash_flow(user_id, months, scenario)

    def simulate_scenario(self, user_id: str, scenario: ScenarioInput) -> ScenarioResult:
        return self.simulator.simulate(user_id, scenario)

    def check_affordability(self, user_id: str, request: AffordabilityRequest) -> AffordabilityResult:
        return self.affordability.check(user_id, request)

    def simulate_inflation(self, user_id: str, params: InflationSimulationInput) -> InflationImpact:
        return self.inflation.simulate(user_id, params)

    def refresh_job(self) -> PredictionRefreshJob:
        return PredictionRefreshJob(self.repository, self.predictor)
