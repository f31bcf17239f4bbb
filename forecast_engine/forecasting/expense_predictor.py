"""
Expense Predictor

Point forecast of a category's monthly expense from a weighted blend of
short and long moving averages and the same month one year earlier, scaled
by the category's seasonal factor.

The `confidence` score is 100 minus the relative dispersion of the last six
months, clamped to 0-100. It is a readability signal for the UI, not a
statistical confidence level, and the bounds are a one-sigma band rather
than a 95% interval.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ..database.repository import FinanceRepository
from ..settings import EngineSettings
from .time_series import TimeSeriesAggregator, add_months, month_start, period_key
from .trend_analyzer import (
    MIN_HISTORY_MONTHS,
    SeasonalityEstimator,
    TrendDirection,
    VariabilityClassifier,
    VariabilityVerdict,
    non_empty_months
)

logger = logging.getLogger(__name__)

ALGORITHM = "WEIGHTED_MOVING_AVG_W_SEASONALITY"

SHORT_WINDOW_MONTHS = 3
LONG_WINDOW_MONTHS = 6

SHORT_AVERAGE_WEIGHT = 0.5
LONG_AVERAGE_WEIGHT = 0.3
PREVIOUS_YEAR_WEIGHT = 0.2

# Width of the prediction band in standard deviations.
CONFIDENCE_SIGMA = 1.0


@dataclass(frozen=True)
class PredictionFactors:
    seasonality: float
    trend: TrendDirection
    historical_average: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seasonality": round(self.seasonality, 4),
            "trend": self.trend.value,
            "historical_average": round(self.historical_average, 2)
        }


@dataclass(frozen=True)
class Prediction:
    """Forecast for one category and month"""
    category_id: str
    month: date
    predicted_amount: float
    confidence: float
    lower_bound: float
    upper_bound: float
    algorithm: str
    factors: PredictionFactors

    @property
    def deviation(self) -> float:
        """Distance from the point forecast to the upper bound."""
        return self.upper_bound - self.predicted_amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category_id": self.category_id,
            "month": period_key(self.month),
            "predicted_amount": round(self.predicted_amount, 2),
            "confidence": round(self.confidence, 2),
            "lower_bound": round(self.lower_bound, 2),
            "upper_bound": round(self.upper_bound, 2),
            "algorithm": self.algorithm,
            "factors": self.factors.to_dict()
        }


def weighted_forecast(
    short_avg: float,
    long_avg: float,
    same_month_prev_year: float,
    seasonality: float
) -> float:
    """Blend of the three baselines scaled by seasonality, never negative."""
    base = (
        short_avg * SHORT_AVERAGE_WEIGHT
        + long_avg * LONG_AVERAGE_WEIGHT
        + same_month_prev_year * PREVIOUS_YEAR_WEIGHT
    )
    return max(0.0, base * seasonality)


def dispersion_confidence(std_dev: float, mean: float) -> float:
    if mean == 0:
        return 100.0 if std_dev == 0 else 0.0
    return min(100.0, max(0.0, 100.0 - (std_dev / mean * 100)))


class ExpensePredictor:
    """
    Per-category monthly expense forecasting.

    Example:
    ```python
    predictor = ExpensePredictor(repository)
    prediction = predictor.predict_category_expense("user-1", "groceries", date(2024, 8, 1))
    if prediction:
        print(prediction.predicted_amount, prediction.lower_bound, prediction.upper_bound)
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
        self.aggregator = TimeSeriesAggregator(repository)
        self.classifier = VariabilityClassifier(self.aggregator, repository)
        self.seasonality = SeasonalityEstimator(self.aggregator)

    def classify(self, user_id: str, category_id: str) -> VariabilityVerdict:
        return self.classifier.classify(user_id, category_id, self.today())

    def detect_variable_categories(self, user_id: str) -> List[str]:
        """Variable category ids, capped at `max_variable_categories`."""
        category_ids = self.classifier.detect_variable_categories(user_id, self.today())
        limit = self.settings.max_variable_categories
        if len(category_ids) > limit:
            logger.warning(
                f"User {user_id} has {len(category_ids)} variable categories, keeping the first {limit}"
            )
            category_ids = category_ids[:limit]
        return category_ids

    def predict_category_expense(
        self,
        user_id: str,
        category_id: str,
        target_month: Optional[date] = None
    ) -> Optional[Prediction]:
        """
        Forecast a category's expense for a month.

        History is taken from closed months before the current month, or
        before the target month when the target lies in the past.

        Args:
            user_id: Owner of the transactions
            category_id: Expense category
            target_month: Any day of the month to forecast (default: current month)

        Returns:
            Prediction, or None when fewer than three of the last six months had spending
        """
        current_month = month_start(self.today())
        target = month_start(target_month) if target_month else current_month
        reference = min(target, current_month)

        history = self.aggregator.monthly_values(user_id, category_id, LONG_WINDOW_MONTHS, reference)
        if non_empty_months(history) < MIN_HISTORY_MONTHS:
            return None

        short_avg = float(np.mean(history[-SHORT_WINDOW_MONTHS:]))
        long_avg = float(np.mean(history))

        previous_year = self._same_month_previous_year(user_id, category_id, target, reference)
        same_month_prev_year = previous_year if previous_year else long_avg

        seasonality = self.seasonality.factor(user_id, category_id, target.month - 1).factor
        predicted = weighted_forecast(short_avg, long_avg, same_month_prev_year, seasonality)

        std_dev = float(np.std(history))
        margin = std_dev * CONFIDENCE_SIGMA

        return Prediction(
            category_id=category_id,
            month=target,
            predicted_amount=predicted,
            confidence=dispersion_confidence(std_dev, long_avg),
            lower_bound=max(0.0, predicted - margin),
            upper_bound=predicted + margin,
            algorithm=ALGORITHM,
            factors=PredictionFactors(
                seasonality=seasonality,
                trend=TrendDirection.UP if short_avg > long_avg else TrendDirection.DOWN,
                historical_average=long_avg
            )
        )

    def predict_variable_expenses(self, user_id: str, target_month: Optional[date] = None) -> List[Prediction]:
        """Predictions for every variable category; categories without enough data are omitted."""
        predictions = []
        for category_id in self.detect_variable_categories(user_id):
            prediction = self.predict_category_expense(user_id, category_id, target_month)
            if prediction:
                predictions.append(prediction)
        return predictions

    def _same_month_previous_year(
        self,
        user_id: str,
        category_id: str,
        target: date,
        reference: date
    ) -> float:
        previous = add_months(target, -12)
        if previous >= reference:
            # Not a closed month yet
            return 0.0
        return self.aggregator.monthly_values(user_id, category_id, 1, add_months(previous, 1))[0]
