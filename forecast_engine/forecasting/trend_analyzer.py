"""
Trend Analyzer for the Forecast Engine

Dispersion and seasonality estimators for monthly expense histories:
- coefficient of variation to tell variable categories from fixed ones
- per-calendar-month multiplicative seasonal factors
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..database.repository import FinanceRepository
from .time_series import TimeSeriesAggregator, month_start

logger = logging.getLogger(__name__)

# A category is variable when its monthly spend has cv > 0.3.
# Fixed design constant, not configuration.
VARIABILITY_CV_THRESHOLD = 0.3

# Months with spending required before dispersion is meaningful.
MIN_HISTORY_MONTHS = 3

# Window used to classify a category.
CLASSIFICATION_WINDOW_MONTHS = 12

NEUTRAL_SEASONALITY = 1.0


class TrendDirection(Enum):
    """Direction of recent spending against the longer average"""
    UP = "UP"
    DOWN = "DOWN"


@dataclass(frozen=True)
class VariabilityVerdict:
    """Result of classifying a category's spending dispersion"""
    category_id: str
    coefficient_of_variation: float
    is_variable: bool

    def to_dict(self) -> Dict[str, object]:
        return {
            "category_id": self.category_id,
            "coefficient_of_variation": round(self.coefficient_of_variation, 4),
            "is_variable": self.is_variable
        }


@dataclass(frozen=True)
class SeasonalFactor:
    """Multiplier for one calendar month (0 = January)"""
    category_id: str
    month_index: int
    factor: float


def non_empty_months(history: Sequence[float]) -> int:
    return sum(1 for value in history if value != 0)


def coefficient_of_variation(history: Sequence[float]) -> Optional[float]:
    """Population stddev / mean, or None when the mean is zero or there is no data."""
    if len(history) == 0:
        return None
    mean_val = float(np.mean(history))
    if mean_val == 0:
        return None
    return float(np.std(history)) / mean_val


def is_variable(history: Sequence[float]) -> bool:
    """
    True when the history is dispersed enough to need a statistical forecast.

    Fewer than three months with spending, or a zero mean, is never variable.
    """
    if len(history) < MIN_HISTORY_MONTHS or non_empty_months(history) < MIN_HISTORY_MONTHS:
        return False
    cv = coefficient_of_variation(history)
    if cv is None:
        return False
    return cv > VARIABILITY_CV_THRESHOLD


def seasonal_factor(monthly_totals: Dict[str, float], month_index: int) -> float:
    """
    Ratio of the target calendar month's average to the overall monthly average.

    Args:
        monthly_totals: YYYY-MM -> total, only months that have spending
        month_index: Target calendar month, 0-11

    Returns:
        Multiplicative factor, 1.0 when there is nothing to compare against
    """
    if not monthly_totals:
        return NEUTRAL_SEASONALITY

    global_avg = float(np.mean(list(monthly_totals.values())))
    if global_avg == 0:
        return NEUTRAL_SEASONALITY

    target_values = [
        total for period, total in monthly_totals.items()
        if int(period.split('-')[1]) - 1 == month_index
    ]
    if not target_values:
        return NEUTRAL_SEASONALITY

    factor = float(np.mean(target_values)) / global_avg
    if factor <= 0:
        return NEUTRAL_SEASONALITY
    return factor


class VariabilityClassifier:
    """
    Flags categories whose monthly spending is too dispersed to treat as fixed.

    Example:
    ```python
    classifier = VariabilityClassifier(aggregator, repository)
    verdict = classifier.classify("user-1", "restaurants", today)
    print(verdict.is_variable)
    ```
    """

    def __init__(self, aggregator: TimeSeriesAggregator, repository: FinanceRepository):
        self.aggregator = aggregator
        self.repository = repository

    def classify(self, user_id: str, category_id: str, reference_date) -> VariabilityVerdict:
        history = self.aggregator.monthly_values(
            user_id, category_id, CLASSIFICATION_WINDOW_MONTHS, month_start(reference_date)
        )
        cv = coefficient_of_variation(history)
        return VariabilityVerdict(
            category_id=category_id,
            coefficient_of_variation=cv if cv is not None else 0.0,
            is_variable=is_variable(history)
        )

    def detect_variable_categories(self, user_id: str, reference_date) -> List[str]:
        """Ids of the user's expense categories classified variable."""
        variable_ids = [
            category_id
            for category_id in self.repository.list_category_ids(user_id)
            if self.classify(user_id, category_id, reference_date).is_variable
        ]
        logger.info(f"Detected {len(variable_ids)} variable categories for user {user_id}")
        return variable_ids


class SeasonalityEstimator:
    """Seasonal factors from a category's complete (unwindowed) history."""

    def __init__(self, aggregator: TimeSeriesAggregator):
        self.aggregator = aggregator

    def factor(self, user_id: str, category_id: str, month_index: int) -> SeasonalFactor:
        totals = self.aggregator.all_time_monthly_totals(user_id, category_id)
        return SeasonalFactor(
            category_id=category_id,
            month_index=month_index,
            factor=seasonal_factor(totals, month_index)
        )

    def factors(self, user_id: str, category_id: str) -> List[SeasonalFactor]:
        """All twelve calendar-month factors."""
        totals = self.aggregator.all_time_monthly_totals(user_id, category_id)
        return [
            SeasonalFactor(category_id=category_id, month_index=i, factor=seasonal_factor(totals, i))
            for i in range(12)
        ]
