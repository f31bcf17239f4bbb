"""
Forecasting Module for the Forecast Engine

Monthly aggregation, variability and seasonality estimators, expense
prediction and cash-flow projection.
"""

from .time_series import (
    TimeSeriesAggregator,
    MonthlyAggregate
)
from .trend_analyzer import (
    VariabilityClassifier,
    VariabilityVerdict,
    SeasonalityEstimator,
    SeasonalFactor,
    TrendDirection,
    VARIABILITY_CV_THRESHOLD
)
from .expense_predictor import (
    ExpensePredictor,
    Prediction,
    PredictionFactors
)
from .cash_flow_projector import (
    CashFlowProjector,
    CashFlowProjection,
    MonthlyProjection,
    ProjectionScenario
)
from .prediction_job import (
    PredictionRefreshJob,
    schedule_prediction_refresh
)

__all__ = [
    'TimeSeriesAggregator',
    'MonthlyAggregate',
    'VariabilityClassifier',
    'VariabilityVerdict',
    'SeasonalityEstimator',
    'SeasonalFactor',
    'TrendDirection',
    'VARIABILITY_CV_THRESHOLD',
    'ExpensePredictor',
    'Prediction',
    'PredictionFactors',
    'CashFlowProjector',
    'CashFlowProjection',
    'MonthlyProjection',
    'ProjectionScenario',
    'PredictionRefreshJob',
    'schedule_prediction_refresh',
]
