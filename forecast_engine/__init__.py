"""
Forecast Engine

Expense prediction, cash-flow projection, scenario simulation, affordability
scoring and inflation impact for a personal-finance backend.
"""

from .engine import ForecastEngine
from .settings import EngineSettings, MAX_PROJECTION_MONTHS

__all__ = [
    'ForecastEngine',
    'EngineSettings',
    'MAX_PROJECTION_MONTHS',
]
