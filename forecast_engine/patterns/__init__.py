"""
Patterns Module for the Forecast Engine

Reusable scoring pattern and the affordability check built on it.
"""

from .weighted_scoring import (
    AdditiveScoringEngine,
    ScoreComponent,
    ScoreResult
)
from .affordability import (
    AffordabilityScorer,
    AffordabilityRequest,
    AffordabilityResult,
    AffordabilityStatus
)

__all__ = [
    'AdditiveScoringEngine',
    'ScoreComponent',
    'ScoreResult',
    'AffordabilityScorer',
    'AffordabilityRequest',
    'AffordabilityResult',
    'AffordabilityStatus',
]
