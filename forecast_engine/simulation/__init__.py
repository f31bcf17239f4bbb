"""
Simulation Module for the Forecast Engine

What-if scenarios and inflation impact projections.
"""

from .scenario_simulator import (
    ScenarioSimulator,
    ScenarioInput,
    ScenarioResult,
    ScenarioType,
    ActionRecommendation,
    RecommendationType
)
from .inflation import (
    InflationImpactProjector,
    InflationSimulationInput,
    InflationImpact
)

__all__ = [
    'ScenarioSimulator',
    'ScenarioInput',
    'ScenarioResult',
    'ScenarioType',
    'ActionRecommendation',
    'RecommendationType',
    'InflationImpactProjector',
    'InflationSimulationInput',
    'InflationImpact',
]
