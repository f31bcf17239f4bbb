"""
Injectable heuristics for the engine.

Defaults reproduce the documented behaviour. A Flask config (or any mapping
with the same upper-case keys) can override them via `from_config`.
"""

from dataclasses import dataclass
from typing import Any, Mapping

# Projection horizon cap for cash-flow requests.
MAX_PROJECTION_MONTHS = 24


@dataclass(frozen=True)
class EngineSettings:
    max_variable_categories: int = 50
    reserve_safe_margin: float = 1000.0
    reserve_min_margin: float = 500.0
    timing_low_balance: float = 500.0
    cut_threshold: float = 1000.0
    goal_inflation_warning: float = 1000.0

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "EngineSettings":
        defaults = cls()
        return cls(
            max_variable_categories=int(config.get('MAX_VARIABLE_CATEGORIES', defaults.max_variable_categories)),
            reserve_safe_margin=float(config.get('RESERVE_SAFE_MARGIN', defaults.reserve_safe_margin)),
            reserve_min_margin=float(config.get('RESERVE_MIN_MARGIN', defaults.reserve_min_margin)),
            timing_low_balance=float(config.get('TIMING_LOW_BALANCE', defaults.timing_low_balance)),
            cut_threshold=float(config.get('CUT_THRESHOLD', defaults.cut_threshold)),
            goal_inflation_warning=float(config.get('GOAL_INFLATION_WARNING', defaults.goal_inflation_warning)),
        )
