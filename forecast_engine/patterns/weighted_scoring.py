"""
Additive Scoring Pattern - Forecast Engine

A points-based multi-component scoring engine. Each component awards between
0 and its own maximum; the total is clamped to 0-100 and mapped to a status
label through descending thresholds.

Components are named and can be swapped per engine instance, so a placeholder
heuristic can be replaced without touching the others.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

MAX_TOTAL = 100.0


@dataclass
class ScoreComponent:
    """Definition of a single scoring component."""
    name: str
    max_points: float
    scorer: Callable[[Any], float]
    description: str = ""

    def evaluate(self, context: Any) -> float:
        """Run the scorer, clamped to 0..max_points."""
        return max(0.0, min(self.max_points, float(self.scorer(context))))


@dataclass
class ScoreResult:
    """Result of scoring a context."""
    total: float
    status: str
    component_scores: Dict[str, float]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "status": self.status,
            "component_scores": self.component_scores,
            "metadata": self.metadata
        }


class AdditiveScoringEngine:
    """
    Sums component points into a 0-100 score.

    Example:
    ```python
    engine = AdditiveScoringEngine(
        components=[
            ScoreComponent("balance", 60, lambda ctx: 60 if ctx["balance"] > 0 else 0),
            ScoreComponent("timing", 40, lambda ctx: 40),
        ],
        status_thresholds={70: "GOOD", 0: "BAD"}
    )
    result = engine.score({"balance": 100})
    print(result.total, result.status)  # 100.0 GOOD
    ```
    """

    def __init__(
        self,
        components: List[ScoreComponent],
        status_thresholds: Dict[float, str]
    ):
        self.components = {c.name: c for c in components}
        self.status_thresholds = status_thresholds

        total_points = sum(c.max_points for c in components)
        if total_points > MAX_TOTAL:
            logger.warning(f"Component maxima sum to {total_points}, totals will be clamped to {MAX_TOTAL}")

    def override(self, name: str, scorer: Callable[[Any], float]) -> None:
        """Replace the scorer of an existing component."""
        if name not in self.components:
            raise KeyError(f"Unknown score component '{name}'")
        self.components[name].scorer = scorer

    def score(self, context: Any, metadata: Optional[Dict[str, Any]] = None) -> ScoreResult:
        component_scores = {
            name: component.evaluate(context)
            for name, component in self.components.items()
        }
        total = max(0.0, min(MAX_TOTAL, sum(component_scores.values())))

        return ScoreResult(
            total=total,
            status=self.determine_status(total),
            component_scores=component_scores,
            metadata=metadata or {}
        )

    def determine_status(self, total: float) -> str:
        """Status label of the highest threshold the total reaches."""
        for threshold, status in sorted(self.status_thresholds.items(), reverse=True):
            if total >= threshold:
                return status
        return sorted(self.status_thresholds.items())[0][1]

    def get_component_summary(self) -> Dict[str, Dict[str, Any]]:
        return {
            name: {
                "max_points": c.max_points,
                "description": c.description
            }
            for name, c in self.components.items()
        }
