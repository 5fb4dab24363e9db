"""
Weighted Scoring Pattern

A configurable multi-component weighted scoring engine working in Decimal
arithmetic. Each component contributes `normalized_score * weight` to an
overall 0-100 score.

Use cases:
- Overall assessment score from weighted section scores
- Any roll-up of already-normalized 0-100 sub-scores
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Any, Union
import logging

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ZERO = Decimal("0")
TWO_PLACES = Decimal("0.01")
WEIGHT_TOLERANCE = Decimal("0.0001")

Number = Union[int, float, str, Decimal]


def as_decimal(value: Number) -> Decimal:
    """Decimal from an int, float or string without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize(value: Decimal) -> Decimal:
    """Round to two decimal places, half up."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def clamp_0_100(value: Decimal) -> Decimal:
    return max(ZERO, min(HUNDRED, value))


def normalize_to_100(raw: Number, maximum: Number) -> Decimal:
    """
    Scale `raw` against `maximum` onto 0-100, clamped.

    A zero (or negative) maximum yields 0 rather than a division error.
    """
    raw = as_decimal(raw)
    maximum = as_decimal(maximum)
    if maximum <= ZERO:
        return ZERO
    return clamp_0_100(raw / maximum * HUNDRED)


@dataclass
class ScoreComponent:
    """Definition of a single scoring component."""
    name: str
    weight: Decimal  # 0 to 1, all weights must sum to 1
    description: str = ""

    def __post_init__(self):
        self.weight = as_decimal(self.weight)
        if self.weight < ZERO:
            raise ValueError(f"Component '{self.name}' has a negative weight")


@dataclass
class ScoreResult:
    """Result of scoring an entity."""
    entity_id: str
    overall_score: Decimal
    component_scores: Dict[str, Decimal]
    component_details: Dict[str, Dict[str, Any]]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "overall_score": float(self.overall_score),
            "component_scores": {k: float(v) for k, v in self.component_scores.items()},
            "component_details": self.component_details,
            "metadata": self.metadata
        }


class WeightedScoringEngine:
    """
    Weighted sum of normalized component scores.

    Example:
    ```python
    engine = WeightedScoringEngine([
        ScoreComponent("RISK", weight=Decimal("0.5")),
        ScoreComponent("IMPACT", weight=Decimal("0.5")),
    ])
    result = engine.score({"RISK": 80, "IMPACT": 80}, entity_id="run-1")
    print(result.overall_score)  # Decimal('80.00')
    ```

    Weights must sum to 1; anything else is rejected instead of being
    silently rescaled.
    """

    def __init__(self, components: List[ScoreComponent]):
        if not components:
            raise ValueError("At least one scoring component is required")
        self.components = {c.name: c for c in components}
        if len(self.components) != len(components):
            raise ValueError("Scoring component names must be unique")

        total_weight = sum((c.weight for c in components), ZERO)
        if abs(total_weight - Decimal("1")) > WEIGHT_TOLERANCE:
            raise ValueError(f"Component weights sum to {total_weight}, not 1")

    def score(
        self,
        values: Dict[str, Number],
        entity_id: str = "unknown",
        metadata: Optional[Dict[str, Any]] = None
    ) -> ScoreResult:
        """Calculate the weighted score. Every component needs a value."""
        missing = [name for name in self.components if values.get(name) is None]
        if missing:
            raise ValueError(f"Missing values for components: {', '.join(missing)}")

        component_scores: Dict[str, Decimal] = {}
        component_details: Dict[str, Dict[str, Any]] = {}
        weighted_sum = ZERO

        for name, component in self.components.items():
            normalized = clamp_0_100(as_decimal(values[name]))
            contribution = normalized * component.weight
            weighted_sum += contribution

            component_scores[name] = quantize(normalized)
            component_details[name] = {
                "normalized_score": float(quantize(normalized)),
                "weight": float(component.weight),
                "weighted_contribution": float(quantize(contribution)),
                "description": component.description
            }

        overall_score = quantize(weighted_sum)
        logger.debug(f"Scored {entity_id}: {overall_score}")

        return ScoreResult(
            entity_id=entity_id,
            overall_score=overall_score,
            component_scores=component_scores,
            component_details=component_details,
            metadata=metadata or {}
        )

    def get_component_summary(self) -> Dict[str, Dict[str, Any]]:
        """Get summary of all scoring components."""
        return {
            name: {
                "weight": float(c.weight),
                "weight_percent": f"{c.weight * 100:.0f}%",
                "description": c.description
            }
            for name, c in self.components.items()
        }


# =============================================================================
# Factory Functions
# =============================================================================

def create_section_weight_engine(section_weights: Dict[str, Number],
                                 descriptions: Optional[Dict[str, str]] = None) -> WeightedScoringEngine:
    """Create an engine rolling section scores up into the overall score."""
    descriptions = descriptions or {}
    components = [
        ScoreComponent(name=code, weight=as_decimal(weight), description=descriptions.get(code, ""))
        for code, weight in section_weights.items()
    ]
    return WeightedScoringEngine(components)
