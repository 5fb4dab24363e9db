"""
Decision Table Pattern

Maps a set of named dimension scores to a single recommendation using an
ordered list of banded rules. Rules are checked top to bottom and the first
rule whose conditions all hold wins. The table must end with a catch-all
rule (no conditions) so every score set gets an answer.

Use cases:
- Financing instrument recommendation from section scores
- Any tiering that depends on more than one score at once
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Any, Optional
import logging

from .weighted_scoring import Number, as_decimal

logger = logging.getLogger(__name__)


class Comparison(Enum):
    """Supported band comparisons (strict and inclusive)."""
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="

    def holds(self, left: Decimal, right: Decimal) -> bool:
        if self is Comparison.LT:
            return left < right
        if self is Comparison.LTE:
            return left <= right
        if self is Comparison.GT:
            return left > right
        return left >= right


@dataclass(frozen=True)
class BandCondition:
    """`dimension <comparison> bound`, e.g. RISK < 10"""
    dimension: str
    comparison: Comparison
    bound: Decimal

    def holds(self, scores: Dict[str, Number]) -> bool:
        value = scores.get(self.dimension)
        if value is None:
            return False
        return self.comparison.holds(as_decimal(value), self.bound)

    def describe(self) -> str:
        return f"{self.dimension} {self.comparison.value} {self.bound}"


@dataclass
class InstrumentRule:
    """One row of the decision table"""
    name: str
    conditions: List[BandCondition] = field(default_factory=list)
    description: str = ""

    @property
    def is_catch_all(self) -> bool:
        return not self.conditions

    def matches(self, scores: Dict[str, Number]) -> bool:
        return all(c.holds(scores) for c in self.conditions)


@dataclass
class InstrumentRecommendation:
    """Result of looking up a score set in the table"""
    name: str
    description: str
    rule_index: int
    matched_conditions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "rule_index": self.rule_index,
            "matched_conditions": self.matched_conditions
        }


class InstrumentDecisionTable:
    """
    Ordered first-match decision table.

    Example:
    ```python
    table = create_default_instrument_table()
    rec = table.recommend({"RISK": 5, "IMPACT": 60, "RETURN": 20})
    print(rec.name)  # "Grant Funding"
    ```
    """

    def __init__(self, rules: List[InstrumentRule]):
        if not rules:
            raise ValueError("Decision table needs at least one rule")
        if not rules[-1].is_catch_all:
            raise ValueError("The last decision table rule must be a catch-all with no conditions")
        for index, rule in enumerate(rules[:-1]):
            if rule.is_catch_all:
                raise ValueError(f"Rule {index} ('{rule.name}') has no conditions and would shadow later rules")
        self.rules = list(rules)

    def recommend(self, scores: Dict[str, Number]) -> InstrumentRecommendation:
        """Return the first rule that matches the given dimension scores."""
        for index, rule in enumerate(self.rules):
            if rule.matches(scores):
                logger.debug(f"Decision table matched rule {index} ({rule.name})")
                return InstrumentRecommendation(
                    name=rule.name,
                    description=rule.description,
                    rule_index=index,
                    matched_conditions=[c.describe() for c in rule.conditions]
                )
        # Unreachable while the last rule is a catch-all
        raise RuntimeError("Decision table has no matching rule")

    def get_rule_summary(self) -> List[Dict[str, Any]]:
        return [
            {
                "index": index,
                "name": rule.name,
                "description": rule.description,
                "conditions": [c.describe() for c in rule.conditions] or ["otherwise"]
            }
            for index, rule in enumerate(self.rules)
        ]

    @classmethod
    def from_config(cls, rules: List[Dict[str, Any]]) -> 'InstrumentDecisionTable':
        """
        Build a table from dictionaries:
        {"name": ..., "description": ..., "conditions": [{"dimension": "RISK", "op": "<", "value": 10}]}
        """
        parsed = []
        for raw in rules:
            conditions = []
            for cond in raw.get("conditions") or []:
                try:
                    comparison = Comparison(cond.get("op", "<"))
                except ValueError:
                    raise ValueError(f"Unsupported comparison '{cond.get('op')}' in rule '{raw.get('name')}'")
                conditions.append(BandCondition(
                    dimension=cond["dimension"],
                    comparison=comparison,
                    bound=as_decimal(cond["value"])
                ))
            parsed.append(InstrumentRule(
                name=raw["name"],
                conditions=conditions,
                description=raw.get("description", "")
            ))
        return cls(parsed)


# =============================================================================
# Factory Functions
# =============================================================================

def _band(dimension: str, op: str, bound: int) -> BandCondition:
    return BandCondition(dimension, Comparison(op), Decimal(bound))


def create_default_instrument_table(rules: Optional[List[InstrumentRule]] = None) -> InstrumentDecisionTable:
    """Default financing instrument table over RISK / IMPACT / RETURN section scores."""
    rules = rules or [
        InstrumentRule(
            name="Grant Funding",
            conditions=[_band("RISK", "<", 10), _band("IMPACT", ">", 50), _band("RETURN", "<", 30)],
            description="Low risk, high impact enterprises with limited commercial returns."
        ),
        InstrumentRule(
            name="Commercial Debt with Impact Linked Financing",
            conditions=[_band("RISK", "<", 30), _band("RETURN", ">", 50)],
            description="Moderate risk with strong returns; pricing tied to impact outcomes."
        ),
        InstrumentRule(
            name="Equity Investment",
            conditions=[_band("RETURN", ">", 70)],
            description="High return potential suited to an equity stake."
        ),
        InstrumentRule(
            name="Mezzanine Financing",
            description="Blended debt and equity for profiles outside the other bands."
        ),
    ]
    return InstrumentDecisionTable(rules)
