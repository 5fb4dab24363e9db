"""
Patterns Module for the Impact Assessment Platform

Reusable analytical patterns used by the assessment engine.
"""

from .weighted_scoring import (
    WeightedScoringEngine,
    ScoreComponent,
    ScoreResult,
    normalize_to_100,
    create_section_weight_engine
)

from .decision_table import (
    InstrumentDecisionTable,
    InstrumentRule,
    InstrumentRecommendation,
    BandCondition,
    Comparison,
    create_default_instrument_table
)

__all__ = [
    # Weighted Scoring
    'WeightedScoringEngine',
    'ScoreComponent',
    'ScoreResult',
    'normalize_to_100',
    'create_section_weight_engine',
    # Decision Table
    'InstrumentDecisionTable',
    'InstrumentRule',
    'InstrumentRecommendation',
    'BandCondition',
    'Comparison',
    'create_default_instrument_table',
]
