"""Shared fixtures: a small two-section bank, a fake clock and a Flask app on in-memory SQLite."""

import os

import pytest

# Must be set before web.app is imported; it builds a module-level app
os.environ["FLASK_ENV"] = "testing"

from config.settings import TestingConfig
from src.assessment.assessment_engine import AssessmentEngine
from src.assessment.questions import load_question_bank


SMALL_SECTIONS = [
    {"code": "RISK", "title": "Risk", "order": 1, "weight": "0.5"},
    {"code": "IMPACT", "title": "Impact", "order": 2, "weight": "0.5"},
]

SMALL_QUESTIONS = [
    {
        "code": "A", "section": "RISK", "order": 1, "type": "SINGLE_CHOICE",
        "text": "Audited?",
        "options": [
            {"label": "Yes", "value": "yes", "points": 10},
            {"label": "No", "value": "no", "points": 0},
        ],
    },
    {
        "code": "B", "section": "RISK", "order": 2, "type": "SINGLE_CHOICE",
        "text": "Audit firm tier?",
        "options": [
            {"label": "Top tier", "value": "top", "points": 10},
            {"label": "Other", "value": "other", "points": 0},
        ],
        "conditions": [{"question": "A", "op": "eq", "value": "yes"}],
    },
    {
        "code": "C", "section": "IMPACT", "order": 1, "type": "SLIDER",
        "text": "Beneficiaries reached (thousands)",
        "min": 0, "max": 10, "points_per_unit": 1,
    },
    {
        "code": "D", "section": "IMPACT", "order": 2, "type": "MULTI_CHOICE",
        "text": "Outcome areas",
        "options": [
            {"label": "Health", "value": "health", "points": 5},
            {"label": "Education", "value": "education", "points": 5},
        ],
    },
    {
        "code": "E", "section": "IMPACT", "order": 3, "type": "MULTI_SLIDER",
        "text": "Reach and depth",
        "required": False,
        "dimensions": [
            {"code": "reach", "label": "Reach", "min": 0, "max": 10},
            {"code": "depth", "label": "Depth", "min": 0, "max": 10},
        ],
    },
]


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def small_bank():
    return load_question_bank(SMALL_SECTIONS, SMALL_QUESTIONS)


@pytest.fixture
def engine(small_bank):
    return AssessmentEngine(small_bank)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def complete_answers():
    """Wire-format answers that complete the small bank"""
    return {
        "A": {"value": "yes"},
        "B": {"value": "top"},
        "C": {"value": "8"},
        "D": {"values": ["health"]},
    }


@pytest.fixture
def app(engine):
    from web.app import create_app

    app = create_app(TestingConfig, engine=engine)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def backend(app):
    with app.app_context():
        yield app.extensions["assessment_backend"]
