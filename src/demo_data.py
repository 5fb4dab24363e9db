"""
Demo Data Generator for the Impact Assessment Platform

Generates realistic answer sets for demonstrations and testing.
Each organization profile leans its answers toward low, middle or high
scores per section, so the demo set covers every financing instrument.
"""

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from .assessment.answers import AnswerStore
from .assessment.assessment_engine import AssessmentEngine
from .assessment.questions import Question

# Organization profiles: how answers lean per section
ORGANIZATION_PROFILES = {
    "grant_candidate": {
        "name": "Grant Candidate",
        "bias": {"RISK": "low", "IMPACT": "high", "RETURN": "low", "SECTOR_MATURITY": "mid"},
        "example_organizations": [
            ("Clean Water Collective", "Community-run water purification kiosks"),
            ("Bright Futures Learning", "After-school literacy programs"),
        ]
    },
    "commercial_debt": {
        "name": "Commercial Debt",
        "bias": {"RISK": "low", "IMPACT": "mid", "RETURN": "high", "SECTOR_MATURITY": "high"},
        "example_organizations": [
            ("SolarGrid Rural Power", "Pay-as-you-go solar home systems"),
            ("FarmLink Logistics", "Cold-chain transport for smallholder farmers"),
        ]
    },
    "equity": {
        "name": "Equity",
        "bias": {"RISK": "high", "IMPACT": "mid", "RETURN": "high", "SECTOR_MATURITY": "low"},
        "example_organizations": [
            ("MediScan Diagnostics", "Low-cost point-of-care diagnostics"),
            ("AgriSense Analytics", "Satellite crop monitoring for cooperatives"),
        ]
    },
    "mezzanine": {
        "name": "Mezzanine",
        "bias": {"RISK": "mid", "IMPACT": "mid", "RETURN": "mid", "SECTOR_MATURITY": "mid"},
        "example_organizations": [
            ("Handloom Heritage", "Fair-trade textile cooperative"),
            ("GreenBuild Materials", "Recycled construction materials"),
        ]
    },
}


@dataclass
class GeneratedOrganization:
    """Generated organization and its answers in wire format"""
    owner_id: str
    name: str
    description: str
    profile: str
    answers: Dict[str, Dict[str, Any]] = field(default_factory=dict)


class DemoDataGenerator:
    """
    Generate demo answer sets for any question bank.

    Example:
        generator = DemoDataGenerator(engine, seed=42)
        org = generator.generate_organization("grant_candidate")
        print(org.answers["RISK_Q1"])  # {"value": "YES"}
    """

    def __init__(self, engine: AssessmentEngine, seed: Optional[int] = None):
        """Initialize generator with optional random seed for reproducibility"""
        self.engine = engine
        self._random = random.Random(seed)

    def _pick_options(self, question: Question, bias: str) -> List[str]:
        ranked = sorted(question.options, key=lambda o: o.points)
        if bias == "low":
            return [ranked[0].value]
        if bias == "high":
            if question.type.value == "MULTI_CHOICE":
                return [o.value for o in ranked[len(ranked) // 2:]]
            return [ranked[-1].value]
        if bias == "mid":
            return [ranked[len(ranked) // 2].value]
        return [self._random.choice(ranked).value]

    def _slider_value(self, low, high, bias: str) -> int:
        span = float(high - low)
        if bias == "low":
            fraction = self._random.uniform(0.0, 0.1)
        elif bias == "high":
            fraction = self._random.uniform(0.9, 1.0)
        else:
            fraction = self._random.uniform(0.4, 0.6)
        return int(round(float(low) + span * fraction))

    def answer_for(self, question: Question, bias: str) -> Dict[str, Any]:
        """Wire-format answer for one question, leaning toward `bias`."""
        if question.type.uses_options:
            picked = self._pick_options(question, bias)
            if question.type.value == "MULTI_CHOICE":
                return {"values": picked}
            return {"value": picked[0]}
        if question.type.value == "MULTI_SLIDER":
            return {"values": {
                d.code: self._slider_value(d.min_value, d.max_value, bias)
                for d in question.dimensions
            }}
        dimension = question.dimensions[0]
        return {"value": str(self._slider_value(dimension.min_value, dimension.max_value, bias))}

    def generate_answers(self, profile: str) -> Dict[str, Dict[str, Any]]:
        """Answer every question that is reachable given the earlier answers."""
        bias_by_section = ORGANIZATION_PROFILES[profile]["bias"]
        store = AnswerStore(self.engine.bank)
        for question in self.engine.bank.all_questions():
            if not self.engine.evaluator.is_reachable(question.code, store.snapshot()):
                continue
            bias = bias_by_section.get(question.section_code, "random")
            store.set_answer(question.code, self.answer_for(question, bias))
        return {code: answer.to_dict() for code, answer in store.snapshot().items()}

    def generate_organization(self, profile: str = "mezzanine", index: int = 1) -> GeneratedOrganization:
        if profile not in ORGANIZATION_PROFILES:
            raise ValueError(f"Unknown demo profile '{profile}'")
        name, description = self._random.choice(ORGANIZATION_PROFILES[profile]["example_organizations"])
        return GeneratedOrganization(
            owner_id=f"demo-{profile}-{index}",
            name=name,
            description=description,
            profile=profile,
            answers=self.generate_answers(profile)
        )

    def generate_demo_set(self, count: int = 4) -> List[GeneratedOrganization]:
        """One organization per profile, cycling through profiles for larger sets."""
        profiles = list(ORGANIZATION_PROFILES)
        return [
            self.generate_organization(profiles[i % len(profiles)], index=i + 1)
            for i in range(count)
        ]


def load_demo_data_to_db(backend, count: int = 4) -> List[str]:
    """
    Run demo organizations through the full lifecycle: start, save, submit.

    Args:
        backend: LocalAssessmentBackend (inside an app context)
        count: Number of demo organizations to create

    Returns:
        List of submitted run IDs
    """
    generator = DemoDataGenerator(backend.engine, seed=42)  # Reproducible demos
    run_ids = []

    for org in generator.generate_demo_set(count=count):
        run = backend.start_run(org.owner_id)
        backend.save_answers(run["id"], [
            {"question": code, "data": data} for code, data in org.answers.items()
        ])
        backend.submit(run["id"])
        run_ids.append(run["id"])

    return run_ids
