"""
Scoring Aggregator

Turns a complete answer snapshot into the assessment result:
1. Raw points per question (option points, or points per unit above each
   slider dimension's minimum)
2. Per-section score: weighted raw points of reachable answered questions
   over the weighted maximum of reachable required questions, on 0-100
3. Overall score: section scores weighted by section weight
4. Loan eligibility: overall score at or above the threshold
5. Financing instrument from the ordered decision table

All arithmetic is Decimal; scores are rounded to two places. An incomplete
snapshot is an error, never a zero score.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Any, Optional

from src.patterns.decision_table import (
    InstrumentDecisionTable,
    InstrumentRecommendation,
    create_default_instrument_table
)
from src.patterns.weighted_scoring import (
    Number,
    as_decimal,
    create_section_weight_engine,
    normalize_to_100,
    quantize
)

from .answers import (
    Answer,
    AnswerSnapshot,
    MultiAnswer,
    MultiSliderAnswer,
    SingleAnswer,
    is_answered
)
from .branching import BranchingEvaluator
from .errors import IncompleteSubmission
from .progress import SectionProgressTracker
from .questions import Question, QuestionBank, QuestionType
from .run import utcnow

logger = logging.getLogger(__name__)

DEFAULT_ELIGIBILITY_THRESHOLD = Decimal("10")


def is_eligible(score: Number, threshold: Number = DEFAULT_ELIGIBILITY_THRESHOLD) -> bool:
    """Eligible when the score reaches the threshold (inclusive)."""
    return as_decimal(score) >= as_decimal(threshold)


def raw_points(question: Question, answer: Answer) -> Decimal:
    """Points earned by one answer before question weighting."""
    if isinstance(answer, MultiAnswer):
        total = Decimal("0")
        for value in answer.values:
            option = question.option(value)
            if option is not None:
                total += option.points
        return total

    if isinstance(answer, MultiSliderAnswer):
        total = Decimal("0")
        for dimension in question.dimensions:
            if dimension.code in answer.values:
                total += dimension.points_for(answer.values[dimension.code])
        return total

    if isinstance(answer, SingleAnswer):
        if question.type == QuestionType.SLIDER:
            return question.dimensions[0].points_for(Decimal(answer.value))
        option = question.option(answer.value)
        return option.points if option is not None else Decimal("0")

    return Decimal("0")


@dataclass
class SectionScore:
    code: str
    title: str
    raw_points: Decimal
    max_points: Decimal
    normalized: Decimal
    weight: Decimal
    contribution: Decimal
    answered: int
    required: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "title": self.title,
            "raw_points": float(self.raw_points),
            "max_points": float(self.max_points),
            "score": float(self.normalized),
            "weight": float(self.weight),
            "weighted_contribution": float(self.contribution),
            "answered": self.answered,
            "required": self.required,
        }


@dataclass
class AssessmentResult:
    """Immutable outcome of scoring a submitted run"""
    run_id: str
    computed_at: datetime
    section_scores: Dict[str, SectionScore]
    overall_score: Decimal
    eligible: bool
    eligibility_threshold: Decimal
    instrument: InstrumentRecommendation
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def scores(self) -> Dict[str, Decimal]:
        return {code: s.normalized for code, s in self.section_scores.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "computed_at": self.computed_at.isoformat(),
            "scores": {
                "overall": float(self.overall_score),
                "sections": {code: float(s.normalized) for code, s in self.section_scores.items()},
            },
            "section_details": {code: s.to_dict() for code, s in self.section_scores.items()},
            "loan_eligible": self.eligible,
            "eligibility_threshold": float(self.eligibility_threshold),
            "instrument": self.instrument.to_dict(),
            "metadata": self.metadata,
        }


class ScoringAggregator:
    """Scores complete answer snapshots against one question bank"""

    def __init__(
        self,
        bank: QuestionBank,
        evaluator: BranchingEvaluator,
        tracker: SectionProgressTracker,
        threshold: Number = DEFAULT_ELIGIBILITY_THRESHOLD,
        instrument_table: Optional[InstrumentDecisionTable] = None
    ):
        self.bank = bank
        self.evaluator = evaluator
        self.tracker = tracker
        self.threshold = as_decimal(threshold)
        self.instrument_table = instrument_table or create_default_instrument_table()
        self.section_engine = create_section_weight_engine(
            bank.section_weights(),
            {s.code: s.title for s in bank.sections}
        )

    def ensure_complete(self, answers: AnswerSnapshot) -> None:
        missing = self.tracker.missing_required(answers)
        if missing:
            codes: List[str] = [code for section_codes in missing.values() for code in section_codes]
            logger.warning(f"Scoring refused, unanswered required questions: {codes}")
            raise IncompleteSubmission(codes, list(missing))

    def section_score(self, section_code: str, answers: AnswerSnapshot,
                      reachable: Dict[str, bool]) -> SectionScore:
        section = self.bank.get_section(section_code)
        raw_total = Decimal("0")
        max_total = Decimal("0")
        answered = 0
        required = 0

        for q in self.bank.questions_for_section(section_code):
            if not reachable[q.code]:
                continue
            answer = answers.get(q.code)
            if is_answered(q, answer):
                raw_total += raw_points(q, answer) * q.weight
                if q.required:
                    answered += 1
            if q.required:
                required += 1
                max_total += q.max_points * q.weight

        normalized = quantize(normalize_to_100(raw_total, max_total))
        return SectionScore(
            code=section_code,
            title=section.title,
            raw_points=quantize(raw_total),
            max_points=quantize(max_total),
            normalized=normalized,
            weight=section.weight,
            contribution=quantize(normalized * section.weight),
            answered=answered,
            required=required,
        )

    def score(self, answers: AnswerSnapshot, run_id: str = "unknown",
              computed_at: Optional[datetime] = None) -> AssessmentResult:
        """Score a snapshot; raises IncompleteSubmission when answers are missing."""
        self.ensure_complete(answers)
        reachable = self.evaluator.reachability(answers)

        section_scores = {
            s.code: self.section_score(s.code, answers, reachable)
            for s in self.bank.sections
        }
        overall = self.section_engine.score(
            {code: s.normalized for code, s in section_scores.items()},
            entity_id=run_id
        ).overall_score

        eligible = is_eligible(overall, self.threshold)
        instrument = self.instrument_table.recommend(
            {code: s.normalized for code, s in section_scores.items()}
        )
        logger.info(
            f"Scored run {run_id}: overall={overall} eligible={eligible} "
            f"instrument={instrument.name}"
        )

        return AssessmentResult(
            run_id=run_id,
            computed_at=computed_at or utcnow(),
            section_scores=section_scores,
            overall_score=overall,
            eligible=eligible,
            eligibility_threshold=self.threshold,
            instrument=instrument,
            metadata={"hidden_answers": self.evaluator.hidden_answers(answers)},
        )
