"""
Impact Assessment Engine

Explicit context object that wires the assessment components together for
one validated question bank:
- Branching evaluator (which questions are reachable)
- Section progress tracker (completion per section)
- Scoring aggregator (section scores, eligibility, instrument)

Nothing is kept at module level; the web app and sessions each hold a
reference to an engine instance.
"""

from decimal import Decimal
from typing import Dict, List, Any, Optional
import logging

from src.patterns.decision_table import InstrumentDecisionTable, create_default_instrument_table
from src.patterns.weighted_scoring import Number

from .answers import Answer, AnswerSnapshot, AnswerStore
from .branching import BranchingEvaluator
from .default_bank import create_default_question_bank
from .progress import ProgressReport, SectionProgressTracker
from .questions import Question, QuestionBank, load_question_bank_file
from .scoring import DEFAULT_ELIGIBILITY_THRESHOLD, AssessmentResult, ScoringAggregator

logger = logging.getLogger(__name__)


def _setting(config: Any, name: str, default: Any = None) -> Any:
    """Read a setting from a Flask config mapping or a config class."""
    if config is None:
        return default
    if hasattr(config, "get"):
        return config.get(name, default)
    return getattr(config, name, default)


class AssessmentEngine:
    """
    Engine for progressing through and scoring impact assessments.

    Example:
        engine = AssessmentEngine(create_default_question_bank())

        store = engine.new_store()
        store.set_answer("RISK_Q1", "YES")

        print(engine.progress(store.snapshot()).overall.percent)
        result = engine.score(store.snapshot(), run_id="abc123")
        print(f"Overall Score: {result.overall_score}")
    """

    def __init__(
        self,
        bank: QuestionBank,
        eligibility_threshold: Number = DEFAULT_ELIGIBILITY_THRESHOLD,
        instrument_table: Optional[InstrumentDecisionTable] = None
    ):
        # A broken questionnaire must stop startup
        bank.validate()
        self.bank = bank
        self.evaluator = BranchingEvaluator(bank)
        self.tracker = SectionProgressTracker(bank, self.evaluator)
        self.aggregator = ScoringAggregator(
            bank,
            self.evaluator,
            self.tracker,
            threshold=eligibility_threshold,
            instrument_table=instrument_table or create_default_instrument_table()
        )

    @classmethod
    def from_config(cls, config: Any = None) -> 'AssessmentEngine':
        """Build an engine from app settings (QUESTION_BANK_PATH, ELIGIBILITY_THRESHOLD)."""
        path = _setting(config, "QUESTION_BANK_PATH")
        if path:
            bank = load_question_bank_file(path)
        else:
            bank = create_default_question_bank()
        threshold = _setting(config, "ELIGIBILITY_THRESHOLD", DEFAULT_ELIGIBILITY_THRESHOLD)
        logger.info(f"Assessment engine ready ({'file ' + str(path) if path else 'default bank'}, "
                    f"eligibility threshold {threshold})")
        return cls(bank, eligibility_threshold=threshold)

    @property
    def eligibility_threshold(self) -> Decimal:
        return self.aggregator.threshold

    def new_store(self) -> AnswerStore:
        return AnswerStore(self.bank)

    def progress(self, answers: AnswerSnapshot) -> ProgressReport:
        return self.tracker.compute(answers)

    def missing_required(self, answers: AnswerSnapshot) -> Dict[str, List[str]]:
        return self.tracker.missing_required(answers)

    def score(self, answers: AnswerSnapshot, run_id: str = "unknown") -> AssessmentResult:
        return self.aggregator.score(answers, run_id=run_id)

    # ------------------------------------------------------------ payloads

    def question_payload(self, question: Question, answer: Optional[Answer] = None,
                         visible: bool = True) -> Dict[str, Any]:
        """Question as sent to clients, with its stored answer attached."""
        return {
            **question.to_dict(),
            "visible": visible,
            "answer": answer.to_dict() if answer is not None else None,
        }

    def questions_payload(self, section_code: str, answers: AnswerSnapshot) -> List[Dict[str, Any]]:
        """Every question of a section; hidden ones are flagged, their answers kept."""
        reachable = self.evaluator.reachability(answers)
        return [
            self.question_payload(q, answers.get(q.code), visible=reachable[q.code])
            for q in self.bank.questions_for_section(section_code)
        ]

    def sections_payload(self, answers: AnswerSnapshot) -> List[Dict[str, Any]]:
        report = self.progress(answers)
        return [
            {**s.to_dict(), "progress": report.sections[s.code].to_dict()}
            for s in self.bank.sections
        ]
