"""
Section Progress Tracker

Counts only questions that are required AND currently reachable. A section
with nothing required (for example, every question hidden by branching)
is reported as complete.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any

from .answers import AnswerSnapshot, is_answered
from .branching import BranchingEvaluator
from .questions import QuestionBank


@dataclass(frozen=True)
class Progress:
    answered: int
    required: int

    @property
    def percent(self) -> float:
        if self.required == 0:
            return 100.0
        return round(self.answered * 100.0 / self.required, 2)

    @property
    def is_complete(self) -> bool:
        return self.answered >= self.required

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answered": self.answered,
            "required": self.required,
            "percent": self.percent,
        }


@dataclass
class ProgressReport:
    overall: Progress
    sections: Dict[str, Progress] = field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        return self.overall.is_complete

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.overall.to_dict(),
            "by_section": {code: p.to_dict() for code, p in self.sections.items()},
        }


class SectionProgressTracker:
    """Per-section and overall completion for one answer snapshot"""

    def __init__(self, bank: QuestionBank, evaluator: BranchingEvaluator):
        self.bank = bank
        self.evaluator = evaluator

    def compute(self, answers: AnswerSnapshot) -> ProgressReport:
        reachable = self.evaluator.reachability(answers)
        sections: Dict[str, Progress] = {}
        total_answered = 0
        total_required = 0

        for section in self.bank.sections:
            answered = 0
            required = 0
            for q in self.bank.questions_for_section(section.code):
                if not q.required or not reachable[q.code]:
                    continue
                required += 1
                if is_answered(q, answers.get(q.code)):
                    answered += 1
            sections[section.code] = Progress(answered=answered, required=required)
            total_answered += answered
            total_required += required

        return ProgressReport(
            overall=Progress(answered=total_answered, required=total_required),
            sections=sections,
        )

    def missing_required(self, answers: AnswerSnapshot) -> Dict[str, List[str]]:
        """Required, reachable, unanswered question codes grouped by section."""
        reachable = self.evaluator.reachability(answers)
        missing: Dict[str, List[str]] = {}
        for q in self.bank.all_questions():
            if q.required and reachable[q.code] and not is_answered(q, answers.get(q.code)):
                missing.setdefault(q.section_code, []).append(q.code)
        return missing
