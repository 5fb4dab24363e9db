"""
Branching Evaluator

Decides which questions are reachable for the current answers.

A question without conditions is always reachable. A question with
conditions is reachable when ANY of them holds, and a condition holds only
when the question it references is itself reachable and answered. Hiding a
question therefore cascades to everything conditioned on it. Answers of
hidden questions are kept in the store; they are simply ignored.
"""

import logging
from typing import Dict, List, Optional, Tuple

from .answers import AnswerSnapshot, MultiAnswer, SingleAnswer, is_answered
from .questions import Condition, Question, QuestionBank

logger = logging.getLogger(__name__)


def _as_tuple(expected) -> Tuple[str, ...]:
    if isinstance(expected, tuple):
        return expected
    return (expected,)


def condition_matches(condition: Condition, answer) -> bool:
    """Compare an answer with a condition's expected value (case-sensitive)."""
    expected = condition.expected_value
    op = condition.operator

    if isinstance(answer, MultiAnswer):
        selected = set(answer.values)
        if op == "eq":
            return any(v in selected for v in _as_tuple(expected))
        if op == "ne":
            return not any(v in selected for v in _as_tuple(expected))
        if op == "in":
            return bool(selected.intersection(_as_tuple(expected)))
        if op == "contains":
            return all(v in selected for v in _as_tuple(expected))
        return False

    if isinstance(answer, SingleAnswer):
        value = answer.value
        if op == "eq":
            return value in _as_tuple(expected)
        if op == "ne":
            return value not in _as_tuple(expected)
        if op == "in":
            return value in _as_tuple(expected)
        if op == "contains":
            return all(v in value for v in _as_tuple(expected))
        return False

    # Multi-slider answers have no single value to compare against
    return False


class BranchingEvaluator:
    """Reachability and navigation over a validated question bank"""

    def __init__(self, bank: QuestionBank):
        self.bank = bank

    def _reachable(self, code: str, answers: AnswerSnapshot, memo: Dict[str, bool]) -> bool:
        if code in memo:
            return memo[code]
        question = self.bank.get_question(code)
        if question is None:
            memo[code] = False
            return False
        if not question.conditions:
            memo[code] = True
            return True

        result = False
        for condition in question.conditions:
            ref = self.bank.get_question(condition.question_code)
            if ref is None or not self._reachable(ref.code, answers, memo):
                continue
            answer = answers.get(ref.code)
            if not is_answered(ref, answer):
                continue
            if condition_matches(condition, answer):
                result = True
                break
        memo[code] = result
        return result

    def is_reachable(self, code: str, answers: AnswerSnapshot) -> bool:
        return self._reachable(code, answers, {})

    def reachability(self, answers: AnswerSnapshot) -> Dict[str, bool]:
        """Reachability of every question, evaluated once per snapshot."""
        memo: Dict[str, bool] = {}
        return {q.code: self._reachable(q.code, answers, memo) for q in self.bank.all_questions()}

    def reachable_questions(self, section_code: str, answers: AnswerSnapshot) -> List[Question]:
        memo: Dict[str, bool] = {}
        return [
            q for q in self.bank.questions_for_section(section_code)
            if self._reachable(q.code, answers, memo)
        ]

    def first_question(self, answers: AnswerSnapshot) -> Optional[Question]:
        memo: Dict[str, bool] = {}
        for q in self.bank.all_questions():
            if self._reachable(q.code, answers, memo):
                return q
        return None

    def next_question(self, after_code: str, answers: AnswerSnapshot) -> Optional[Question]:
        """Next reachable question after `after_code`, crossing section boundaries."""
        ordered = self.bank.all_questions()
        codes = [q.code for q in ordered]
        if after_code not in codes:
            return self.first_question(answers)
        memo: Dict[str, bool] = {}
        for q in ordered[codes.index(after_code) + 1:]:
            if self._reachable(q.code, answers, memo):
                return q
        return None

    def next_section(self, after_section_code: Optional[str], answers: AnswerSnapshot) -> Optional[str]:
        """Next section holding at least one reachable question."""
        sections = [s.code for s in self.bank.sections]
        start = 0
        if after_section_code is not None:
            if after_section_code not in sections:
                return None
            start = sections.index(after_section_code) + 1
        memo: Dict[str, bool] = {}
        for section_code in sections[start:]:
            if any(self._reachable(q.code, answers, memo)
                   for q in self.bank.questions_for_section(section_code)):
                return section_code
        return None

    def hidden_answers(self, answers: AnswerSnapshot) -> List[str]:
        """Codes that hold an answer but are currently unreachable."""
        memo: Dict[str, bool] = {}
        hidden = [
            code for code in answers
            if self.bank.has_question(code) and not self._reachable(code, answers, memo)
        ]
        if hidden:
            logger.debug(f"Answers kept for hidden questions: {hidden}")
        return hidden
