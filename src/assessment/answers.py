"""
Answer Store

Typed answers keyed by question code:
- SingleAnswer: single choice, slider, rating and NPS questions
- MultiAnswer: multi-choice questions
- MultiSliderAnswer: one number per dimension of a multi-slider question

The store applies edits strictly in call order and tracks which codes have
changed since the last successful save (the "dirty" set). Snapshots are
read-only, so a payload handed to the persistence layer cannot change
underneath it.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Dict, List, Any, Mapping, Optional, Tuple, Union

from .errors import TypeMismatch, UnknownQuestion
from .questions import Question, QuestionBank, QuestionType

logger = logging.getLogger(__name__)


def _number_out(value: Decimal) -> Union[int, float]:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


@dataclass(frozen=True)
class SingleAnswer:
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value}


@dataclass(frozen=True)
class MultiAnswer:
    values: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"values": list(self.values)}


@dataclass(frozen=True)
class MultiSliderAnswer:
    values: Mapping[str, Decimal]

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.values.items())))

    def to_dict(self) -> Dict[str, Any]:
        return {"values": {k: _number_out(v) for k, v in self.values.items()}}


Answer = Union[SingleAnswer, MultiAnswer, MultiSliderAnswer]
AnswerSnapshot = Mapping[str, Answer]


def _unwrap(data: Any) -> Any:
    """Accept both wire payloads ({"value": ..} / {"values": ..}) and bare values."""
    if isinstance(data, Mapping) and data and set(data.keys()) <= {"value", "values"}:
        if "values" in data:
            return data["values"]
        return data["value"]
    return data


def _parse_number(question: Question, raw: Any, what: str) -> Decimal:
    if isinstance(raw, bool) or raw is None:
        raise TypeMismatch(question.code, question.type.value, f"{what} must be a number")
    try:
        number = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise TypeMismatch(question.code, question.type.value, f"{what} must be a number, got {raw!r}")
    if not number.is_finite():
        raise TypeMismatch(question.code, question.type.value, f"{what} must be a finite number, got {raw!r}")
    return number


def parse_answer(question: Question, data: Any) -> Answer:
    """
    Convert a raw or wire-format value into the typed answer for `question`.

    Blank values (an empty string, an empty selection) are accepted and
    simply count as unanswered. Raises TypeMismatch when the shape does not
    fit the question type, when a choice is not one of the options, or when
    a slider value falls outside its dimension's range.
    """
    if isinstance(data, (SingleAnswer, MultiAnswer, MultiSliderAnswer)):
        data = data.to_dict()
    raw = _unwrap(data)
    qtype = question.type

    if qtype == QuestionType.MULTI_CHOICE:
        if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
            raise TypeMismatch(question.code, qtype.value, "expected a list of option values")
        values = tuple(str(v) for v in raw)
        if len(values) != len(set(values)):
            raise TypeMismatch(question.code, qtype.value, "an option was selected twice")
        for value in values:
            if question.option(value) is None:
                raise TypeMismatch(question.code, qtype.value, f"'{value}' is not an option")
        return MultiAnswer(values=values)

    if qtype == QuestionType.MULTI_SLIDER:
        if not isinstance(raw, Mapping):
            raise TypeMismatch(question.code, qtype.value, "expected a mapping of dimension codes to numbers")
        values: Dict[str, Decimal] = {}
        for dim_code, dim_value in raw.items():
            dimension = question.dimension(str(dim_code))
            if dimension is None:
                raise TypeMismatch(question.code, qtype.value, f"unknown dimension '{dim_code}'")
            number = _parse_number(question, dim_value, f"dimension '{dim_code}'")
            if not dimension.contains(number):
                raise TypeMismatch(
                    question.code, qtype.value,
                    f"{number} is outside {dimension.min_value}..{dimension.max_value} for '{dim_code}'"
                )
            values[str(dim_code)] = number
        return MultiSliderAnswer(values=MappingProxyType(values))

    # Single-valued types
    if isinstance(raw, (list, tuple, dict, set)) or raw is None or isinstance(raw, bool):
        raise TypeMismatch(question.code, qtype.value, "expected a single value")
    value = str(raw).strip()
    if value == "":
        return SingleAnswer(value="")

    if qtype == QuestionType.SLIDER:
        dimension = question.dimensions[0]
        number = _parse_number(question, value, "slider value")
        if not dimension.contains(number):
            raise TypeMismatch(
                question.code, qtype.value,
                f"{number} is outside {dimension.min_value}..{dimension.max_value}"
            )
        return SingleAnswer(value=value)

    if question.option(value) is None:
        raise TypeMismatch(question.code, qtype.value, f"'{value}' is not an option")
    return SingleAnswer(value=value)


def is_answered(question: Question, answer: Optional[Answer]) -> bool:
    """True when the answer is non-empty for the question's declared shape."""
    if answer is None:
        return False
    if isinstance(answer, SingleAnswer):
        return answer.value.strip() != ""
    if isinstance(answer, MultiAnswer):
        return len(answer.values) > 0
    if isinstance(answer, MultiSliderAnswer):
        return all(d.code in answer.values for d in question.dimensions)
    return False


def serialize_answers(snapshot: AnswerSnapshot) -> List[Dict[str, Any]]:
    """Wire format used by the backing store: [{"question": code, "data": {...}}]"""
    return [{"question": code, "data": answer.to_dict()} for code, answer in snapshot.items()]


class AnswerStore:
    """In-memory answers for one assessment run"""

    def __init__(self, bank: QuestionBank):
        self.bank = bank
        self._answers: Dict[str, Answer] = {}
        self._dirty: Dict[str, None] = {}

    def __len__(self) -> int:
        return len(self._answers)

    def __contains__(self, code: str) -> bool:
        return code in self._answers

    def get(self, code: str) -> Optional[Answer]:
        return self._answers.get(code)

    def _question(self, code: str) -> Question:
        question = self.bank.get_question(code)
        if question is None:
            raise UnknownQuestion(code)
        return question

    def set_answer(self, code: str, value: Any) -> Answer:
        """Replace or insert the answer for `code` and mark it dirty."""
        question = self._question(code)
        try:
            answer = parse_answer(question, value)
        except TypeMismatch as e:
            logger.warning(f"Rejected answer for {code}: {e.reason}")
            raise
        self._answers[code] = answer
        self._dirty[code] = None
        return answer

    def clear(self) -> None:
        """Drop every answer and dirty mark (used when a run is reset)."""
        self._answers.clear()
        self._dirty.clear()

    def load(self, answers: Mapping[str, Any]) -> int:
        """
        Hydrate previously persisted answers without marking them dirty.

        Codes that no longer exist in the bank, or values that no longer fit
        the question, are skipped with a warning. Returns the number loaded.
        """
        loaded = 0
        for code, data in answers.items():
            question = self.bank.get_question(code)
            if question is None:
                logger.warning(f"Skipping stored answer for unknown question {code}")
                continue
            try:
                self._answers[code] = parse_answer(question, data)
            except TypeMismatch as e:
                logger.warning(f"Skipping stored answer for {code}: {e.reason}")
                continue
            self._dirty.pop(code, None)
            loaded += 1
        return loaded

    def snapshot(self, dirty_only: bool = False) -> AnswerSnapshot:
        if dirty_only:
            return MappingProxyType({code: self._answers[code] for code in self._dirty})
        return MappingProxyType(dict(self._answers))

    def dirty_codes(self) -> List[str]:
        return list(self._dirty)

    @property
    def is_dirty(self) -> bool:
        return bool(self._dirty)

    def mark_clean(self, saved: AnswerSnapshot) -> List[str]:
        """
        Clear dirty marks for saved codes whose current value still equals
        the saved one. Codes edited again after the payload was taken stay
        dirty so the newer value gets saved too.
        """
        cleaned = []
        for code, answer in saved.items():
            if code in self._dirty and self._answers.get(code) == answer:
                del self._dirty[code]
                cleaned.append(code)
        return cleaned
