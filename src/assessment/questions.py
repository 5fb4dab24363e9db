"""
Assessment Question Model

Typed representation of the admin-authored questionnaire:
- Sections with a fixed share of the overall score
- Questions of six types with options (choice, rating, NPS) or
  dimensions (slider, multi-slider)
- Conditions that make a question reachable only for certain answers

The bank is built once from plain dictionaries (the config source) and
validated as a whole. Validation failures are fatal: the engine refuses to
start with a broken questionnaire.
"""

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Dict, List, Any, Optional, Iterable, Tuple, Union

from .errors import InvalidConfiguration, InvalidReference

logger = logging.getLogger(__name__)

# Section weights must add up to this total
SECTION_WEIGHT_TOTAL = Decimal("1")
SECTION_WEIGHT_TOLERANCE = Decimal("0.0001")

CONDITION_OPERATORS = ("eq", "ne", "in", "contains")


class QuestionType(Enum):
    """Supported question types"""
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTI_CHOICE = "MULTI_CHOICE"
    SLIDER = "SLIDER"
    MULTI_SLIDER = "MULTI_SLIDER"
    RATING = "RATING"
    NPS = "NPS"

    @classmethod
    def parse(cls, raw: str) -> 'QuestionType':
        value = str(raw).strip().upper()
        if value == "MULTIPLE_CHOICE":
            value = "MULTI_CHOICE"
        try:
            return cls(value)
        except ValueError:
            raise InvalidConfiguration(f"Unknown question type '{raw}'")

    @property
    def uses_options(self) -> bool:
        return self in (
            QuestionType.SINGLE_CHOICE,
            QuestionType.MULTI_CHOICE,
            QuestionType.RATING,
            QuestionType.NPS,
        )

    @property
    def uses_dimensions(self) -> bool:
        return self in (QuestionType.SLIDER, QuestionType.MULTI_SLIDER)


def to_decimal(value: Any, what: str) -> Decimal:
    """Parse a configured number (int, float or numeric string) into a Decimal."""
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidConfiguration(f"{what} must be numeric, got {value!r}")
    if not number.is_finite():
        raise InvalidConfiguration(f"{what} must be finite, got {value!r}")
    return number


@dataclass(frozen=True)
class QuestionOption:
    """A selectable option of a choice, rating or NPS question"""
    label: str
    value: str
    points: Decimal = Decimal("0")


@dataclass(frozen=True)
class QuestionDimension:
    """One scale of a slider or multi-slider question"""
    code: str
    label: str
    min_value: Decimal
    max_value: Decimal
    points_per_unit: Decimal = Decimal("1")
    weight: Decimal = Decimal("1")

    def contains(self, value: Decimal) -> bool:
        return self.min_value <= value <= self.max_value

    def points_for(self, value: Decimal) -> Decimal:
        return self.points_per_unit * (value - self.min_value)

    @property
    def max_points(self) -> Decimal:
        return max(Decimal("0"), self.points_for(self.max_value))


@dataclass(frozen=True)
class Condition:
    """
    Reachability predicate attached to a question.

    The question is reachable when the referenced question's answer
    satisfies `operator` against `expected_value`. `section_code`, when set,
    names the section the referenced question lives in.
    """
    question_code: str
    expected_value: Union[str, Tuple[str, ...]]
    operator: str = "eq"
    section_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Condition':
        question_code = data.get("question") or data.get("question_code") or data.get("q")
        if not question_code:
            raise InvalidConfiguration(f"Condition is missing its question code: {data!r}")
        operator = str(data.get("op") or data.get("operator") or "eq").lower()
        if "value" in data:
            raw = data["value"]
        elif "expected_value" in data:
            raw = data["expected_value"]
        else:
            raw = data.get("val")
        if isinstance(raw, (list, tuple, set)):
            expected: Union[str, Tuple[str, ...]] = tuple(str(v) for v in raw)
        else:
            expected = "" if raw is None else str(raw)
        return cls(
            question_code=str(question_code),
            expected_value=expected,
            operator=operator,
            section_code=data.get("section") or data.get("section_code"),
        )

    def to_dict(self) -> Dict[str, Any]:
        value = list(self.expected_value) if isinstance(self.expected_value, tuple) else self.expected_value
        return {
            "question": self.question_code,
            "op": self.operator,
            "value": value,
            "section": self.section_code,
        }


@dataclass
class Question:
    """A single assessment question"""
    code: str
    text: str
    type: QuestionType
    section_code: str
    order: int
    required: bool = True
    weight: Decimal = Decimal("1")
    help_text: Optional[str] = None
    options: List[QuestionOption] = field(default_factory=list)
    dimensions: List[QuestionDimension] = field(default_factory=list)
    conditions: List[Condition] = field(default_factory=list)

    @property
    def is_conditional(self) -> bool:
        return bool(self.conditions)

    def option(self, value: str) -> Optional[QuestionOption]:
        for opt in self.options:
            if opt.value == value:
                return opt
        return None

    def dimension(self, code: str) -> Optional[QuestionDimension]:
        for dim in self.dimensions:
            if dim.code == code:
                return dim
        return None

    @property
    def max_points(self) -> Decimal:
        """Highest raw points this question can produce"""
        if self.type == QuestionType.MULTI_CHOICE:
            return sum((o.points for o in self.options if o.points > 0), Decimal("0"))
        if self.type.uses_options:
            return max((o.points for o in self.options), default=Decimal("0"))
        return sum((d.max_points for d in self.dimensions), Decimal("0"))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "code": self.code,
            "text": self.text,
            "help_text": self.help_text,
            "type": self.type.value,
            "section": self.section_code,
            "required": self.required,
            "order": self.order,
            "weight": str(self.weight),
        }
        if self.type.uses_options:
            data["options"] = [
                {"label": o.label, "value": o.value, "points": str(o.points)}
                for o in self.options
            ]
        if self.type.uses_dimensions:
            data["dimensions"] = [
                {
                    "code": d.code,
                    "label": d.label,
                    "min": float(d.min_value),
                    "max": float(d.max_value),
                    "points_per_unit": str(d.points_per_unit),
                    "weight": str(d.weight),
                }
                for d in self.dimensions
            ]
        if self.conditions:
            data["conditions"] = [c.to_dict() for c in self.conditions]
        return data


@dataclass
class Section:
    """A weighted group of questions"""
    code: str
    title: str
    order: int
    weight: Decimal
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "title": self.title,
            "order": self.order,
            "weight": str(self.weight),
            "description": self.description,
        }


def validate_condition(
    condition: Condition,
    known_codes: Iterable[str],
    owner_code: Optional[str] = None,
    bank: Optional['QuestionBank'] = None
) -> None:
    """
    Check that a condition can be evaluated.

    Raises InvalidReference when the referenced code is unknown, when the
    condition points at its own question, when the operator is not
    supported, or when `section_code` disagrees with the referenced
    question's section (only checked when a bank is given).
    """
    codes = set(known_codes)
    ref = condition.question_code

    if ref not in codes:
        raise InvalidReference(
            f"Condition on '{owner_code}' references unknown question '{ref}'",
            question_code=owner_code,
            referenced_code=ref
        )
    if owner_code is not None and ref == owner_code:
        raise InvalidReference(
            f"Question '{owner_code}' has a condition on itself",
            question_code=owner_code,
            referenced_code=ref
        )
    if condition.operator not in CONDITION_OPERATORS:
        raise InvalidReference(
            f"Condition on '{owner_code}' uses unsupported operator '{condition.operator}'",
            question_code=owner_code,
            referenced_code=ref
        )
    if condition.operator == "in" and not isinstance(condition.expected_value, tuple):
        raise InvalidReference(
            f"Condition on '{owner_code}' uses 'in' without a list of values",
            question_code=owner_code,
            referenced_code=ref
        )
    if bank is not None and condition.section_code:
        actual = bank.section_of(ref)
        if actual != condition.section_code:
            raise InvalidReference(
                f"Condition on '{owner_code}' places '{ref}' in section "
                f"'{condition.section_code}' but it belongs to '{actual}'",
                question_code=owner_code,
                referenced_code=ref
            )


class QuestionBank:
    """
    Validated, read-only questionnaire.

    Questions are kept in evaluation order: sections by `order`, then
    questions by `order` within each section.
    """

    def __init__(self, sections: List[Section], questions: List[Question]):
        self._sections = sorted(sections, key=lambda s: s.order)
        self._section_index = {s.code: s for s in self._sections}
        self._by_section: Dict[str, List[Question]] = {s.code: [] for s in self._sections}
        self._questions: Dict[str, Question] = {}
        self._load_errors: List[str] = []

        for q in questions:
            if q.code in self._questions:
                self._load_errors.append(f"Duplicate question code '{q.code}'")
                continue
            self._questions[q.code] = q
            if q.section_code in self._by_section:
                self._by_section[q.section_code].append(q)
            else:
                self._load_errors.append(
                    f"Question '{q.code}' belongs to unknown section '{q.section_code}'"
                )

        for code in self._by_section:
            self._by_section[code].sort(key=lambda q: q.order)

    # ---------------------------------------------------------------- lookups

    @property
    def sections(self) -> List[Section]:
        return list(self._sections)

    @property
    def question_codes(self) -> List[str]:
        return [q.code for q in self.all_questions()]

    def get_section(self, section_code: str) -> Optional[Section]:
        return self._section_index.get(section_code)

    def get_question(self, code: str) -> Optional[Question]:
        return self._questions.get(code)

    def has_question(self, code: str) -> bool:
        return code in self._questions

    def section_of(self, code: str) -> Optional[str]:
        question = self._questions.get(code)
        return question.section_code if question else None

    def questions_for_section(self, section_code: str) -> List[Question]:
        return list(self._by_section.get(section_code, []))

    def all_questions(self) -> List[Question]:
        ordered = []
        for section in self._sections:
            ordered.extend(self._by_section[section.code])
        return ordered

    def section_weights(self) -> Dict[str, Decimal]:
        return {s.code: s.weight for s in self._sections}

    # ------------------------------------------------------------- validation

    def validate(self) -> None:
        """Validate the bank; raises InvalidConfiguration / InvalidReference."""
        if self._load_errors:
            raise InvalidConfiguration("; ".join(self._load_errors))
        if not self._sections:
            raise InvalidConfiguration("Question bank has no sections")

        seen_sections = set()
        for section in self._sections:
            if section.code in seen_sections:
                raise InvalidConfiguration(f"Duplicate section code '{section.code}'")
            seen_sections.add(section.code)
            if section.weight < 0:
                raise InvalidConfiguration(f"Section '{section.code}' has a negative weight")

        total = sum((s.weight for s in self._sections), Decimal("0"))
        if abs(total - SECTION_WEIGHT_TOTAL) > SECTION_WEIGHT_TOLERANCE:
            raise InvalidConfiguration(
                f"Section weights sum to {total}, expected {SECTION_WEIGHT_TOTAL}"
            )

        for section in self._sections:
            orders: Dict[int, str] = {}
            for q in self._by_section[section.code]:
                if q.order in orders:
                    raise InvalidConfiguration(
                        f"Questions '{orders[q.order]}' and '{q.code}' share order "
                        f"{q.order} in section '{section.code}'"
                    )
                orders[q.order] = q.code

        for q in self._questions.values():
            self._validate_payload(q)

        known = set(self._questions)
        for q in self._questions.values():
            for condition in q.conditions:
                validate_condition(condition, known, owner_code=q.code, bank=self)

        self._check_condition_cycles()
        logger.info(
            f"Question bank validated: {len(self._sections)} sections, "
            f"{len(self._questions)} questions"
        )

    def _validate_payload(self, q: Question) -> None:
        if q.weight < 0:
            raise InvalidConfiguration(f"Question '{q.code}' has a negative weight")
        if q.type.uses_options:
            if not q.options:
                raise InvalidConfiguration(f"Question '{q.code}' ({q.type.value}) has no options")
            values = [o.value for o in q.options]
            if len(values) != len(set(values)):
                raise InvalidConfiguration(f"Question '{q.code}' has duplicate option values")
        if q.type.uses_dimensions:
            if not q.dimensions:
                raise InvalidConfiguration(f"Question '{q.code}' ({q.type.value}) has no dimensions")
            if q.type == QuestionType.SLIDER and len(q.dimensions) != 1:
                raise InvalidConfiguration(f"Slider question '{q.code}' must have exactly one dimension")
            codes = [d.code for d in q.dimensions]
            if len(codes) != len(set(codes)):
                raise InvalidConfiguration(f"Question '{q.code}' has duplicate dimension codes")
            for d in q.dimensions:
                if d.max_value <= d.min_value:
                    raise InvalidConfiguration(
                        f"Dimension '{d.code}' of '{q.code}' has max <= min"
                    )

    def _check_condition_cycles(self) -> None:
        visiting = set()
        done = set()

        def visit(code: str, path: List[str]) -> None:
            if code in done:
                return
            if code in visiting:
                cycle = " -> ".join(path + [code])
                raise InvalidReference(
                    f"Conditions form a cycle: {cycle}",
                    question_code=path[0] if path else code,
                    referenced_code=code
                )
            visiting.add(code)
            for condition in self._questions[code].conditions:
                visit(condition.question_code, path + [code])
            visiting.discard(code)
            done.add(code)

        for code in self._questions:
            visit(code, [])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sections": [
                {
                    **s.to_dict(),
                    "questions": [q.to_dict() for q in self._by_section[s.code]],
                }
                for s in self._sections
            ]
        }


# =============================================================================
# Loading from the config source
# =============================================================================

def _build_dimensions(data: Dict[str, Any], code: str, qtype: QuestionType) -> List[QuestionDimension]:
    raw_dims = data.get("dimensions") or []
    if not raw_dims and qtype == QuestionType.SLIDER and "min" in data and "max" in data:
        raw_dims = [{
            "code": code,
            "label": data.get("text", code),
            "min": data["min"],
            "max": data["max"],
            "points_per_unit": data.get("points_per_unit", 1),
        }]

    dimensions = []
    for dim in raw_dims:
        dim_code = str(dim.get("code", ""))
        dimensions.append(QuestionDimension(
            code=dim_code,
            label=dim.get("label", dim_code),
            min_value=to_decimal(dim.get("min", dim.get("min_value", 0)), f"{code}.{dim_code}.min"),
            max_value=to_decimal(dim.get("max", dim.get("max_value", 0)), f"{code}.{dim_code}.max"),
            points_per_unit=to_decimal(dim.get("points_per_unit", 1), f"{code}.{dim_code}.points_per_unit"),
            weight=to_decimal(dim.get("weight", 1), f"{code}.{dim_code}.weight"),
        ))
    return dimensions


def question_from_dict(data: Dict[str, Any]) -> Question:
    """Build a Question from an admin-authored dictionary."""
    code = data.get("code")
    if not code:
        raise InvalidConfiguration(f"Question without a code: {data!r}")
    section = data.get("section") or data.get("section_code")
    if not section:
        raise InvalidConfiguration(f"Question '{code}' has no section")
    if "order" not in data:
        raise InvalidConfiguration(f"Question '{code}' has no order")

    qtype = QuestionType.parse(data.get("type", ""))
    options = [
        QuestionOption(
            label=str(opt.get("label", opt.get("value", ""))),
            value=str(opt["value"]),
            points=to_decimal(opt.get("points", 0), f"{code} option points"),
        )
        for opt in (data.get("options") or [])
    ]

    return Question(
        code=str(code),
        text=data.get("text", ""),
        type=qtype,
        section_code=str(section),
        order=int(data["order"]),
        required=bool(data.get("required", True)),
        weight=to_decimal(data.get("weight", 1), f"{code} weight"),
        help_text=data.get("help_text"),
        options=options,
        dimensions=_build_dimensions(data, str(code), qtype),
        conditions=[Condition.from_dict(c) for c in (data.get("conditions") or [])],
    )


def section_from_dict(data: Dict[str, Any]) -> Section:
    """Build a Section from an admin-authored dictionary."""
    code = data.get("code")
    if not code:
        raise InvalidConfiguration(f"Section without a code: {data!r}")
    return Section(
        code=str(code),
        title=data.get("title", code),
        order=int(data.get("order", 0)),
        weight=to_decimal(data.get("weight", data.get("weightage", 0)), f"section {code} weight"),
        description=data.get("description", ""),
    )


def load_question_bank(
    sections: List[Dict[str, Any]],
    questions: List[Dict[str, Any]]
) -> QuestionBank:
    """Build and validate a QuestionBank from config dictionaries."""
    bank = QuestionBank(
        [section_from_dict(s) for s in sections],
        [question_from_dict(q) for q in questions],
    )
    bank.validate()
    return bank


def load_question_bank_file(path: Union[str, Path]) -> QuestionBank:
    """Load a question bank from a JSON file with `sections` and `questions`."""
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    logger.info(f"Loading question bank from {path}")
    return load_question_bank(data.get("sections", []), data.get("questions", []))
