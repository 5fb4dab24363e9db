import copy
import json
from decimal import Decimal

import pytest

from src.assessment.default_bank import ASSESSMENT_QUESTIONS, SECTIONS, create_default_question_bank
from src.assessment.errors import InvalidConfiguration, InvalidReference
from src.assessment.questions import (
    Condition,
    QuestionType,
    load_question_bank,
    load_question_bank_file,
    validate_condition,
)

from .conftest import SMALL_QUESTIONS, SMALL_SECTIONS


def _questions():
    return copy.deepcopy(SMALL_QUESTIONS)


def test_validate_condition_rejects_absent_code():
    condition = Condition(question_code="MISSING", expected_value="yes")
    with pytest.raises(InvalidReference) as exc:
        validate_condition(condition, {"A", "B"}, owner_code="B")
    assert exc.value.referenced_code == "MISSING"
    assert exc.value.question_code == "B"


def test_validate_condition_accepts_known_code():
    validate_condition(Condition("A", "yes"), {"A", "B"}, owner_code="B")


def test_validate_condition_rejects_self_reference_and_bad_operator():
    with pytest.raises(InvalidReference):
        validate_condition(Condition("B", "yes"), {"A", "B"}, owner_code="B")
    with pytest.raises(InvalidReference):
        validate_condition(Condition("A", "yes", operator="gt"), {"A", "B"}, owner_code="B")


def test_condition_section_must_match_referenced_question(small_bank):
    condition = Condition("A", "yes", section_code="IMPACT")
    with pytest.raises(InvalidReference):
        validate_condition(condition, small_bank.question_codes, owner_code="B", bank=small_bank)


def test_load_rejects_condition_on_unknown_question():
    questions = _questions()
    questions[1]["conditions"] = [{"question": "Z", "value": "yes"}]
    with pytest.raises(InvalidReference):
        load_question_bank(SMALL_SECTIONS, questions)


def test_load_rejects_condition_cycle():
    questions = _questions()
    questions[0]["conditions"] = [{"question": "B", "value": "top"}]
    with pytest.raises(InvalidReference, match="cycle"):
        load_question_bank(SMALL_SECTIONS, questions)


def test_load_rejects_duplicate_order_in_section():
    questions = _questions()
    questions[1]["order"] = 1
    with pytest.raises(InvalidConfiguration, match="share order"):
        load_question_bank(SMALL_SECTIONS, questions)


def test_load_rejects_duplicate_codes():
    questions = _questions()
    questions[2]["code"] = "A"
    with pytest.raises(InvalidConfiguration, match="Duplicate question code"):
        load_question_bank(SMALL_SECTIONS, questions)


def test_load_rejects_section_weights_not_summing_to_one():
    sections = copy.deepcopy(SMALL_SECTIONS)
    sections[0]["weight"] = "0.6"
    with pytest.raises(InvalidConfiguration, match="weights sum"):
        load_question_bank(sections, _questions())


def test_load_rejects_non_finite_numbers():
    questions = _questions()
    questions[2]["max"] = "Infinity"
    with pytest.raises(InvalidConfiguration, match="finite"):
        load_question_bank(SMALL_SECTIONS, questions)


def test_load_rejects_choice_without_options():
    questions = _questions()
    questions[0]["options"] = []
    with pytest.raises(InvalidConfiguration, match="no options"):
        load_question_bank(SMALL_SECTIONS, questions)


def test_load_rejects_unknown_type():
    questions = _questions()
    questions[0]["type"] = "FREE_TEXT"
    with pytest.raises(InvalidConfiguration):
        load_question_bank(SMALL_SECTIONS, questions)


def test_multiple_choice_alias_maps_to_multi_choice():
    assert QuestionType.parse("MULTIPLE_CHOICE") is QuestionType.MULTI_CHOICE


def test_slider_dimension_synthesized_from_question_range(small_bank):
    question = small_bank.get_question("C")
    assert len(question.dimensions) == 1
    assert question.dimensions[0].code == "C"
    assert question.dimensions[0].max_value == Decimal("10")
    assert question.max_points == Decimal("10")


def test_max_points_per_type(small_bank):
    assert small_bank.get_question("A").max_points == Decimal("10")
    assert small_bank.get_question("D").max_points == Decimal("10")
    assert small_bank.get_question("E").max_points == Decimal("20")


def test_bank_lookups_follow_order(small_bank):
    assert [s.code for s in small_bank.sections] == ["RISK", "IMPACT"]
    assert [q.code for q in small_bank.all_questions()] == ["A", "B", "C", "D", "E"]
    assert [q.code for q in small_bank.questions_for_section("IMPACT")] == ["C", "D", "E"]
    assert small_bank.section_of("D") == "IMPACT"
    assert small_bank.get_question("nope") is None


def test_load_question_bank_file(tmp_path):
    path = tmp_path / "bank.json"
    path.write_text(json.dumps({"sections": SMALL_SECTIONS, "questions": SMALL_QUESTIONS}))
    bank = load_question_bank_file(path)
    assert bank.has_question("E")


def test_default_bank_is_valid():
    bank = create_default_question_bank()
    assert len(bank.all_questions()) == len(ASSESSMENT_QUESTIONS)
    assert [s.code for s in bank.sections] == [s["code"] for s in SECTIONS]
    assert bank.section_weights()["IMPACT"] == Decimal("0.40")
    assert bank.get_question("IMP_Q4").type is QuestionType.MULTI_CHOICE
