import copy

from src.assessment.answers import AnswerStore, MultiAnswer, SingleAnswer
from src.assessment.branching import BranchingEvaluator, condition_matches
from src.assessment.questions import Condition, load_question_bank

from .conftest import SMALL_QUESTIONS, SMALL_SECTIONS


def _snapshot(bank, **answers):
    store = AnswerStore(bank)
    for code, value in answers.items():
        store.set_answer(code, value)
    return store.snapshot()


def test_unconditioned_question_always_reachable(small_bank):
    evaluator = BranchingEvaluator(small_bank)
    assert evaluator.is_reachable("A", _snapshot(small_bank))


def test_conditioned_question_follows_answer(small_bank):
    evaluator = BranchingEvaluator(small_bank)
    assert not evaluator.is_reachable("B", _snapshot(small_bank))
    assert not evaluator.is_reachable("B", _snapshot(small_bank, A="no"))
    assert evaluator.is_reachable("B", _snapshot(small_bank, A="yes"))


def test_eq_is_case_sensitive():
    assert not condition_matches(Condition("A", "yes"), SingleAnswer("Yes"))
    assert condition_matches(Condition("A", "yes"), SingleAnswer("yes"))


def test_operators_on_single_and_multi_answers():
    selected = MultiAnswer(("health", "education"))
    assert condition_matches(Condition("D", "health"), selected)
    assert not condition_matches(Condition("D", "water"), selected)
    assert condition_matches(Condition("D", "water", operator="ne"), selected)
    assert condition_matches(Condition("D", ("water", "education"), operator="in"), selected)
    assert condition_matches(Condition("A", ("yes", "maybe"), operator="in"), SingleAnswer("yes"))
    assert condition_matches(Condition("A", "no", operator="ne"), SingleAnswer("yes"))
    assert condition_matches(Condition("A", "ye", operator="contains"), SingleAnswer("yes"))


def _chained_bank():
    questions = copy.deepcopy(SMALL_QUESTIONS)
    # D now depends on B, which depends on A
    questions[3]["conditions"] = [{"question": "B", "value": "top", "section": "RISK"}]
    return load_question_bank(SMALL_SECTIONS, questions)


def test_hiding_cascades_through_dependents():
    bank = _chained_bank()
    evaluator = BranchingEvaluator(bank)

    visible = _snapshot(bank, A="yes", B="top")
    assert evaluator.is_reachable("D", visible)

    # B keeps its stored answer but is hidden, so D is hidden too
    hidden = _snapshot(bank, A="no", B="top")
    assert not evaluator.is_reachable("B", hidden)
    assert not evaluator.is_reachable("D", hidden)
    assert evaluator.hidden_answers(hidden) == ["B"]


def test_conditions_combine_with_or():
    questions = copy.deepcopy(SMALL_QUESTIONS)
    questions[1]["conditions"] = [
        {"question": "A", "value": "yes"},
        {"question": "C", "value": "10"},
    ]
    bank = load_question_bank(SMALL_SECTIONS, questions)
    evaluator = BranchingEvaluator(bank)
    assert evaluator.is_reachable("B", _snapshot(bank, A="no", C="10"))
    assert not evaluator.is_reachable("B", _snapshot(bank, A="no", C="9"))


def test_reachable_questions_and_navigation(small_bank):
    evaluator = BranchingEvaluator(small_bank)
    no = _snapshot(small_bank, A="no")
    yes = _snapshot(small_bank, A="yes")

    assert [q.code for q in evaluator.reachable_questions("RISK", no)] == ["A"]
    assert [q.code for q in evaluator.reachable_questions("RISK", yes)] == ["A", "B"]

    assert evaluator.first_question(no).code == "A"
    assert evaluator.next_question("A", no).code == "C"
    assert evaluator.next_question("A", yes).code == "B"
    assert evaluator.next_question("E", yes) is None

    assert evaluator.next_section(None, no) == "RISK"
    assert evaluator.next_section("RISK", no) == "IMPACT"
    assert evaluator.next_section("IMPACT", no) is None
