from types import MappingProxyType

import pytest

from src.assessment.answers import (
    AnswerStore,
    MultiAnswer,
    MultiSliderAnswer,
    SingleAnswer,
    is_answered,
    parse_answer,
    serialize_answers,
)
from src.assessment.errors import TypeMismatch, UnknownQuestion


def test_snapshot_right_after_set_answer_contains_value(small_bank):
    store = AnswerStore(small_bank)
    store.set_answer("A", "yes")
    assert store.snapshot()["A"] == SingleAnswer("yes")


def test_snapshot_equals_edits_applied_in_order(small_bank):
    edits = [
        ("A", "no"),
        ("C", "3"),
        ("A", "yes"),
        ("D", ["health"]),
        ("C", 7),
        ("D", ["health", "education"]),
        ("B", {"value": "other"}),
    ]
    store = AnswerStore(small_bank)
    expected = {}
    for code, value in edits:
        store.set_answer(code, value)
        expected[code] = parse_answer(small_bank.get_question(code), value)

    assert dict(store.snapshot()) == expected
    assert store.snapshot()["C"] == SingleAnswer("7")
    assert store.snapshot()["D"] == MultiAnswer(("health", "education"))


def test_snapshot_is_read_only(small_bank):
    store = AnswerStore(small_bank)
    store.set_answer("A", "yes")
    snapshot = store.snapshot()
    with pytest.raises(TypeError):
        snapshot["A"] = SingleAnswer("no")
    store.set_answer("A", "no")
    assert snapshot["A"] == SingleAnswer("yes")


def test_unknown_question_is_rejected(small_bank):
    store = AnswerStore(small_bank)
    with pytest.raises(UnknownQuestion):
        store.set_answer("ZZZ", "yes")
    assert len(store) == 0


@pytest.mark.parametrize("code, value", [
    ("A", "maybe"),
    ("A", ["yes"]),
    ("C", "11"),
    ("C", "lots"),
    ("D", "health"),
    ("D", ["health", "sports"]),
    ("E", {"reach": 5, "width": 2}),
    ("E", {"reach": 12}),
    ("C", "NaN"),
    ("C", "Infinity"),
    ("C", float("nan")),
    ("E", {"reach": "sNaN", "depth": 1}),
])
def test_type_mismatch_is_rejected_and_store_unchanged(small_bank, code, value):
    store = AnswerStore(small_bank)
    with pytest.raises(TypeMismatch) as exc:
        store.set_answer(code, value)
    assert exc.value.question_code == code
    assert code not in store
    assert store.dirty_codes() == []


def test_multi_slider_answer_parsing(small_bank):
    answer = parse_answer(small_bank.get_question("E"), {"values": {"reach": 4, "depth": "2.5"}})
    assert isinstance(answer, MultiSliderAnswer)
    assert answer.to_dict() == {"values": {"reach": 4, "depth": 2.5}}
    assert answer == MultiSliderAnswer(MappingProxyType({"reach": answer.values["reach"],
                                                         "depth": answer.values["depth"]}))


def test_is_answered_by_shape(small_bank):
    question_a = small_bank.get_question("A")
    question_d = small_bank.get_question("D")
    question_e = small_bank.get_question("E")

    assert not is_answered(question_a, None)
    assert not is_answered(question_a, parse_answer(question_a, ""))
    assert is_answered(question_a, parse_answer(question_a, "no"))
    assert not is_answered(question_d, parse_answer(question_d, []))
    assert is_answered(question_d, parse_answer(question_d, ["health"]))
    assert not is_answered(question_e, parse_answer(question_e, {"reach": 3}))
    assert is_answered(question_e, parse_answer(question_e, {"reach": 3, "depth": 0}))


def test_dirty_tracking_and_mark_clean(small_bank):
    store = AnswerStore(small_bank)
    store.set_answer("A", "yes")
    store.set_answer("C", "5")
    saved = store.snapshot(dirty_only=True)
    assert set(saved) == {"A", "C"}

    # C edited again while the save was in flight
    store.set_answer("C", "6")
    assert store.mark_clean(saved) == ["A"]
    assert store.dirty_codes() == ["C"]


def test_load_does_not_mark_dirty_and_skips_bad_entries(small_bank):
    store = AnswerStore(small_bank)
    loaded = store.load({
        "A": {"value": "yes"},
        "D": {"values": ["education"]},
        "GONE": {"value": "x"},
        "C": {"value": "99"},
    })
    assert loaded == 2
    assert store.dirty_codes() == []
    assert store.get("D") == MultiAnswer(("education",))
    assert "C" not in store


def test_clear_empties_answers_and_dirty_marks(small_bank):
    store = AnswerStore(small_bank)
    store.set_answer("A", "yes")
    store.clear()
    assert len(store) == 0
    assert not store.is_dirty


def test_serialize_answers_wire_format(small_bank):
    store = AnswerStore(small_bank)
    store.set_answer("A", "yes")
    store.set_answer("D", ["health"])
    assert serialize_answers(store.snapshot()) == [
        {"question": "A", "data": {"value": "yes"}},
        {"question": "D", "data": {"values": ["health"]}},
    ]
