from src.assessment.answers import AnswerStore


def _snapshot(bank, **answers):
    store = AnswerStore(bank)
    for code, value in answers.items():
        store.set_answer(code, value)
    return store.snapshot()


def test_hidden_question_not_counted_as_required(engine, small_bank):
    report = engine.progress(_snapshot(small_bank, A="no"))
    assert report.sections["RISK"].required == 1
    assert report.sections["RISK"].answered == 1
    assert report.sections["RISK"].percent == 100.0


def test_reachable_question_counted_once_visible(engine, small_bank):
    report = engine.progress(_snapshot(small_bank, A="yes"))
    assert report.sections["RISK"].required == 2
    assert report.sections["RISK"].answered == 1
    assert report.sections["RISK"].percent == 50.0


def test_optional_questions_do_not_count(engine, small_bank):
    report = engine.progress(_snapshot(small_bank, E={"reach": 1, "depth": 1}))
    assert report.sections["IMPACT"].required == 2
    assert report.sections["IMPACT"].answered == 0


def test_blank_answers_are_not_answered(engine, small_bank):
    report = engine.progress(_snapshot(small_bank, A="", D=[]))
    assert report.overall.answered == 0
    assert report.overall.required == 3


def test_overall_progress_and_wire_shape(engine, small_bank):
    report = engine.progress(_snapshot(small_bank, A="yes", B="top", C="4"))
    assert report.overall.answered == 3
    assert report.overall.required == 4
    data = report.to_dict()
    assert data["percent"] == 75.0
    assert data["by_section"]["IMPACT"] == {"answered": 1, "required": 2, "percent": 50.0}


def test_missing_required_grouped_by_section(engine, small_bank):
    missing = engine.missing_required(_snapshot(small_bank, A="yes", C="4"))
    assert missing == {"RISK": ["B"], "IMPACT": ["D"]}
