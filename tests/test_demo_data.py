import pytest

from config.settings import TestingConfig
from src.assessment.assessment_engine import AssessmentEngine
from src.assessment.default_bank import create_default_question_bank
from src.demo_data import ORGANIZATION_PROFILES, DemoDataGenerator, load_demo_data_to_db


@pytest.fixture
def default_engine():
    return AssessmentEngine(create_default_question_bank())


@pytest.mark.parametrize("profile, instrument", [
    ("grant_candidate", "Grant Funding"),
    ("commercial_debt", "Commercial Debt with Impact Linked Financing"),
    ("equity", "Equity Investment"),
    ("mezzanine", "Mezzanine Financing"),
])
def test_profiles_land_on_their_instrument(default_engine, profile, instrument):
    generator = DemoDataGenerator(default_engine, seed=7)
    org = generator.generate_organization(profile)

    store = default_engine.new_store()
    assert store.load(org.answers) == len(org.answers)
    result = default_engine.score(store.snapshot(), run_id=org.owner_id)
    assert result.instrument.name == instrument


def test_generated_answers_only_cover_reachable_questions(default_engine):
    answers = DemoDataGenerator(default_engine, seed=1).generate_answers("grant_candidate")
    # RISK_Q1 answered YES hides the follow-up
    assert answers["RISK_Q1"] == {"value": "YES"}
    assert "RISK_Q2" not in answers


def test_demo_set_cycles_profiles(default_engine):
    orgs = DemoDataGenerator(default_engine, seed=3).generate_demo_set(count=6)
    assert [o.profile for o in orgs[:4]] == list(ORGANIZATION_PROFILES)
    assert orgs[4].owner_id == "demo-grant_candidate-5"


def test_unknown_profile_rejected(default_engine):
    with pytest.raises(ValueError):
        DemoDataGenerator(default_engine).generate_organization("unicorn")


def test_load_demo_data_submits_every_run(default_engine):
    from web.app import create_app

    app = create_app(TestingConfig, engine=default_engine)
    with app.app_context():
        backend = app.extensions["assessment_backend"]
        run_ids = load_demo_data_to_db(backend, count=4)
        assert len(run_ids) == 4
        names = {backend.get_result(run_id)["instrument_name"] for run_id in run_ids}
    assert len(names) == 4
