from unittest.mock import MagicMock, patch

import pytest
import requests

from src.assessment.errors import (
    AssessmentError,
    BackendUnavailable,
    CooldownActive,
    IncompleteSubmission,
    InvalidRunState,
    RunNotFound,
    SaveFailed,
    TypeMismatch,
    UnknownQuestion,
)
from src.integrations.assessment_api import (
    AssessmentApiClient,
    AssessmentApiConfig,
    create_assessment_client,
)


def _response(status, body=None):
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.text = ""
    response.reason = "reason"
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def client():
    return AssessmentApiClient(AssessmentApiConfig(base_url="http://api.test/", owner_id="org-1", timeout=3))


def test_start_run_sends_owner_header(client):
    with patch.object(client._session, "request",
                      return_value=_response(201, {"success": True, "assessment": {"id": "run-1"}})) as request:
        run = client.start_run("org-7")

    assert run == {"id": "run-1"}
    args, kwargs = request.call_args
    assert args == ("POST", "http://api.test/api/assessments/start")
    assert kwargs["headers"]["X-Owner-Id"] == "org-7"
    assert kwargs["timeout"] == 3


def test_questions_pass_section_param(client):
    body = {"section": "RISK", "questions": [{"code": "A"}]}
    with patch.object(client._session, "request", return_value=_response(200, body)) as request:
        questions = client.get_questions("run-1", "RISK")
    assert questions == [{"code": "A"}]
    assert request.call_args.kwargs["params"] == {"section": "RISK"}
    assert request.call_args.kwargs["headers"]["X-Owner-Id"] == "org-1"


def test_get_answers_collects_from_sections(client):
    responses = [
        _response(200, {"sections": [{"code": "RISK"}]}),
        _response(200, {"questions": [
            {"code": "A", "answer": {"value": "yes"}},
            {"code": "B", "answer": None},
        ]}),
    ]
    with patch.object(client._session, "request", side_effect=responses):
        assert client.get_answers("run-1") == {"A": {"value": "yes"}}


@pytest.mark.parametrize("status, body, expected", [
    (403, {"error": "COOLDOWN_ACTIVE", "cooldown_until": "2026-04-01T00:00:00", "remaining_seconds": 60},
     CooldownActive),
    (400, {"error": "INCOMPLETE_SUBMISSION", "questions": ["B"], "sections": ["RISK"]}, IncompleteSubmission),
    (404, {"error": "RUN_NOT_FOUND", "run_id": "run-1"}, RunNotFound),
    (409, {"error": "INVALID_RUN_STATE", "detail": "submitted"}, InvalidRunState),
    (422, {"error": "UNKNOWN_QUESTION", "question": "Z"}, UnknownQuestion),
    (422, {"error": "TYPE_MISMATCH", "question": "A", "expected_type": "SINGLE_CHOICE"}, TypeMismatch),
    (500, None, AssessmentError),
])
def test_error_responses_map_to_assessment_errors(client, status, body, expected):
    with patch.object(client._session, "request", return_value=_response(status, body)):
        with pytest.raises(expected):
            client.submit("run-1")


def test_incomplete_submission_keeps_missing_codes(client):
    body = {"error": "INCOMPLETE_SUBMISSION", "questions": ["B", "D"], "sections": ["RISK", "IMPACT"]}
    with patch.object(client._session, "request", return_value=_response(400, body)):
        with pytest.raises(IncompleteSubmission) as exc:
            client.submit("run-1")
    assert exc.value.missing_questions == ["B", "D"]


def test_transport_failure_on_save_is_save_failed(client):
    answers = [{"question": "A", "data": {"value": "yes"}}]
    with patch.object(client._session, "request", side_effect=requests.ConnectionError("down")):
        with pytest.raises(SaveFailed) as exc:
            client.save_answers("run-1", answers)
    assert exc.value.questions == ["A"]


@pytest.mark.parametrize("error", [requests.ConnectionError("down"), requests.Timeout("slow")])
def test_transport_failure_outside_saves_is_backend_unavailable(client, error):
    with patch.object(client._session, "request", side_effect=error):
        with pytest.raises(BackendUnavailable) as exc:
            client.submit("run-1")
    assert exc.value.cause is error
    assert exc.value.to_dict()["error"] == "BACKEND_UNAVAILABLE"


@pytest.mark.parametrize("body", [["unexpected"], "oops"])
def test_error_body_that_is_not_an_object(client, body):
    with patch.object(client._session, "request", return_value=_response(500, body)):
        with pytest.raises(AssessmentError, match="returned 500"):
            client.get_result("run-1")


def test_client_from_environment(monkeypatch):
    monkeypatch.setenv("ASSESSMENT_API_URL", "http://remote:9000")
    monkeypatch.setenv("ASSESSMENT_API_TIMEOUT", "2.5")
    client = create_assessment_client("org-9")
    assert client.config.api_base_url == "http://remote:9000/api"
    assert client.config.owner_id == "org-9"
    assert client.config.timeout == 2.5
