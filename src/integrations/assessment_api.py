"""
Assessment API Client

HTTP implementation of the assessment backing store, talking to the
platform's REST API:
- Start / resume runs and read run history
- Section and question listings with saved answers
- Answer saves (PATCH), submission and results

HTTP failures are translated into the assessment error taxonomy so the
session orchestrator handles remote and local stores identically.
"""

import os
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Dict, List, Any

import requests

from src.assessment.backend import AssessmentBackend
from src.assessment.errors import (
    AssessmentError,
    BackendUnavailable,
    CooldownActive,
    IncompleteSubmission,
    InvalidRunState,
    RunNotFound,
    SaveFailed,
    TypeMismatch,
    UnknownQuestion
)

logger = logging.getLogger(__name__)


@dataclass
class AssessmentApiConfig:
    """Configuration for the assessment REST API"""
    base_url: str
    owner_id: str = ""
    timeout: float = 10.0

    @property
    def api_base_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api"

    @classmethod
    def from_env(cls) -> 'AssessmentApiConfig':
        """Create config from environment variables"""
        return cls(
            base_url=os.getenv('ASSESSMENT_API_URL', 'http://localhost:5101'),
            owner_id=os.getenv('ASSESSMENT_OWNER_ID', ''),
            timeout=float(os.getenv('ASSESSMENT_API_TIMEOUT', '10'))
        )


class AssessmentApiClient(AssessmentBackend):
    """
    Assessment REST API Client

    The owner is sent as the X-Owner-Id header; authentication is handled
    outside this client.
    """

    def __init__(self, config: AssessmentApiConfig):
        self.config = config
        self._session = requests.Session()

    def _error_for(self, response: requests.Response) -> AssessmentError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        detail = body.get('detail') or response.text or response.reason or ''
        code = body.get('error')
        status = response.status_code

        if status == 403 or code == CooldownActive.code:
            until = body.get('cooldown_until')
            cooldown_until = datetime.fromisoformat(until) if until else datetime.max
            remaining = timedelta(seconds=int(body.get('remaining_seconds', 0)))
            return CooldownActive(cooldown_until, remaining)
        if status == 400 and (code == IncompleteSubmission.code or 'sections' in body):
            return IncompleteSubmission(body.get('questions', []), body.get('sections', []))
        if status == 404:
            return RunNotFound(body.get('run_id', ''))
        if status == 409:
            return InvalidRunState(detail)
        if status == 422 and code == UnknownQuestion.code:
            return UnknownQuestion(body.get('question', ''))
        if status == 422:
            return TypeMismatch(body.get('question', ''), body.get('expected_type', ''),
                                body.get('reason', detail))
        return AssessmentError(f"Assessment API returned {status}: {detail}")

    def _make_request(self, method: str, endpoint: str, owner_id: Optional[str] = None,
                      **kwargs) -> Any:
        """Make API request and map error responses to assessment errors"""
        url = f"{self.config.api_base_url}/{endpoint}"
        headers = {
            'Accept': 'application/json',
            'Content-Type': 'application/json',
            'X-Owner-Id': owner_id or self.config.owner_id
        }

        try:
            response = self._session.request(method, url, headers=headers,
                                             timeout=self.config.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {endpoint} failed: {e}")
            raise BackendUnavailable(f"{method} {endpoint}", cause=e)
        if response.status_code >= 400:
            error = self._error_for(response)
            logger.warning(f"{method} {endpoint} failed: {error}")
            raise error
        return response.json()

    # ========== Runs ==========

    def start_run(self, owner_id: str) -> Dict[str, Any]:
        data = self._make_request('POST', 'assessments/start', owner_id=owner_id)
        return data['assessment']

    def get_current_run(self, owner_id: str) -> Optional[Dict[str, Any]]:
        data = self._make_request('GET', 'assessments/current', owner_id=owner_id)
        return data.get('assessment')

    def get_history(self, owner_id: str) -> List[Dict[str, Any]]:
        data = self._make_request('GET', 'assessments/history', owner_id=owner_id)
        return data.get('assessments', [])

    # ========== Questionnaire ==========

    def get_sections(self, run_id: str) -> List[Dict[str, Any]]:
        data = self._make_request('GET', f'assessments/{run_id}/sections')
        return data.get('sections', [])

    def get_questions(self, run_id: str, section_code: str) -> List[Dict[str, Any]]:
        data = self._make_request('GET', f'assessments/{run_id}/questions',
                                  params={'section': section_code})
        return data.get('questions', [])

    # ========== Answers & Submission ==========

    def save_answers(self, run_id: str, answers: List[Dict[str, Any]]) -> Dict[str, Any]:
        try:
            return self._make_request('PATCH', f'assessments/{run_id}/answers',
                                      json={'answers': answers})
        except BackendUnavailable as e:
            raise SaveFailed(run_id, cause=e.cause, questions=[a.get('question') for a in answers])

    def submit(self, run_id: str) -> Dict[str, Any]:
        return self._make_request('POST', f'assessments/{run_id}/submit')

    def get_result(self, run_id: str) -> Dict[str, Any]:
        return self._make_request('GET', f'assessments/{run_id}/results')

    def reset_run(self, run_id: str) -> Dict[str, Any]:
        data = self._make_request('POST', f'assessments/{run_id}/reset')
        return data['assessment']

    def get_question_bank(self) -> Dict[str, Any]:
        return self._make_request('GET', 'question-bank')


def create_assessment_client(owner_id: Optional[str] = None) -> AssessmentApiClient:
    """Factory function for a client configured from the environment"""
    config = AssessmentApiConfig.from_env()
    if owner_id:
        config.owner_id = owner_id
    return AssessmentApiClient(config)
