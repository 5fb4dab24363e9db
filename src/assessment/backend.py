"""
Backing Store Contract

Operations the session orchestrator needs from whatever stores runs and
answers: the local SQL repository or the remote HTTP API. Every method
exchanges plain wire-shaped dictionaries so both implementations are
interchangeable.

Errors are raised as AssessmentError subclasses:
- start_run: CooldownActive
- save_answers: RunNotFound, InvalidRunState, UnknownQuestion, TypeMismatch, SaveFailed
- submit: IncompleteSubmission, InvalidRunState
- get_result: RunNotFound, InvalidRunState
- reset_run: RunNotFound, InvalidRunState
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Any, Optional


class AssessmentBackend(ABC):
    """Abstract backing store for assessment runs"""

    @abstractmethod
    def start_run(self, owner_id: str) -> Dict[str, Any]:
        """Start a run, or resume the owner's open draft."""

    @abstractmethod
    def get_current_run(self, owner_id: str) -> Optional[Dict[str, Any]]:
        """Owner's open draft, else their latest run, else None."""

    @abstractmethod
    def get_history(self, owner_id: str) -> List[Dict[str, Any]]:
        """Submitted runs, newest first, with their headline results."""

    @abstractmethod
    def get_sections(self, run_id: str) -> List[Dict[str, Any]]:
        """Sections in order with per-section progress."""

    @abstractmethod
    def get_questions(self, run_id: str, section_code: str) -> List[Dict[str, Any]]:
        """Questions of one section with the stored answer attached."""

    @abstractmethod
    def save_answers(self, run_id: str, answers: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Upsert [{"question": code, "data": {...}}]; returns updated progress."""

    @abstractmethod
    def submit(self, run_id: str) -> Dict[str, Any]:
        """Score and lock the run; returns the result."""

    @abstractmethod
    def get_result(self, run_id: str) -> Dict[str, Any]:
        """Stored result of a submitted run."""

    @abstractmethod
    def reset_run(self, run_id: str) -> Dict[str, Any]:
        """Discard every answer of a draft run."""

    def get_answers(self, run_id: str) -> Dict[str, Dict[str, Any]]:
        """All stored answers of a run, collected section by section."""
        answers: Dict[str, Dict[str, Any]] = {}
        for section in self.get_sections(run_id):
            for question in self.get_questions(run_id, section["code"]):
                if question.get("answer") is not None:
                    answers[question["code"]] = question["answer"]
        return answers
