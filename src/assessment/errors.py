"""
Assessment Error Taxonomy

Every error raised by the assessment engine derives from AssessmentError and
can describe itself as a dictionary so the web layer and the session
orchestrator can hand it back to the caller as a typed result.

Configuration errors (InvalidConfiguration, InvalidReference) are fatal and
stop the engine from starting. Everything else is recoverable.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Any, Optional


class AssessmentError(Exception):
    """Base class for assessment engine errors"""

    code = "ASSESSMENT_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "detail": self.message}


class InvalidConfiguration(AssessmentError, ValueError):
    """Question bank or scoring configuration failed validation at load"""

    code = "INVALID_CONFIGURATION"


class InvalidReference(InvalidConfiguration):
    """A condition references a question that cannot be used"""

    code = "INVALID_REFERENCE"

    def __init__(self, message: str, question_code: Optional[str] = None,
                 referenced_code: Optional[str] = None):
        super().__init__(message)
        self.question_code = question_code
        self.referenced_code = referenced_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            **super().to_dict(),
            "question": self.question_code,
            "referenced_question": self.referenced_code,
        }


class UnknownQuestion(AssessmentError, KeyError):
    """An answer was supplied for a question code that does not exist"""

    code = "UNKNOWN_QUESTION"

    def __init__(self, question_code: str):
        super().__init__(f"Unknown question code '{question_code}'")
        self.question_code = question_code

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "question": self.question_code}


class TypeMismatch(AssessmentError):
    """Answer shape does not match the question's declared type"""

    code = "TYPE_MISMATCH"

    def __init__(self, question_code: str, expected: str, reason: str):
        super().__init__(f"Answer for '{question_code}' does not fit {expected}: {reason}")
        self.question_code = question_code
        self.expected = expected
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        return {
            **super().to_dict(),
            "question": self.question_code,
            "expected_type": self.expected,
            "reason": self.reason,
        }


class IncompleteSubmission(AssessmentError):
    """Required, reachable questions are still unanswered"""

    code = "INCOMPLETE_SUBMISSION"

    def __init__(self, missing_questions: List[str], missing_sections: List[str]):
        super().__init__(
            f"Missing required answers: {', '.join(missing_questions)}"
        )
        self.missing_questions = list(missing_questions)
        self.missing_sections = list(missing_sections)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **super().to_dict(),
            "questions": self.missing_questions,
            "sections": self.missing_sections,
        }


class SaveFailed(AssessmentError):
    """Saving answers to the backing store failed"""

    code = "SAVE_FAILED"

    def __init__(self, run_id: str, cause: Optional[BaseException] = None,
                 questions: Optional[List[str]] = None):
        detail = f"Saving answers for run {run_id} failed"
        if cause is not None:
            detail = f"{detail}: {cause}"
        super().__init__(detail)
        self.run_id = run_id
        self.cause = cause
        self.questions = list(questions or [])

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "run_id": self.run_id, "questions": self.questions}


class CooldownActive(AssessmentError):
    """A new run cannot start until the previous run's cooldown passes"""

    code = "COOLDOWN_ACTIVE"

    def __init__(self, cooldown_until: datetime, remaining: timedelta):
        super().__init__(
            f"Assessment cooldown is active until {cooldown_until.isoformat()}"
        )
        self.cooldown_until = cooldown_until
        self.remaining = remaining

    def to_dict(self) -> Dict[str, Any]:
        return {
            **super().to_dict(),
            "cooldown_until": self.cooldown_until.isoformat(),
            "remaining_seconds": int(self.remaining.total_seconds()),
        }


class InvalidRunState(AssessmentError):
    """The operation is not allowed for the run's current status"""

    code = "INVALID_RUN_STATE"


class RunNotFound(AssessmentError, LookupError):
    """No assessment run exists with the given id"""

    code = "RUN_NOT_FOUND"

    def __init__(self, run_id: str):
        super().__init__(f"Assessment run {run_id} not found")
        self.run_id = run_id

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "run_id": self.run_id}


class SaveInFlight(AssessmentError):
    """Submission attempted while answers are still being saved"""

    code = "SAVE_IN_FLIGHT"

    def __init__(self, run_id: str):
        super().__init__(f"Answers for run {run_id} are still being saved; flush before submitting")
        self.run_id = run_id

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "run_id": self.run_id}


class BackendUnavailable(AssessmentError):
    """The backing store could not be reached"""

    code = "BACKEND_UNAVAILABLE"

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        detail = f"Backing store unavailable during {operation}"
        if cause is not None:
            detail = f"{detail}: {cause}"
        super().__init__(detail)
        self.operation = operation
        self.cause = cause
