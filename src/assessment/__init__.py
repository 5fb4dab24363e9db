"""
Impact Assessment Module

Multi-step, conditionally branching organization assessment with:
- Typed question bank and condition validation
- Answer store with debounced persistence
- Per-section progress tracking
- Weighted scoring, loan eligibility and instrument recommendation
"""

from .assessment_engine import AssessmentEngine
from .answers import AnswerStore, MultiAnswer, MultiSliderAnswer, SingleAnswer
from .backend import AssessmentBackend
from .default_bank import ASSESSMENT_QUESTIONS, SECTIONS, create_default_question_bank
from .errors import (
    AssessmentError,
    BackendUnavailable,
    CooldownActive,
    IncompleteSubmission,
    InvalidConfiguration,
    InvalidReference,
    InvalidRunState,
    RunNotFound,
    SaveFailed,
    SaveInFlight,
    TypeMismatch,
    UnknownQuestion
)
from .questions import QuestionBank, load_question_bank, load_question_bank_file
from .run import AssessmentRun, RunStatus
from .scoring import AssessmentResult
from .session import AssessmentSession

__all__ = [
    'AssessmentEngine',
    'AssessmentResult',
    'AssessmentSession',
    'AssessmentBackend',
    'AssessmentRun',
    'RunStatus',
    'AnswerStore',
    'SingleAnswer',
    'MultiAnswer',
    'MultiSliderAnswer',
    'QuestionBank',
    'load_question_bank',
    'load_question_bank_file',
    'create_default_question_bank',
    'ASSESSMENT_QUESTIONS',
    'SECTIONS',
    'AssessmentError',
    'BackendUnavailable',
    'CooldownActive',
    'IncompleteSubmission',
    'InvalidConfiguration',
    'InvalidReference',
    'InvalidRunState',
    'RunNotFound',
    'SaveFailed',
    'SaveInFlight',
    'TypeMismatch',
    'UnknownQuestion',
]
