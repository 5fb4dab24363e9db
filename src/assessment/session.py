"""
Assessment Session

Client-side orchestration of one owner's run. Drives the flow:
section selection -> visible questions -> answer edits -> debounced save
-> progress -> submit -> result.

The session never raises per-answer problems into UI code. Rejected edits,
cooldowns and refused submissions come back as typed results carrying the
AssessmentError that explains them.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Any, Optional

from .answers import AnswerSnapshot, serialize_answers
from .assessment_engine import AssessmentEngine
from .backend import AssessmentBackend
from .errors import (
    AssessmentError,
    IncompleteSubmission,
    InvalidRunState,
    SaveInFlight,
    TypeMismatch,
    UnknownQuestion
)
from .persistence import DEFAULT_DEBOUNCE_WINDOW, DebouncedPersistence, SaveOutcome
from .progress import ProgressReport
from .questions import Question

logger = logging.getLogger(__name__)

DEFAULT_RESET_TIMEOUT = 5.0


@dataclass
class EditResult:
    accepted: bool
    error: Optional[AssessmentError] = None
    progress: Optional[ProgressReport] = None


@dataclass
class StartResult:
    run: Optional[Dict[str, Any]] = None
    error: Optional[AssessmentError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SubmitResult:
    result: Optional[Dict[str, Any]] = None
    error: Optional[AssessmentError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AssessmentSession:
    """
    One owner working through one run.

    The host loop must call poll() regularly (for example on every UI tick)
    so debounced saves go out and their completions are applied.
    """

    def __init__(
        self,
        engine: AssessmentEngine,
        backend: AssessmentBackend,
        owner_id: str,
        debounce_window: float = DEFAULT_DEBOUNCE_WINDOW,
        clock: Callable[[], float] = time.monotonic
    ):
        self.engine = engine
        self.backend = backend
        self.owner_id = owner_id
        self.store = engine.new_store()
        self.persistence = DebouncedPersistence(self._save, window=debounce_window, clock=clock)
        self.run: Optional[Dict[str, Any]] = None
        self.server_progress: Optional[Dict[str, Any]] = None
        self.last_save_error: Optional[AssessmentError] = None

    @property
    def run_id(self) -> Optional[str]:
        return self.run["id"] if self.run else None

    def _save(self, run_id: str, snapshot: AnswerSnapshot):
        return self.backend.save_answers(run_id, serialize_answers(snapshot))

    def _apply(self, outcomes: List[SaveOutcome]) -> List[SaveOutcome]:
        for outcome in outcomes:
            if outcome.ok:
                self.store.mark_clean(outcome.payload)
                self.server_progress = outcome.progress
                self.last_save_error = None
            else:
                # Answers stay dirty and go out with the next save
                self.last_save_error = outcome.error
        return outcomes

    # ------------------------------------------------------------- lifecycle

    def start(self) -> StartResult:
        """Start a new run or resume the open draft, loading saved answers."""
        try:
            run = self.backend.start_run(self.owner_id)
            saved = self.backend.get_answers(run["id"])
        except AssessmentError as e:
            logger.warning(f"Owner {self.owner_id} cannot start a run: {e}")
            return StartResult(error=e)

        self.run = run
        self.store.clear()
        loaded = self.store.load(saved)
        logger.info(f"Session for owner {self.owner_id} on run {run['id']} ({loaded} saved answers)")
        return StartResult(run=run)

    def _editable_error(self) -> Optional[AssessmentError]:
        if self.run is None:
            return InvalidRunState("No run has been started")
        if self.run.get("status") != "DRAFT":
            return InvalidRunState(f"Run {self.run_id} is {self.run.get('status')} and read-only")
        return None

    def set_answer(self, code: str, value: Any) -> EditResult:
        """Apply an edit locally and schedule a debounced save."""
        error = self._editable_error()
        if error is not None:
            return EditResult(accepted=False, error=error)
        try:
            self.store.set_answer(code, value)
        except (UnknownQuestion, TypeMismatch) as e:
            return EditResult(accepted=False, error=e)

        self.persistence.schedule(self.run_id, self.store.snapshot(dirty_only=True))
        return EditResult(accepted=True, progress=self.progress())

    def poll(self) -> List[SaveOutcome]:
        return self._apply(self.persistence.poll())

    def navigate_away(self) -> List[SaveOutcome]:
        """Send unsaved answers now instead of waiting for the quiet window."""
        if self.run is None or not self.store.is_dirty:
            return self._apply(self.persistence.poll())
        return self._apply(
            self.persistence.flush_now(self.run_id, self.store.snapshot(dirty_only=True))
        )

    def flush(self, timeout: Optional[float] = None) -> List[SaveOutcome]:
        """Send unsaved answers and wait for every save of the run to finish."""
        outcomes = self.navigate_away()
        if self.run is not None:
            outcomes.extend(self._apply(self.persistence.drain(self.run_id, timeout=timeout)))
        return outcomes

    # ------------------------------------------------------------ navigation

    def visible_questions(self, section_code: str) -> List[Question]:
        return self.engine.evaluator.reachable_questions(section_code, self.store.snapshot())

    def next_question(self, after_code: Optional[str] = None) -> Optional[Question]:
        snapshot = self.store.snapshot()
        if after_code is None:
            return self.engine.evaluator.first_question(snapshot)
        return self.engine.evaluator.next_question(after_code, snapshot)

    def next_section(self, after_section_code: Optional[str] = None) -> Optional[str]:
        return self.engine.evaluator.next_section(after_section_code, self.store.snapshot())

    def progress(self) -> ProgressReport:
        return self.engine.progress(self.store.snapshot())

    # ------------------------------------------------------------ submission

    def submit(self, auto_flush: bool = True, timeout: Optional[float] = None) -> SubmitResult:
        """
        Submit the run for scoring.

        Completeness is checked locally first, so an incomplete run never
        reaches the backing store. With auto_flush the session saves and
        waits for pending answers; otherwise a pending or in-flight save
        refuses the submission with SaveInFlight.
        """
        error = self._editable_error()
        if error is not None:
            return SubmitResult(error=error)

        missing = self.engine.missing_required(self.store.snapshot())
        if missing:
            codes = [code for section_codes in missing.values() for code in section_codes]
            logger.warning(f"Submit refused for run {self.run_id}; missing {codes}")
            return SubmitResult(error=IncompleteSubmission(codes, list(missing)))

        if auto_flush:
            self.flush(timeout=timeout)
        if not self.persistence.is_idle(self.run_id):
            logger.warning(f"Submit refused for run {self.run_id}; save still in progress")
            return SubmitResult(error=SaveInFlight(self.run_id))
        if self.store.is_dirty:
            return SubmitResult(error=self.last_save_error or SaveInFlight(self.run_id))

        try:
            result = self.backend.submit(self.run_id)
        except AssessmentError as e:
            logger.warning(f"Backing store refused submit of run {self.run_id}: {e}")
            return SubmitResult(error=e)

        self.run = {**self.run, "status": "SUBMITTED"}
        logger.info(f"Run {self.run_id} submitted")
        return SubmitResult(result=result)

    def result(self) -> Dict[str, Any]:
        if self.run is None:
            raise InvalidRunState("No run has been started")
        return self.backend.get_result(self.run_id)

    def reset(self, timeout: Optional[float] = DEFAULT_RESET_TIMEOUT) -> EditResult:
        """
        Drop every answer of the draft, locally and in the backing store.

        A save already in flight is waited for (up to `timeout` seconds) so
        it cannot land after the reset. If it is still running, the reset is
        refused with SaveInFlight and nothing is cleared.
        """
        error = self._editable_error()
        if error is not None:
            return EditResult(accepted=False, error=error)
        self.persistence.discard(self.run_id)
        self._apply(self.persistence.drain(self.run_id, timeout=timeout))
        if not self.persistence.is_idle(self.run_id):
            logger.warning(f"Reset refused for run {self.run_id}; save still in progress")
            return EditResult(accepted=False, error=SaveInFlight(self.run_id))
        self.store.clear()
        try:
            self.backend.reset_run(self.run_id)
        except AssessmentError as e:
            return EditResult(accepted=False, error=e)
        return EditResult(accepted=True, progress=self.progress())

    def close(self) -> None:
        self.persistence.close()

    def __enter__(self) -> 'AssessmentSession':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
