"""
Debounced Persistence

Coalesces rapid answer edits into one save per quiet window:
- schedule() restarts the run's timer and replaces the pending payload
- flush_now() skips the timer (navigation away, explicit save)
- at most one save is in flight per run; newer payloads wait for it

The timer is cooperative. Nothing happens until the host loop calls poll()
(or drain()), so all state changes run on the caller's thread. The save
callable may return a plain value, or a concurrent.futures.Future completed
by whatever transport the host uses. Failed saves are reported once and
never retried.
"""

import logging
import time
from concurrent.futures import Future, wait
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .answers import AnswerSnapshot
from .errors import SaveFailed

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_WINDOW = 0.5

SaveCallable = Callable[[str, AnswerSnapshot], Any]


@dataclass
class SaveOutcome:
    """Result of one completed save"""
    run_id: str
    payload: AnswerSnapshot
    progress: Any = None
    error: Optional[SaveFailed] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class _RunState:
    pending: Optional[AnswerSnapshot] = None
    deadline: Optional[float] = None
    in_flight: Optional[Future] = None
    in_flight_payload: Optional[AnswerSnapshot] = None

    @property
    def idle(self) -> bool:
        return self.pending is None and self.in_flight is None


class DebouncedPersistence:
    """Per-run debounce timers with a single in-flight save per run"""

    def __init__(
        self,
        save: SaveCallable,
        window: float = DEFAULT_DEBOUNCE_WINDOW,
        clock: Callable[[], float] = time.monotonic
    ):
        if window < 0:
            raise ValueError("Debounce window must not be negative")
        self._save = save
        self.window = window
        self._clock = clock
        self._runs: Dict[str, _RunState] = {}
        self._closed = False

    def __enter__(self) -> 'DebouncedPersistence':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _state(self, run_id: str) -> _RunState:
        if run_id not in self._runs:
            self._runs[run_id] = _RunState()
        return self._runs[run_id]

    # ------------------------------------------------------------ scheduling

    def schedule(self, run_id: str, answers: AnswerSnapshot) -> None:
        """Replace the pending payload and restart the run's quiet window."""
        if self._closed:
            raise RuntimeError("Persistence has been closed")
        state = self._state(run_id)
        state.pending = answers
        state.deadline = self._clock() + self.window

    def flush_now(self, run_id: str, answers: Optional[AnswerSnapshot] = None) -> List[SaveOutcome]:
        """
        Send the pending payload (or `answers`) without waiting for the timer.

        When a save is already in flight the payload is queued and goes out
        as soon as that save completes.
        """
        if self._closed:
            raise RuntimeError("Persistence has been closed")
        state = self._state(run_id)
        if answers is not None:
            state.pending = answers
        if state.pending is None:
            return self._advance(run_id, state, self._clock())
        state.deadline = self._clock()
        return self._advance(run_id, state, self._clock())

    def discard(self, run_id: str) -> None:
        """Drop the pending payload of a run. An in-flight save still completes."""
        state = self._runs.get(run_id)
        if state is not None:
            state.pending = None
            state.deadline = None

    # -------------------------------------------------------------- progress

    def poll(self) -> List[SaveOutcome]:
        """Complete finished saves and send payloads whose window has passed."""
        now = self._clock()
        outcomes: List[SaveOutcome] = []
        for run_id, state in list(self._runs.items()):
            outcomes.extend(self._advance(run_id, state, now))
        return outcomes

    def drain(self, run_id: str, timeout: Optional[float] = None) -> List[SaveOutcome]:
        """
        Wait until the run has nothing pending and nothing in flight.

        A queued payload is sent immediately rather than after its window.
        Returns early, leaving the run busy, when `timeout` seconds pass.
        """
        state = self._runs.get(run_id)
        if state is None:
            return []
        give_up = None if timeout is None else time.monotonic() + timeout
        outcomes: List[SaveOutcome] = []

        while not state.idle:
            if state.pending is not None:
                state.deadline = self._clock()
            outcomes.extend(self._advance(run_id, state, self._clock()))
            if state.in_flight is not None and not state.in_flight.done():
                remaining = None if give_up is None else give_up - time.monotonic()
                if remaining is not None and remaining <= 0:
                    logger.warning(f"Timed out waiting for save of run {run_id}")
                    break
                wait([state.in_flight], timeout=remaining)
        return outcomes

    def _advance(self, run_id: str, state: _RunState, now: float) -> List[SaveOutcome]:
        outcomes = []
        while True:
            if state.in_flight is not None and state.in_flight.done():
                outcomes.append(self._finish(run_id, state))
                continue
            if (state.in_flight is None and state.pending is not None
                    and state.deadline is not None and state.deadline <= now):
                self._send(run_id, state)
                continue
            break
        return outcomes

    def _send(self, run_id: str, state: _RunState) -> None:
        payload = state.pending
        state.pending = None
        state.deadline = None
        logger.info(f"Saving {len(payload)} answers for run {run_id}")

        try:
            result = self._save(run_id, payload)
        except Exception as e:
            future: Future = Future()
            future.set_exception(e)
        else:
            if isinstance(result, Future):
                future = result
            else:
                future = Future()
                future.set_result(result)

        state.in_flight = future
        state.in_flight_payload = payload

    def _finish(self, run_id: str, state: _RunState) -> SaveOutcome:
        future = state.in_flight
        payload = state.in_flight_payload
        state.in_flight = None
        state.in_flight_payload = None

        try:
            progress = future.result()
        except SaveFailed as e:
            logger.error(f"Save failed for run {run_id}: {e}")
            return SaveOutcome(run_id=run_id, payload=payload, error=e)
        except Exception as e:
            logger.error(f"Save failed for run {run_id}: {e}")
            error = SaveFailed(run_id, cause=e, questions=list(payload))
            return SaveOutcome(run_id=run_id, payload=payload, error=error)

        logger.info(f"Saved {len(payload)} answers for run {run_id}")
        return SaveOutcome(run_id=run_id, payload=payload, progress=progress)

    # ----------------------------------------------------------------- state

    def has_pending(self, run_id: str) -> bool:
        state = self._runs.get(run_id)
        return state is not None and state.pending is not None

    def is_in_flight(self, run_id: str) -> bool:
        state = self._runs.get(run_id)
        return state is not None and state.in_flight is not None

    def is_idle(self, run_id: Optional[str] = None) -> bool:
        if run_id is not None:
            state = self._runs.get(run_id)
            return state is None or state.idle
        return all(state.idle for state in self._runs.values())

    def close(self) -> None:
        """Clear every pending timer. Saves already in flight are not aborted."""
        dropped = [run_id for run_id, state in self._runs.items() if state.pending is not None]
        for run_id in dropped:
            self.discard(run_id)
        if dropped:
            logger.warning(f"Dropped unsaved answers for runs: {dropped}")
        self._closed = True
