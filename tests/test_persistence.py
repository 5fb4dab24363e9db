from concurrent.futures import Future

import pytest

from src.assessment.errors import SaveFailed
from src.assessment.persistence import DebouncedPersistence


class RecordingSave:
    """Save callable that records payloads; optionally hands back open futures"""

    def __init__(self, deferred=False, fail=False):
        self.calls = []
        self.futures = []
        self.deferred = deferred
        self.fail = fail

    def __call__(self, run_id, payload):
        self.calls.append((run_id, dict(payload)))
        if self.fail:
            raise ConnectionError("backend unreachable")
        if self.deferred:
            future = Future()
            self.futures.append(future)
            return future
        return {"saved": len(payload)}


def test_repeated_schedule_within_window_saves_once(clock):
    save = RecordingSave()
    persistence = DebouncedPersistence(save, window=0.5, clock=clock)

    for _ in range(5):
        persistence.schedule("run-1", {"A": "yes"})
        clock.advance(0.1)
        assert persistence.poll() == []

    clock.advance(0.5)
    outcomes = persistence.poll()
    assert len(save.calls) == 1
    assert len(outcomes) == 1 and outcomes[0].ok
    assert outcomes[0].progress == {"saved": 1}


def test_last_write_wins(clock):
    save = RecordingSave()
    persistence = DebouncedPersistence(save, window=0.5, clock=clock)
    persistence.schedule("run-1", {"A": "no"})
    clock.advance(0.3)
    persistence.schedule("run-1", {"A": "yes", "C": "4"})
    clock.advance(0.3)
    assert persistence.poll() == []
    clock.advance(0.3)
    persistence.poll()
    assert save.calls == [("run-1", {"A": "yes", "C": "4"})]


def test_runs_have_independent_timers(clock):
    save = RecordingSave()
    persistence = DebouncedPersistence(save, window=0.5, clock=clock)
    persistence.schedule("run-1", {"A": "yes"})
    clock.advance(0.4)
    persistence.schedule("run-2", {"A": "no"})
    clock.advance(0.2)
    persistence.poll()
    assert [run_id for run_id, _ in save.calls] == ["run-1"]
    assert persistence.has_pending("run-2")


def test_flush_now_skips_the_window(clock):
    save = RecordingSave()
    persistence = DebouncedPersistence(save, window=0.5, clock=clock)
    persistence.schedule("run-1", {"A": "yes"})
    outcomes = persistence.flush_now("run-1")
    assert len(outcomes) == 1
    assert len(save.calls) == 1
    assert persistence.is_idle("run-1")


def test_one_save_in_flight_per_run(clock):
    save = RecordingSave(deferred=True)
    persistence = DebouncedPersistence(save, window=0.5, clock=clock)

    persistence.flush_now("run-1", {"A": "yes"})
    persistence.flush_now("run-1", {"A": "no"})
    assert len(save.calls) == 1
    assert persistence.is_in_flight("run-1")
    assert persistence.has_pending("run-1")

    save.futures[0].set_result({"saved": 1})
    outcomes = persistence.poll()
    assert len(outcomes) == 1
    assert save.calls[1] == ("run-1", {"A": "no"})

    save.futures[1].set_result({"saved": 1})
    assert len(persistence.poll()) == 1
    assert persistence.is_idle()


def test_failed_save_is_reported_once_and_not_retried(clock):
    save = RecordingSave(fail=True)
    persistence = DebouncedPersistence(save, window=0.5, clock=clock)
    persistence.schedule("run-1", {"A": "yes", "C": "3"})
    clock.advance(1)

    outcomes = persistence.poll()
    assert len(outcomes) == 1
    assert not outcomes[0].ok
    assert isinstance(outcomes[0].error, SaveFailed)
    assert outcomes[0].error.questions == ["A", "C"]

    clock.advance(10)
    assert persistence.poll() == []
    assert len(save.calls) == 1


def test_save_failed_from_callable_is_passed_through(clock):
    def save(run_id, payload):
        raise SaveFailed(run_id, questions=list(payload))

    persistence = DebouncedPersistence(save, window=0, clock=clock)
    outcomes = persistence.flush_now("run-1", {"A": "yes"})
    assert outcomes[0].error.run_id == "run-1"


def test_drain_waits_for_in_flight_and_sends_queued(clock):
    save = RecordingSave()
    persistence = DebouncedPersistence(save, window=30, clock=clock)
    persistence.schedule("run-1", {"A": "yes"})
    outcomes = persistence.drain("run-1", timeout=1)
    assert len(outcomes) == 1
    assert persistence.is_idle("run-1")


def test_drain_times_out_on_stuck_save(clock):
    save = RecordingSave(deferred=True)
    persistence = DebouncedPersistence(save, window=0.5, clock=clock)
    persistence.flush_now("run-1", {"A": "yes"})
    assert persistence.drain("run-1", timeout=0.01) == []
    assert persistence.is_in_flight("run-1")


def test_discard_and_close_drop_pending_payloads(clock):
    save = RecordingSave()
    persistence = DebouncedPersistence(save, window=0.5, clock=clock)
    persistence.schedule("run-1", {"A": "yes"})
    persistence.discard("run-1")
    assert persistence.is_idle("run-1")

    with persistence:
        persistence.schedule("run-2", {"A": "no"})
    clock.advance(1)
    assert persistence.poll() == []
    assert save.calls == []
    with pytest.raises(RuntimeError):
        persistence.schedule("run-2", {"A": "no"})


def test_negative_window_rejected():
    with pytest.raises(ValueError):
        DebouncedPersistence(lambda run_id, payload: None, window=-1)
