"""
SQL Assessment Repository

Flask-SQLAlchemy implementation of the assessment backing store. Must be
used inside an application context bound to `db`.

Besides the backing store contract it offers:
- reset_run: wipe the answers of a draft
- recompute_result: re-score a submitted run (e.g. after a scoring change)
"""

import logging
from datetime import timedelta
from typing import Callable, Dict, List, Any, Optional

from src.assessment.answers import AnswerSnapshot
from src.assessment.assessment_engine import AssessmentEngine
from src.assessment.backend import AssessmentBackend
from src.assessment.errors import InvalidRunState, RunNotFound
from src.assessment.run import DEFAULT_COOLDOWN, RunStatus, ensure_can_start, utcnow
from src.assessment.scoring import AssessmentResult as ScoredResult

from .models import db, Assessment, AssessmentResult

logger = logging.getLogger(__name__)


class LocalAssessmentBackend(AssessmentBackend):
    """Assessment runs and results stored through Flask-SQLAlchemy"""

    def __init__(
        self,
        engine: AssessmentEngine,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        now_fn: Callable = utcnow
    ):
        self.engine = engine
        self.cooldown = cooldown
        self.now_fn = now_fn

    # ------------------------------------------------------------- helpers

    def _get(self, run_id: str) -> Assessment:
        record = db.session.get(Assessment, run_id)
        if record is None:
            raise RunNotFound(run_id)
        return record

    def _require_status(self, record: Assessment, status: RunStatus, action: str) -> None:
        if record.status != status.value:
            logger.warning(f"Refused to {action} run {record.id} in status {record.status}")
            raise InvalidRunState(f"Cannot {action} run {record.id}: it is {record.status}")

    def _snapshot(self, record: Assessment) -> AnswerSnapshot:
        store = self.engine.new_store()
        store.load(record.answers or {})
        return store.snapshot()

    def _run_payload(self, record: Assessment) -> Dict[str, Any]:
        data = record.to_dict(self.now_fn())
        data['progress'] = self.engine.progress(self._snapshot(record)).to_dict()
        return data

    def _latest(self, owner_id: str, status: RunStatus) -> Optional[Assessment]:
        order = Assessment.submitted_at if status == RunStatus.SUBMITTED else Assessment.started_at
        return Assessment.query.filter_by(owner_id=owner_id, status=status.value)\
                               .order_by(order.desc())\
                               .first()

    def _store_result(self, record: Assessment, scored: ScoredResult) -> AssessmentResult:
        row = record.result or AssessmentResult(run_id=record.id)
        payload = scored.to_dict()
        row.overall_score = float(scored.overall_score)
        row.is_eligible = scored.eligible
        row.instrument = scored.instrument.name
        row.section_scores = payload['scores']['sections']
        row.details = payload
        row.computed_at = scored.computed_at
        if record.result is None:
            db.session.add(row)
            record.result = row
        return row

    # -------------------------------------------------------------- contract

    def start_run(self, owner_id: str) -> Dict[str, Any]:
        draft = self._latest(owner_id, RunStatus.DRAFT)
        if draft is not None:
            logger.info(f"Resuming draft run {draft.id} for owner {owner_id}")
            return self._run_payload(draft)

        now = self.now_fn()
        latest = self._latest(owner_id, RunStatus.SUBMITTED)
        ensure_can_start(latest.to_run() if latest else None, now)

        record = Assessment(owner_id=owner_id, status=RunStatus.DRAFT.value,
                            started_at=now, answers={})
        db.session.add(record)
        db.session.commit()
        logger.info(f"Started run {record.id} for owner {owner_id}")
        return self._run_payload(record)

    def get_current_run(self, owner_id: str) -> Optional[Dict[str, Any]]:
        record = self._latest(owner_id, RunStatus.DRAFT) or self._latest(owner_id, RunStatus.SUBMITTED)
        return self._run_payload(record) if record else None

    def get_history(self, owner_id: str) -> List[Dict[str, Any]]:
        records = Assessment.query.filter_by(owner_id=owner_id, status=RunStatus.SUBMITTED.value)\
                                  .order_by(Assessment.submitted_at.desc())\
                                  .all()
        history = []
        for record in records:
            item = record.to_dict(self.now_fn())
            if record.result is not None:
                item['overall_score'] = record.result.overall_score
                item['loan_eligible'] = record.result.is_eligible
                item['instrument'] = record.result.instrument
            history.append(item)
        return history

    def get_sections(self, run_id: str) -> List[Dict[str, Any]]:
        return self.engine.sections_payload(self._snapshot(self._get(run_id)))

    def get_questions(self, run_id: str, section_code: str) -> List[Dict[str, Any]]:
        return self.engine.questions_payload(section_code, self._snapshot(self._get(run_id)))

    def save_answers(self, run_id: str, answers: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Validate the whole batch, then upsert it; nothing is stored if any answer is bad."""
        record = self._get(run_id)
        self._require_status(record, RunStatus.DRAFT, "save answers to")

        store = self.engine.new_store()
        store.load(record.answers or {})
        saved = []
        for item in answers:
            code = item.get('question')
            store.set_answer(code, item.get('data'))
            saved.append(code)

        snapshot = store.snapshot()
        record.answers = {code: answer.to_dict() for code, answer in snapshot.items()}
        db.session.commit()
        logger.info(f"Stored {len(saved)} answers for run {run_id}")

        return {
            'run_id': run_id,
            'saved': saved,
            'progress': self.engine.progress(snapshot).to_dict()
        }

    def submit(self, run_id: str) -> Dict[str, Any]:
        record = self._get(run_id)
        self._require_status(record, RunStatus.DRAFT, "submit")

        scored = self.engine.score(self._snapshot(record), run_id=run_id)

        now = self.now_fn()
        run = record.to_run()
        run.mark_submitted(now, self.cooldown)
        record.status = run.status.value
        record.submitted_at = run.submitted_at
        record.cooldown_until = run.cooldown_until

        row = self._store_result(record, scored)
        db.session.commit()
        return row.to_dict()

    def get_result(self, run_id: str) -> Dict[str, Any]:
        record = self._get(run_id)
        if record.result is None:
            raise InvalidRunState(f"Run {run_id} has not been submitted")
        return record.result.to_dict()

    def reset_run(self, run_id: str) -> Dict[str, Any]:
        record = self._get(run_id)
        self._require_status(record, RunStatus.DRAFT, "reset")
        record.answers = {}
        db.session.commit()
        logger.info(f"Reset answers of run {run_id}")
        return self._run_payload(record)

    def recompute_result(self, run_id: str) -> Dict[str, Any]:
        """Re-score a submitted run with the current engine and replace its result."""
        record = self._get(run_id)
        self._require_status(record, RunStatus.SUBMITTED, "recompute")
        scored = self.engine.score(self._snapshot(record), run_id=run_id)
        row = self._store_result(record, scored)
        db.session.commit()
        logger.info(f"Recomputed result of run {run_id}: {row.overall_score}")
        return row.to_dict()
