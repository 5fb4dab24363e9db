"""
Assessment Run Lifecycle

A run moves DRAFT -> SUBMITTED once every required, reachable question is
answered. While its cooldown window is open, a submitted run reports the
effective status COOLDOWN and blocks the owner from starting a new run.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Any, Optional

from .errors import CooldownActive, InvalidConfiguration, InvalidRunState

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = timedelta(days=30)
COOLDOWN_UNITS = ("days", "hours")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the database columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def cooldown_period(amount: Any, unit: str = "days") -> timedelta:
    """Cooldown window from a configured amount and unit (days or hours)."""
    unit = str(unit).strip().lower()
    if unit not in COOLDOWN_UNITS:
        raise InvalidConfiguration(f"Cooldown unit must be one of {COOLDOWN_UNITS}, got {unit!r}")
    try:
        amount = int(amount)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"Cooldown amount must be a whole number, got {amount!r}")
    if amount < 0:
        raise InvalidConfiguration("Cooldown amount must not be negative")
    return timedelta(**{unit: amount})


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


class RunStatus(Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    COOLDOWN = "COOLDOWN"


@dataclass
class AssessmentRun:
    """One owner's attempt at the questionnaire"""
    id: str
    owner_id: str
    status: RunStatus = RunStatus.DRAFT
    started_at: datetime = field(default_factory=utcnow)
    submitted_at: Optional[datetime] = None
    cooldown_until: Optional[datetime] = None
    answers: Dict[str, Any] = field(default_factory=dict)

    def effective_status(self, now: Optional[datetime] = None) -> RunStatus:
        now = now or utcnow()
        if self.status == RunStatus.SUBMITTED and self.cooldown_until and now < self.cooldown_until:
            return RunStatus.COOLDOWN
        return self.status

    def cooldown_remaining(self, now: Optional[datetime] = None) -> timedelta:
        now = now or utcnow()
        if not self.cooldown_until or now >= self.cooldown_until:
            return timedelta(0)
        return self.cooldown_until - now

    @property
    def is_editable(self) -> bool:
        return self.status == RunStatus.DRAFT

    def mark_submitted(self, now: Optional[datetime] = None,
                       cooldown: timedelta = DEFAULT_COOLDOWN) -> None:
        if self.status != RunStatus.DRAFT:
            raise InvalidRunState(f"Run {self.id} is {self.status.value} and cannot be submitted")
        now = now or utcnow()
        self.status = RunStatus.SUBMITTED
        self.submitted_at = now
        self.cooldown_until = now + cooldown
        logger.info(f"Run {self.id} submitted; cooldown until {self.cooldown_until.isoformat()}")

    def to_dict(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "status": self.effective_status(now).value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "cooldown_until": self.cooldown_until.isoformat() if self.cooldown_until else None,
            "cooldown_remaining_seconds": int(self.cooldown_remaining(now).total_seconds()),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AssessmentRun':
        status = RunStatus(data.get("status", RunStatus.DRAFT.value))
        # COOLDOWN is derived, the stored state is SUBMITTED
        if status == RunStatus.COOLDOWN:
            status = RunStatus.SUBMITTED
        return cls(
            id=str(data["id"]),
            owner_id=str(data.get("owner_id", "")),
            status=status,
            started_at=_parse_dt(data.get("started_at")) or utcnow(),
            submitted_at=_parse_dt(data.get("submitted_at")),
            cooldown_until=_parse_dt(data.get("cooldown_until")),
            answers=dict(data.get("answers") or {}),
        )


def ensure_can_start(latest_submitted: Optional[AssessmentRun], now: Optional[datetime] = None) -> None:
    """Raise CooldownActive while the owner's last submission is cooling down."""
    if latest_submitted is None:
        return
    now = now or utcnow()
    if latest_submitted.effective_status(now) == RunStatus.COOLDOWN:
        remaining = latest_submitted.cooldown_remaining(now)
        logger.warning(
            f"Owner {latest_submitted.owner_id} blocked by cooldown for another {remaining}"
        )
        raise CooldownActive(latest_submitted.cooldown_until, remaining)
