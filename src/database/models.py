"""
Database Models for the Impact Assessment Platform

SQLAlchemy models for assessment runs (with their saved answers) and the
results computed when a run is submitted.
"""

import uuid
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import JSON

from src.assessment.run import AssessmentRun, RunStatus, utcnow

db = SQLAlchemy()


def generate_uuid():
    return str(uuid.uuid4())


class Assessment(db.Model):
    """
    One owner's assessment run.

    Answers are stored in wire format keyed by question code:
    {"RISK_Q1": {"value": "YES"}, "IMP_Q4": {"values": ["SDG1"]}}.
    The JSON column is not mutation-tracked, so always assign a new dict.
    """
    __tablename__ = 'assessment_runs'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    owner_id = db.Column(db.String(100), nullable=False, index=True)

    # Lifecycle
    status = db.Column(db.String(20), nullable=False, default=RunStatus.DRAFT.value)
    started_at = db.Column(db.DateTime, default=utcnow)
    submitted_at = db.Column(db.DateTime)
    cooldown_until = db.Column(db.DateTime)

    # Saved answers (JSON)
    answers = db.Column(JSON, default=dict)

    # Timestamps
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationship
    result = db.relationship('AssessmentResult', backref='run', uselist=False,
                             cascade='all, delete-orphan')

    def to_run(self) -> AssessmentRun:
        return AssessmentRun(
            id=self.id,
            owner_id=self.owner_id,
            status=RunStatus(self.status),
            started_at=self.started_at,
            submitted_at=self.submitted_at,
            cooldown_until=self.cooldown_until,
            answers=dict(self.answers or {}),
        )

    def to_dict(self, now=None):
        data = self.to_run().to_dict(now)
        data['answered_count'] = len(self.answers or {})
        data['created_at'] = self.created_at.isoformat() if self.created_at else None
        data['updated_at'] = self.updated_at.isoformat() if self.updated_at else None
        return data


class AssessmentResult(db.Model):
    """
    Scored outcome of a submitted run.

    Written once at submission; only recompute_result replaces it.
    """
    __tablename__ = 'assessment_results'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    run_id = db.Column(db.String(36), db.ForeignKey('assessment_runs.id'), nullable=False, unique=True)

    # Headline figures
    overall_score = db.Column(db.Float)
    is_eligible = db.Column(db.Boolean, default=False)
    instrument = db.Column(db.String(200))

    # Section scores (JSON)
    section_scores = db.Column(JSON)

    # Full serialized result (JSON)
    details = db.Column(JSON)

    # Timestamps
    computed_at = db.Column(db.DateTime, default=utcnow)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            **(self.details or {}),
            'id': self.id,
            'run_id': self.run_id,
            'overall_score': self.overall_score,
            'loan_eligible': self.is_eligible,
            'instrument_name': self.instrument,
            'section_scores': self.section_scores,
            'computed_at': self.computed_at.isoformat() if self.computed_at else None,
        }
