"""
Database Module for the Impact Assessment Platform

SQLAlchemy models and the SQL-backed assessment repository.
"""

from .models import (
    db,
    Assessment,
    AssessmentResult
)
from .repository import LocalAssessmentBackend

__all__ = [
    'db',
    'Assessment',
    'AssessmentResult',
    'LocalAssessmentBackend',
]
