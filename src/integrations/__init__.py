"""
External Integrations for the Impact Assessment Platform

Provides connections to:
- The assessment REST API (remote backing store)
"""

from .assessment_api import AssessmentApiClient, AssessmentApiConfig, create_assessment_client

__all__ = [
    'AssessmentApiClient',
    'AssessmentApiConfig',
    'create_assessment_client'
]
