"""
Assessment Scoring Engine

Validates submissions against the question bank, scores them and records
attempts atomically.
"""

from skillgauge.assessments.models import PASSING_THRESHOLD, AnswerInput, compute_score
from skillgauge.assessments.services import AssessmentService

__all__ = ['PASSING_THRESHOLD', 'AnswerInput', 'compute_score', 'AssessmentService']
