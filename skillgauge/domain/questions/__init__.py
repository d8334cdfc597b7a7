"""
Question Bank

Questions with ordered options and correctness flags. Every stored question
has at least one option and at least one correct option.
"""

from skillgauge.domain.questions.repository import QuestionRepository, validate_options

__all__ = ['QuestionRepository', 'validate_options']
