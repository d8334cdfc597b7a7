"""
Assessment Models

This module defines the value types of the scoring engine: submitted
answers, the submission summary and the scoring rule.
"""

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict

# Score at or above which an attempt passes
PASSING_THRESHOLD = Decimal("70")

_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class AnswerInput:
    """One (question, chosen option) pair of a submission."""
    question_id: str
    option_id: str


@dataclass
class SubmissionSummary:
    """Outcome of a scored submission."""
    total_questions: int
    correct: int
    score: float
    passed: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compute_score(correct: int, total: int) -> Decimal:
    """
    Percentage of correct answers rounded half-up to two decimal places.

    Args:
        correct: Number of correct answers
        total: Number of answers, at least 1

    Returns:
        The score between 0 and 100
    """
    if total <= 0:
        raise ValueError("total must be positive")
    return (Decimal(100) * correct / total).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def is_passing(score: Decimal) -> bool:
    return score >= PASSING_THRESHOLD
