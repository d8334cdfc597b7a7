"""
Assessment Repositories

This module persists attempts and their answers. Attempts are written once
and never modified; only an administrator may delete one.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from skillgauge.assessments.models import AnswerInput
from skillgauge.common.db.repository import BaseRepository
from skillgauge.common.error_handling import NotFoundError
from skillgauge.common.logger import app_logger
from skillgauge.database.models import Assessment, AssessmentAnswer

logger = app_logger.getChild("assessments.repositories")


class AttemptRepository(BaseRepository[Assessment]):
    """Repository for assessment attempts and answers."""

    model = Assessment
    entity_type = "Assessment"

    def get_with_answers(self, attempt_id: str) -> Assessment:
        """
        Raises:
            NotFoundError: If the attempt doesn't exist
        """
        attempt = self.session.scalars(
            select(Assessment)
            .options(selectinload(Assessment.answers))
            .where(Assessment.id == attempt_id)
        ).first()
        if attempt is None:
            raise NotFoundError(self.entity_type, attempt_id)
        return attempt

    def list_for_user(self, user_id: str) -> List[Assessment]:
        """Attempts of a user, most recently finished first."""
        return list(self.session.scalars(
            select(Assessment)
            .where(Assessment.user_id == user_id)
            .order_by(Assessment.finished_at.desc(), Assessment.started_at.desc())
        ))

    def last_finished_at(self, user_id: str) -> Optional[datetime]:
        return self.session.scalar(
            select(Assessment.finished_at)
            .where(Assessment.user_id == user_id, Assessment.finished_at.is_not(None))
            .order_by(Assessment.finished_at.desc())
            .limit(1)
        )

    def add_attempt(
        self,
        user_id: str,
        score: Decimal,
        passed: bool,
        started_at: datetime,
        finished_at: datetime,
        answers: Sequence[AnswerInput],
        resolved: Dict[str, Tuple[str, bool]]
    ) -> Assessment:
        """
        Stage an attempt and one answer row per input answer.

        Must run inside the caller's transaction; nothing is committed here.
        """
        attempt = Assessment(
            user_id=user_id,
            score=score,
            passed=passed,
            started_at=started_at,
            finished_at=finished_at,
        )
        attempt.answers = [
            AssessmentAnswer(
                question_id=answer.question_id,
                chosen_option_id=answer.option_id,
                is_correct=resolved[answer.option_id][1],
            )
            for answer in answers
        ]
        self.session.add(attempt)
        self.session.flush()
        return attempt

    def delete(self, attempt: Assessment) -> None:
        self.session.delete(attempt)
