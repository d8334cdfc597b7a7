"""
Assessment Services

This module implements the scoring engine: it validates a submission against
the question bank, scores it and records the attempt with its answers in a
single transaction.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Union

from sqlalchemy.orm import Session

from skillgauge.assessments.models import (
    AnswerInput,
    SubmissionSummary,
    compute_score,
    is_passing,
)
from skillgauge.assessments.repositories import AttemptRepository
from skillgauge.common.auth.middleware import ensure_can_access_user, require_any_role
from skillgauge.common.auth.user import AuthContext, Role
from skillgauge.common.db.session import atomic
from skillgauge.common.error_handling import (
    DuplicateQuestionError,
    InvalidAnswerMappingError,
    NotFoundError,
    ValidationError,
)
from skillgauge.common.logger import app_logger, log_execution_time
from skillgauge.common.utils import add_months, utcnow
from skillgauge.database.models import Assessment, User
from skillgauge.domain.questions.repository import QuestionRepository
from skillgauge.domain.settings.repository import SettingsRepository

logger = app_logger.getChild("assessments.services")

AnswerLike = Union[AnswerInput, Mapping[str, Any]]


def _to_answer(answer: AnswerLike) -> AnswerInput:
    if isinstance(answer, AnswerInput):
        return answer
    return AnswerInput(question_id=str(answer["question_id"]), option_id=str(answer["option_id"]))


def serialize_attempt(attempt: Assessment, include_answers: bool = False) -> Dict[str, Any]:
    data = attempt.to_dict()
    if include_answers:
        data["answers"] = [answer.to_dict() for answer in attempt.answers]
    return data


class AssessmentService:
    """
    Scoring engine and attempt queries.

    Attributes:
        session: Session shared by the repositories of one request
        clock: Source of the current time (naive UTC)
    """

    def __init__(self, session: Session, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.clock = clock
        self.questions = QuestionRepository(session)
        self.attempts = AttemptRepository(session)
        self.settings = SettingsRepository(session)

    def check_eligibility(self, user_id: str, now: datetime) -> None:
        """
        Apply the settings window and re-take frequency.

        Raises:
            ValidationError: ``assessment_not_open``, ``assessment_closed`` or
                ``retake_too_soon``
        """
        settings_row = self.settings.get()
        if settings_row.start_at is not None and now < settings_row.start_at:
            raise ValidationError(key="assessment_not_open")
        if settings_row.end_at is not None and now > settings_row.end_at:
            raise ValidationError(key="assessment_closed")
        if settings_row.frequency_months:
            last = self.attempts.last_finished_at(user_id)
            if last is not None and now < add_months(last, settings_row.frequency_months):
                raise ValidationError(
                    key="retake_too_soon",
                    details={"nextEligibleAt": add_months(last, settings_row.frequency_months).isoformat() + "Z"}
                )

    @log_execution_time(logger)
    def submit_assessment(
        self,
        caller: AuthContext,
        target_user_id: str,
        answers: Iterable[AnswerLike]
    ) -> Dict[str, Any]:
        """
        Score a submission and record it atomically.

        Args:
            caller: Authenticated caller; must be the target or hold an elevated role
            target_user_id: User the attempt belongs to
            answers: Ordered (question, option) pairs

        Returns:
            ``{assessment, summary}``

        Raises:
            InsufficientPermissionsError: If the caller may not submit for the target
            ValidationError: ``answers_required`` or an eligibility key
            InvalidAnswerMappingError: If an option is unknown or belongs to another question
            DuplicateQuestionError: If a question is answered twice
        """
        ensure_can_access_user(caller, target_user_id)

        parsed: List[AnswerInput] = [_to_answer(answer) for answer in answers]
        if not parsed:
            raise ValidationError(key="answers_required")
        if self.session.get(User, target_user_id) is None:
            raise NotFoundError("User", target_user_id)

        now = self.clock()
        self.check_eligibility(target_user_id, now)

        with atomic(self.session):
            resolved = self.questions.fetch_options(answer.option_id for answer in parsed)

            seen = set()
            correct = 0
            for answer in parsed:
                option = resolved.get(answer.option_id)
                if option is None or option[0] != answer.question_id:
                    raise InvalidAnswerMappingError(answer.question_id, answer.option_id)
                if answer.question_id in seen:
                    raise DuplicateQuestionError(answer.question_id)
                seen.add(answer.question_id)
                if option[1]:
                    correct += 1

            score = compute_score(correct, len(parsed))
            passed = is_passing(score)
            attempt = self.attempts.add_attempt(
                user_id=target_user_id,
                score=score,
                passed=passed,
                started_at=now,
                finished_at=now,
                answers=parsed,
                resolved=resolved,
            )

        summary = SubmissionSummary(
            total_questions=len(parsed), correct=correct, score=float(score), passed=passed
        )
        logger.info(
            "Recorded attempt %s for user %s: %d/%d, score %s",
            attempt.id, target_user_id, correct, len(parsed), score
        )
        return {"assessment": serialize_attempt(attempt), "summary": summary.to_dict()}

    def get_attempt(self, caller: AuthContext, attempt_id: str) -> Dict[str, Any]:
        """
        Fetch an attempt with its answers.

        Raises:
            NotFoundError: If the attempt doesn't exist
            InsufficientPermissionsError: If the caller is neither owner nor elevated
        """
        attempt = self.attempts.get_with_answers(attempt_id)
        ensure_can_access_user(caller, attempt.user_id)
        return serialize_attempt(attempt, include_answers=True)

    def list_attempts_for_user(self, caller: AuthContext, user_id: str) -> List[Dict[str, Any]]:
        """Attempts of ``user_id``, most recently finished first."""
        ensure_can_access_user(caller, user_id)
        return [serialize_attempt(attempt) for attempt in self.attempts.list_for_user(user_id)]

    def delete_attempt(self, caller: AuthContext, attempt_id: str) -> None:
        """Delete an attempt and its answers; administrators only."""
        require_any_role(caller, Role.ADMIN)
        attempt = self.attempts.require(attempt_id)
        with atomic(self.session):
            self.attempts.delete(attempt)
        logger.info("Deleted attempt %s", attempt_id)

    def current_paper(self) -> Dict[str, Any]:
        """The questions of the next attempt, without correctness flags."""
        settings_row = self.settings.get()
        questions = self.questions.list_for_attempt(settings_row.question_count)
        return {
            "settings": settings_row.to_dict(),
            "questions": [question.to_dict(include_correct=False) for question in questions],
        }
