"""
Tests for the assessment scoring engine.

Covers the scoring rule, atomic recording of attempts, answer mapping and
duplicate checks, eligibility and attempt access control.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from skillgauge.assessments.models import AnswerInput, compute_score, is_passing
from skillgauge.assessments.services import AssessmentService
from skillgauge.common.auth.exceptions import InsufficientPermissionsError
from skillgauge.common.auth.user import AuthContext, Role
from skillgauge.common.error_handling import (
    DuplicateQuestionError,
    InvalidAnswerMappingError,
    NotFoundError,
    ValidationError,
)
from skillgauge.database.models import Assessment, AssessmentAnswer
from skillgauge.domain.questions.repository import QuestionRepository
from skillgauge.domain.settings.repository import SettingsRepository


def count_rows(session, model):
    return session.scalar(select(func.count()).select_from(model))


def option_by_text(question, text):
    return next(option for option in question.options if option.text == text)


class TestScoringRule:
    """The percentage score and the passing threshold"""

    @pytest.mark.parametrize("correct,total,expected", [
        (1, 1, "100.00"),
        (0, 4, "0.00"),
        (1, 3, "33.33"),
        (2, 3, "66.67"),
        (1, 800, "0.13"),
        (7, 10, "70.00"),
    ])
    def test_compute_score(self, correct, total, expected):
        assert compute_score(correct, total) == Decimal(expected)

    def test_threshold_is_inclusive(self):
        assert is_passing(Decimal("70.00"))
        assert not is_passing(compute_score(2099, 3000))

    def test_empty_submission_cannot_be_scored(self):
        with pytest.raises(ValueError):
            compute_score(0, 0)


class TestSubmitAssessment:
    """End-to-end submissions through the service"""

    @pytest.fixture
    def worker(self, make_user):
        return make_user()

    @pytest.fixture
    def caller(self, worker):
        return AuthContext(user_id=worker.id, roles=frozenset({Role.WORKER}))

    @pytest.fixture
    def service(self, session):
        return AssessmentService(session)

    def test_single_correct_answer_passes(self, service, caller, worker, make_question):
        q1 = make_question(options=[
            {"text": "A", "is_correct": True},
            {"text": "B"},
            {"text": "C"},
        ])

        result = service.submit_assessment(
            caller, worker.id, [AnswerInput(q1.id, option_by_text(q1, "A").id)]
        )

        assert result["summary"] == {"total_questions": 1, "correct": 1, "score": 100.0, "passed": True}
        assert result["assessment"]["score"] == 100.0
        assert result["assessment"]["passed"] is True
        assert result["assessment"]["finished_at"].endswith("Z")

    def test_half_correct_fails(self, service, caller, worker, make_question):
        q1 = make_question("Q1", [{"text": "A", "is_correct": True}, {"text": "B"}])
        q2 = make_question("Q2", [{"text": "A"}, {"text": "B", "is_correct": True}])

        result = service.submit_assessment(caller, worker.id, [
            {"question_id": q1.id, "option_id": option_by_text(q1, "B").id},
            {"question_id": q2.id, "option_id": option_by_text(q2, "B").id},
        ])

        assert result["summary"]["score"] == 50.0
        assert result["summary"]["passed"] is False
        assert count_rows(service.session, AssessmentAnswer) == 2

    def test_option_of_another_question_is_rejected(self, service, caller, worker, make_question, session):
        q1 = make_question("Q1")
        q2 = make_question("Q2")

        with pytest.raises(InvalidAnswerMappingError) as exc_info:
            service.submit_assessment(
                caller, worker.id, [AnswerInput(q1.id, q2.options[0].id)]
            )

        assert exc_info.value.key == "invalid_answer_mapping"
        assert count_rows(session, Assessment) == 0
        assert count_rows(session, AssessmentAnswer) == 0

    def test_unknown_option_is_rejected(self, service, caller, worker, make_question):
        q1 = make_question()
        with pytest.raises(InvalidAnswerMappingError):
            service.submit_assessment(caller, worker.id, [AnswerInput(q1.id, "no-such-option")])

    def test_duplicate_question_is_rejected(self, service, caller, worker, make_question, session):
        q1 = make_question()

        with pytest.raises(DuplicateQuestionError) as exc_info:
            service.submit_assessment(caller, worker.id, [
                AnswerInput(q1.id, q1.options[0].id),
                AnswerInput(q1.id, q1.options[1].id),
            ])

        assert exc_info.value.key == "duplicate_question"
        assert count_rows(session, Assessment) == 0

    def test_empty_answers_are_rejected(self, service, caller, worker):
        with pytest.raises(ValidationError) as exc_info:
            service.submit_assessment(caller, worker.id, [])
        assert exc_info.value.key == "answers_required"

    def test_failure_after_insert_rolls_back_everything(
        self, service, caller, worker, make_question, session, monkeypatch
    ):
        q1 = make_question()
        original = service.attempts.add_attempt

        def add_then_fail(**kwargs):
            original(**kwargs)
            raise RuntimeError("disk full")

        monkeypatch.setattr(service.attempts, "add_attempt", add_then_fail)

        with pytest.raises(RuntimeError):
            service.submit_assessment(caller, worker.id, [AnswerInput(q1.id, q1.options[0].id)])

        assert count_rows(session, Assessment) == 0
        assert count_rows(session, AssessmentAnswer) == 0

    def test_answers_keep_correctness_after_question_edit(
        self, service, caller, worker, make_question, session
    ):
        q1 = make_question()
        result = service.submit_assessment(caller, worker.id, [AnswerInput(q1.id, q1.options[0].id)])

        QuestionRepository(session).update(q1.id, {
            "options": [{"text": "Something else", "is_correct": True}]
        })

        attempt = service.get_attempt(caller, result["assessment"]["id"])
        assert attempt["answers"][0]["is_correct"] is True

    def test_worker_cannot_submit_for_someone_else(self, service, caller, make_user, make_question):
        other = make_user(full_name="Other Worker")
        q1 = make_question()

        with pytest.raises(InsufficientPermissionsError):
            service.submit_assessment(caller, other.id, [AnswerInput(q1.id, q1.options[0].id)])

    def test_foreman_may_submit_for_a_worker(self, service, worker, make_user, make_question):
        foreman = make_user(Role.FOREMAN, full_name="Foreman")
        q1 = make_question()
        caller = AuthContext(user_id=foreman.id, roles=frozenset({Role.FOREMAN}))

        result = service.submit_assessment(caller, worker.id, [AnswerInput(q1.id, q1.options[0].id)])

        assert result["assessment"]["user_id"] == worker.id

    def test_unknown_target_user(self, service, make_question):
        q1 = make_question()
        admin = AuthContext(user_id="admin", roles=frozenset({Role.ADMIN}))
        with pytest.raises(NotFoundError):
            service.submit_assessment(admin, "missing-user", [AnswerInput(q1.id, q1.options[0].id)])


class TestEligibility:
    """Submission window and re-take frequency"""

    @pytest.fixture
    def worker(self, make_user):
        return make_user()

    @pytest.fixture
    def caller(self, worker):
        return AuthContext(user_id=worker.id, roles=frozenset({Role.WORKER}))

    def submit_at(self, session, caller, question, moment):
        service = AssessmentService(session, clock=lambda: moment)
        return service.submit_assessment(
            caller, caller.user_id, [AnswerInput(question.id, question.options[0].id)]
        )

    def test_window_not_open(self, session, caller, make_question):
        SettingsRepository(session).update({"questionCount": 5, "startAt": "2026-03-01T00:00:00Z"})
        with pytest.raises(ValidationError) as exc_info:
            self.submit_at(session, caller, make_question(), datetime(2026, 2, 1))
        assert exc_info.value.key == "assessment_not_open"

    def test_window_closed(self, session, caller, make_question):
        SettingsRepository(session).update({"questionCount": 5, "endAt": "2026-03-01T00:00:00Z"})
        with pytest.raises(ValidationError) as exc_info:
            self.submit_at(session, caller, make_question(), datetime(2026, 3, 2))
        assert exc_info.value.key == "assessment_closed"

    def test_retake_frequency(self, session, caller, make_question):
        SettingsRepository(session).update({"questionCount": 5, "frequencyMonths": 3})
        question = make_question()

        self.submit_at(session, caller, question, datetime(2026, 1, 31, 12, 0))

        with pytest.raises(ValidationError) as exc_info:
            self.submit_at(session, caller, question, datetime(2026, 3, 1))
        assert exc_info.value.key == "retake_too_soon"
        assert exc_info.value.details["nextEligibleAt"] == "2026-04-30T12:00:00Z"

        result = self.submit_at(session, caller, question, datetime(2026, 4, 30, 12, 0))
        assert result["summary"]["passed"] is True

    def test_unset_settings_impose_nothing(self, session, caller, make_question):
        question = make_question()
        self.submit_at(session, caller, question, datetime(2026, 1, 1))
        self.submit_at(session, caller, question, datetime(2026, 1, 1, 0, 1))
        assert count_rows(session, Assessment) == 2


class TestAttemptQueries:
    """Reading and deleting attempts"""

    @pytest.fixture
    def service(self, session):
        return AssessmentService(session)

    def test_list_is_most_recent_first(self, session, make_user, make_question):
        worker = make_user()
        caller = AuthContext(user_id=worker.id, roles=frozenset({Role.WORKER}))
        question = make_question()
        ids = []
        for day in (1, 3, 2):
            service = AssessmentService(session, clock=lambda day=day: datetime(2026, 1, day))
            result = service.submit_assessment(
                caller, worker.id, [AnswerInput(question.id, question.options[0].id)]
            )
            ids.append(result["assessment"]["id"])

        listed = AssessmentService(session).list_attempts_for_user(caller, worker.id)

        assert [attempt["id"] for attempt in listed] == [ids[1], ids[2], ids[0]]

    def test_get_missing_attempt(self, service):
        admin = AuthContext(user_id="admin", roles=frozenset({Role.ADMIN}))
        with pytest.raises(NotFoundError):
            service.get_attempt(admin, "missing")

    def test_other_worker_cannot_read_attempt(self, service, make_user, make_question):
        owner = make_user()
        stranger = make_user(full_name="Stranger")
        question = make_question()
        result = service.submit_assessment(
            AuthContext(user_id=owner.id, roles=frozenset({Role.WORKER})),
            owner.id,
            [AnswerInput(question.id, question.options[0].id)]
        )

        with pytest.raises(InsufficientPermissionsError):
            service.get_attempt(
                AuthContext(user_id=stranger.id, roles=frozenset({Role.WORKER})),
                result["assessment"]["id"]
            )

    def test_delete_requires_admin_and_cascades(self, service, session, make_user, make_question):
        worker = make_user()
        caller = AuthContext(user_id=worker.id, roles=frozenset({Role.WORKER}))
        question = make_question()
        attempt_id = service.submit_assessment(
            caller, worker.id, [AnswerInput(question.id, question.options[0].id)]
        )["assessment"]["id"]

        with pytest.raises(InsufficientPermissionsError):
            service.delete_attempt(caller, attempt_id)

        service.delete_attempt(AuthContext(user_id="admin", roles=frozenset({Role.ADMIN})), attempt_id)

        assert count_rows(session, Assessment) == 0
        assert count_rows(session, AssessmentAnswer) == 0

    def test_current_paper_hides_correct_flags(self, service, session, make_question):
        SettingsRepository(session).update({"questionCount": 2})
        for text in ("C question", "A question", "B question"):
            make_question(text)

        paper = service.current_paper()

        assert [q["text"] for q in paper["questions"]] == ["A question", "B question"]
        assert all("is_correct" not in option for q in paper["questions"] for option in q["options"])
