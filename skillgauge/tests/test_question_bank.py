"""
Tests for the question bank store.
"""

import pytest

from skillgauge.common.error_handling import InvalidQuestionError, NotFoundError, ValidationError
from skillgauge.database.models import QuestionOption
from skillgauge.domain.questions.repository import QuestionRepository, validate_options


@pytest.fixture
def repository(session):
    return QuestionRepository(session)


class TestOptionValidation:

    @pytest.mark.parametrize("options,key", [
        (None, "options_required"),
        ([], "options_required"),
        ([{"text": "  ", "is_correct": True}], "invalid_option_text"),
        (["not a dict"], "invalid_option_text"),
        ([{"text": "A"}, {"text": "B"}], "missing_correct_option"),
    ])
    def test_rejected(self, options, key):
        with pytest.raises(InvalidQuestionError) as exc_info:
            validate_options(options)
        assert exc_info.value.key == key

    def test_missing_correct_option_detail(self):
        with pytest.raises(InvalidQuestionError) as exc_info:
            validate_options([{"text": "A", "is_correct": False}])
        assert exc_info.value.to_dict() == {
            "message": "missing_correct_option",
            "detail": "At least one option must be correct",
        }

    def test_normalized(self):
        assert validate_options([{"text": " A ", "is_correct": 1}, {"text": "B"}]) == [
            {"text": "A", "is_correct": True},
            {"text": "B", "is_correct": False},
        ]


class TestQuestionWrites:

    def test_create_keeps_option_order(self, repository):
        question = repository.create({
            "text": "Mortar mix ratio?",
            "category": "masonry",
            "options": [
                {"text": "1:3", "is_correct": True},
                {"text": "1:10"},
                {"text": "5:1"},
            ],
        })

        stored = repository.get(question.id).to_dict()
        assert stored["category"] == "masonry"
        assert stored["active"] is True
        assert [o["text"] for o in stored["options"]] == ["1:3", "1:10", "5:1"]
        assert [o["is_correct"] for o in stored["options"]] == [True, False, False]

    def test_create_rejects_blank_text(self, repository, session):
        with pytest.raises(InvalidQuestionError) as exc_info:
            repository.create({"text": " ", "options": [{"text": "A", "is_correct": True}]})
        assert exc_info.value.key == "invalid_text"
        assert repository.list()["total"] == 0

    def test_update_replaces_all_options(self, repository, make_question, session):
        question = make_question()
        old_ids = {option.id for option in question.options}

        repository.update(question.id, {"options": [
            {"text": "Laser level", "is_correct": True},
            {"text": "Tape"},
        ]})

        first = repository.get(question.id).to_dict()
        second = repository.get(question.id).to_dict()
        assert first == second
        assert [o["text"] for o in first["options"]] == ["Laser level", "Tape"]
        assert not old_ids & {o["id"] for o in first["options"]}
        assert session.query(QuestionOption).count() == 2

    def test_update_only_supplied_fields(self, repository, make_question):
        question = make_question(category="tools")

        updated = repository.update(question.id, {"active": False})

        assert updated.active is False
        assert updated.category == "tools"
        assert len(updated.options) == 3

    def test_invalid_update_changes_nothing(self, repository, make_question):
        question = make_question()
        before = repository.get(question.id).to_dict()

        with pytest.raises(InvalidQuestionError):
            repository.update(question.id, {"text": "New text", "options": [{"text": "A"}]})

        assert repository.get(question.id).to_dict() == before

    def test_empty_update(self, repository, make_question):
        question = make_question()
        with pytest.raises(ValidationError) as exc_info:
            repository.update(question.id, {"unknown": 1})
        assert exc_info.value.key == "nothing_to_update"

    def test_missing_question(self, repository):
        with pytest.raises(NotFoundError):
            repository.get("missing")
        with pytest.raises(NotFoundError):
            repository.update("missing", {"text": "x"})
        with pytest.raises(NotFoundError):
            repository.delete("missing")

    def test_delete_removes_options(self, repository, make_question, session):
        question = make_question()

        repository.delete(question.id)

        assert repository.find(question.id) is None
        assert session.query(QuestionOption).count() == 0


class TestQuestionListing:

    @pytest.fixture
    def bank(self, make_question, repository):
        make_question("Safety harness use", category="safety")
        make_question("Scaffold inspection", category="safety", active=False)
        make_question("Brick bond patterns", category="masonry")
        make_question("Mixing concrete", category="concrete")

    def test_filters_are_combined(self, repository, bank):
        result = repository.list(category="safety", active=True)
        assert result["total"] == 1
        assert result["items"][0].text == "Safety harness use"

    def test_search_is_case_insensitive(self, repository, bank):
        result = repository.list(search="SCAFFOLD")
        assert [q.text for q in result["items"]] == ["Scaffold inspection"]

    def test_total_ignores_window(self, repository, bank):
        result = repository.list(limit=2, offset=1)
        assert result["total"] == 4
        assert result["limit"] == 2
        assert result["offset"] == 1
        assert [q.text for q in result["items"]] == ["Mixing concrete", "Safety harness use"]

    @pytest.mark.parametrize("limit,offset", [(0, 0), (201, 0), (10, -1)])
    def test_invalid_pagination(self, repository, limit, offset):
        with pytest.raises(ValidationError) as exc_info:
            repository.list(limit=limit, offset=offset)
        assert exc_info.value.key == "invalid_pagination"
