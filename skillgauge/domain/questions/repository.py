"""
Question Bank Store

This module persists questions and their options. Writes are validated
before anything touches the database, and a supplied option list always
replaces the stored options wholesale.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, select

from skillgauge.common.db.repository import BaseRepository
from skillgauge.common.db.session import atomic
from skillgauge.common.error_handling import InvalidQuestionError, ValidationError
from skillgauge.common.logger import app_logger
from skillgauge.common.validation import require_text
from skillgauge.database.models import Question, QuestionOption

logger = app_logger.getChild("questions.repository")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200

QUESTION_FIELDS = ("text", "category", "difficulty", "version", "active", "options")


def validate_options(options: Any) -> List[Dict[str, Any]]:
    """
    Validate an option list and normalize it to ``{text, is_correct}`` dicts.

    Raises:
        InvalidQuestionError: ``options_required``, ``invalid_option_text`` or
            ``missing_correct_option``
    """
    if not isinstance(options, list) or not options:
        raise InvalidQuestionError(key="options_required", message="At least one option is required")

    normalized = []
    for option in options:
        if not isinstance(option, dict):
            raise InvalidQuestionError(key="invalid_option_text")
        text = option.get("text")
        if not isinstance(text, str) or not text.strip():
            raise InvalidQuestionError(key="invalid_option_text", message="Option text must not be empty")
        normalized.append({"text": text.strip(), "is_correct": bool(option.get("is_correct", False))})

    if not any(option["is_correct"] for option in normalized):
        raise InvalidQuestionError(
            key="missing_correct_option",
            message="At least one option must be correct"
        )
    return normalized


def _validate_text(text: Any) -> str:
    try:
        return require_text(text, "invalid_text")
    except ValidationError:
        raise InvalidQuestionError(key="invalid_text", message="Question text must not be empty")


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class QuestionRepository(BaseRepository[Question]):
    """
    Repository for questions and their options.

    Every write runs in a single transaction; a failure leaves the bank
    untouched.
    """

    model = Question
    entity_type = "Question"

    def get(self, question_id: str) -> Question:
        return self.require(question_id)

    def create(self, data: Dict[str, Any]) -> Question:
        """
        Create a question with its options.

        Args:
            data: ``text``, ``options`` and optional ``category``,
                ``difficulty``, ``version``, ``active``

        Returns:
            The stored question
        """
        text = _validate_text(data.get("text"))
        options = validate_options(data.get("options"))

        question = Question(
            text=text,
            category=_optional_str(data.get("category")),
            difficulty=_optional_str(data.get("difficulty")),
            version=_optional_str(data.get("version")),
            active=bool(data.get("active", True)),
        )
        with atomic(self.session):
            self.session.add(question)
            self.session.flush()
            self._insert_options(question.id, options)

        self.session.expire(question)
        logger.info("Created question %s with %d options", question.id, len(options))
        return question

    def update(self, question_id: str, data: Dict[str, Any]) -> Question:
        """
        Update the supplied fields of a question.

        A supplied ``options`` list replaces every stored option.

        Raises:
            NotFoundError: If the question doesn't exist
            InvalidQuestionError: If a supplied field is invalid
            ValidationError: ``nothing_to_update`` when no known field is supplied
        """
        changes = {key: data[key] for key in QUESTION_FIELDS if key in data}
        if not changes:
            raise ValidationError(key="nothing_to_update")

        if "text" in changes:
            changes["text"] = _validate_text(changes["text"])
        options = validate_options(changes.pop("options")) if "options" in changes else None

        question = self.get(question_id)

        with atomic(self.session):
            for key, value in changes.items():
                if key == "active":
                    value = bool(value)
                elif key != "text":
                    value = _optional_str(value)
                setattr(question, key, value)

            if options is not None:
                self.session.execute(
                    delete(QuestionOption).where(QuestionOption.question_id == question.id)
                )
                self._insert_options(question.id, options)

        self.session.expire(question)
        logger.info("Updated question %s (%s)", question.id, ", ".join(sorted(data.keys())))
        return question

    def delete(self, question_id: str) -> None:
        """
        Hard-delete a question and its options.

        Raises:
            NotFoundError: If the question doesn't exist
        """
        question = self.get(question_id)
        with atomic(self.session):
            self.session.delete(question)
        logger.info("Deleted question %s", question_id)

    def list(
        self,
        category: Optional[str] = None,
        active: Optional[bool] = None,
        search: Optional[str] = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0
    ) -> Dict[str, Any]:
        """
        List questions matching every supplied filter.

        Args:
            category: Exact category match
            active: Active flag match
            search: Case-insensitive substring of the question text
            limit: Page size, 1 to 200
            offset: Number of matches to skip

        Returns:
            ``{total, limit, offset, items}``; ``total`` counts every match
        """
        if not 1 <= limit <= MAX_PAGE_SIZE or offset < 0:
            raise ValidationError(key="invalid_pagination")

        conditions = []
        if category:
            conditions.append(Question.category == category)
        if active is not None:
            conditions.append(Question.active == active)
        if search:
            conditions.append(func.lower(Question.text).contains(search.lower(), autoescape=True))

        total = self.session.scalar(
            select(func.count()).select_from(Question).where(*conditions)
        )
        items = self.session.scalars(
            select(Question)
            .where(*conditions)
            .order_by(Question.text.asc(), Question.id.asc())
            .limit(limit)
            .offset(offset)
        ).all()

        return {"total": total, "limit": limit, "offset": offset, "items": list(items)}

    def list_for_attempt(self, count: int) -> List[Question]:
        """The first ``count`` active questions in text order."""
        return list(self.session.scalars(
            select(Question)
            .where(Question.active.is_(True))
            .order_by(Question.text.asc(), Question.id.asc())
            .limit(count)
        ))

    def fetch_options(self, option_ids: Iterable[str]) -> Dict[str, Tuple[str, bool]]:
        """
        Resolve option ids in one query.

        Returns:
            Mapping of option id to ``(question_id, is_correct)``; unknown ids
            are absent
        """
        ids = list(dict.fromkeys(option_ids))
        if not ids:
            return {}
        rows = self.session.execute(
            select(QuestionOption.id, QuestionOption.question_id, QuestionOption.is_correct)
            .where(QuestionOption.id.in_(ids))
        )
        return {row.id: (row.question_id, bool(row.is_correct)) for row in rows}

    def _insert_options(self, question_id: str, options: List[Dict[str, Any]]) -> None:
        self.session.add_all([
            QuestionOption(
                question_id=question_id,
                position=position,
                text=option["text"],
                is_correct=option["is_correct"],
            )
            for position, option in enumerate(options)
        ])
        self.session.flush()
