"""
Assessment Settings Store

A single row (id=1) controls how many questions form a paper, the window in
which submissions are accepted and how often a worker may re-take the
assessment. The row is created with defaults the first time it is read.
"""

from typing import Any, Dict

from skillgauge.common.db.repository import BaseRepository
from skillgauge.common.db.session import atomic
from skillgauge.common.error_handling import EndBeforeStartError, ValidationError
from skillgauge.common.logger import app_logger
from skillgauge.common.validation import parse_iso_datetime
from skillgauge.database.models import AssessmentSettings

logger = app_logger.getChild("settings.repository")


def _positive_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(key=key)
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
    else:
        raise ValidationError(key=key)
    if number < 1:
        raise ValidationError(key=key)
    return number


class SettingsRepository(BaseRepository[AssessmentSettings]):
    """Repository for the assessment settings singleton."""

    model = AssessmentSettings
    entity_type = "AssessmentSettings"

    def get(self) -> AssessmentSettings:
        """Return the singleton, creating it with defaults if absent."""
        settings_row = self.find(AssessmentSettings.SINGLETON_ID)
        if settings_row is None:
            settings_row = AssessmentSettings(
                id=AssessmentSettings.SINGLETON_ID,
                question_count=AssessmentSettings.DEFAULT_QUESTION_COUNT,
            )
            with atomic(self.session):
                self.session.add(settings_row)
            logger.info("Created default assessment settings")
        return settings_row

    def update(self, data: Dict[str, Any]) -> AssessmentSettings:
        """
        Replace the settings.

        Args:
            data: ``questionCount`` (>= 1, the stored count is kept when
                omitted), ``startAt``/``endAt`` (optional ISO-8601) and
                ``frequencyMonths`` (optional, >= 1)

        Returns:
            The updated singleton

        Raises:
            ValidationError: ``invalid_question_count``, ``invalid_start_at``,
                ``invalid_end_at``, ``invalid_frequency_months``
            EndBeforeStartError: If both bounds are set and ``endAt <= startAt``
        """
        settings_row = self.get()
        count = data.get("questionCount")
        question_count = (
            settings_row.question_count if count is None
            else _positive_int(count, "invalid_question_count")
        )
        start_at = parse_iso_datetime(data.get("startAt"), "invalid_start_at")
        end_at = parse_iso_datetime(data.get("endAt"), "invalid_end_at")
        if start_at is not None and end_at is not None and end_at <= start_at:
            raise EndBeforeStartError()

        frequency = data.get("frequencyMonths")
        frequency_months = (
            None if frequency is None or frequency == ""
            else _positive_int(frequency, "invalid_frequency_months")
        )

        with atomic(self.session):
            settings_row.question_count = question_count
            settings_row.start_at = start_at
            settings_row.end_at = end_at
            settings_row.frequency_months = frequency_months

        logger.info(
            "Updated assessment settings: count=%d window=%s..%s frequency=%s",
            question_count, start_at, end_at, frequency_months
        )
        return settings_row
