"""
Tests for the shared helpers: errors, logging, validation and utilities.
"""

import json
import logging
from datetime import datetime

import pytest

from skillgauge.common.auth.exceptions import InvalidTokenError
from skillgauge.common.error_handling import (
    ConflictError,
    InternalError,
    NotFoundError,
    convert_exception,
    error_response,
    log_error,
)
from skillgauge.common.logger import JsonFormatter, log_execution_time
from skillgauge.common.utils import add_months, serialize_datetime
from skillgauge.common.validation import (
    normalize_phone_th,
    parse_iso_datetime,
    validate_national_id,
)


class TestErrors:

    def test_unknown_exception_becomes_internal(self):
        error = convert_exception(RuntimeError("connection string with password"))
        assert isinstance(error, InternalError)
        assert error.status_code == 500
        assert error_response(RuntimeError("secret")) == {"message": "internal_error"}

    def test_not_found_body_is_only_the_key(self):
        assert NotFoundError("Question", "q1").to_dict() == {"message": "not_found"}

    def test_details_are_exposed_as_errors(self):
        error = ConflictError(key="duplicate_email", details={"field": "email"})
        assert error.to_dict() == {"message": "duplicate_email", "errors": {"field": "email"}}

    def test_internal_error_logs_the_cause_traceback(self, caplog):
        def fail_storage():
            raise RuntimeError("disk unavailable")

        try:
            fail_storage()
        except RuntimeError as e:
            error = InternalError(message="An unexpected error occurred", cause=e)

        with caplog.at_level(logging.ERROR, logger="skillgauge.common.error_handling"):
            log_error(error, context={"path": "/api/health"})

        assert "fail_storage" in caplog.text
        assert "RuntimeError: disk unavailable" in caplog.text

    def test_auth_error_body_is_only_the_key(self):
        assert InvalidTokenError("Invalid token: Signature verification failed").to_dict() == {
            "message": "invalid_token"
        }


class TestLogging:

    def test_json_formatter_merges_data(self):
        record = logging.LogRecord("skillgauge.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.data = {"attempt_id": "a1"}

        payload = json.loads(JsonFormatter().format(record))

        assert payload["message"] == "hello world"
        assert payload["level"] == "INFO"
        assert payload["attempt_id"] == "a1"

    def test_execution_time_reraises(self, caplog):
        logger = logging.getLogger("skillgauge.test.timing")

        @log_execution_time(logger)
        def explode():
            raise KeyError("boom")

        with caplog.at_level(logging.ERROR, logger="skillgauge.test.timing"):
            with pytest.raises(KeyError):
                explode()
        assert "explode failed after" in caplog.text


class TestValidationHelpers:

    @pytest.mark.parametrize("raw,expected", [
        ("0812345678", "+66812345678"),
        ("081-234-5678", "+66812345678"),
        ("66812345678", "+66812345678"),
        ("+66812345678", "+66812345678"),
        ("", None),
    ])
    def test_normalize_phone(self, raw, expected):
        assert normalize_phone_th(raw) == expected

    def test_national_id_normalized(self):
        assert validate_national_id("1 1017 00203 45 1") == "1101700203451"

    def test_timestamps_become_naive_utc(self):
        assert parse_iso_datetime("2026-01-01T07:00:00+07:00", "k") == datetime(2026, 1, 1)
        assert parse_iso_datetime("", "k") is None


class TestUtils:

    def test_add_months_clamps_day(self):
        assert add_months(datetime(2026, 1, 31), 1) == datetime(2026, 2, 28)
        assert add_months(datetime(2026, 11, 15), 3) == datetime(2027, 2, 15)

    def test_serialize_datetime(self):
        assert serialize_datetime(datetime(2026, 5, 1, 8, 30)) == "2026-05-01T08:30:00.000Z"
        assert serialize_datetime(None) is None
