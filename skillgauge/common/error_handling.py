"""
Error Handling System for SkillGauge

This module provides the error taxonomy shared by every store and service:

1. A closed set of error categories (``ErrorCode``) with their HTTP status
2. An exception hierarchy whose instances carry a stable machine-readable key
3. Helpers that turn any exception into the ``{"message": <key>}`` body the
   HTTP layer returns, and that log failures consistently

Callers render localized text from the key; raw exception messages and
storage-engine detail never reach the response body.
"""

import logging
import traceback
from enum import Enum
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for errors"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCode(Enum):
    """Error categories of the SkillGauge taxonomy"""
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


class SkillGaugeError(Exception):
    """
    Base exception class for all SkillGauge errors.

    Attributes:
        key: Stable machine-readable key returned to callers
        message: Human-readable description, logged and optionally returned
        details: Extra structured information safe to expose
        cause: Underlying exception, never exposed
    """

    code: ErrorCode = ErrorCode.INTERNAL
    status_code: int = 500
    severity: ErrorSeverity = ErrorSeverity.ERROR
    default_key: str = "internal_error"

    def __init__(
        self,
        key: Optional[str] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.key = key or self.default_key
        self.message = message or self.key
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self, include_detail: bool = True) -> Dict[str, Any]:
        """Convert the exception to a response body"""
        body: Dict[str, Any] = {"message": self.key}
        if include_detail and self.message != self.key:
            body["detail"] = self.message
        if include_detail and self.details:
            body["errors"] = self.details
        return body

    def __str__(self) -> str:
        base_str = f"{self.code.value}/{self.key}: {self.message}"
        if self.cause:
            base_str += f" caused by {type(self.cause).__name__}: {self.cause}"
        return base_str


class AuthenticationError(SkillGaugeError):
    """Raised when a credential is missing or invalid"""
    code = ErrorCode.UNAUTHENTICATED
    status_code = 401
    severity = ErrorSeverity.WARNING
    default_key = "unauthenticated"


class AuthorizationError(SkillGaugeError):
    """Raised when the caller lacks a required role or does not own the resource"""
    code = ErrorCode.FORBIDDEN
    status_code = 403
    severity = ErrorSeverity.WARNING
    default_key = "forbidden"


class ValidationError(SkillGaugeError):
    """Raised when input is malformed or violates a constraint"""
    code = ErrorCode.VALIDATION
    status_code = 400
    severity = ErrorSeverity.WARNING
    default_key = "invalid_input"


class NotFoundError(SkillGaugeError):
    """Raised when a referenced entity does not exist"""
    code = ErrorCode.NOT_FOUND
    status_code = 404
    severity = ErrorSeverity.INFO
    default_key = "not_found"

    def __init__(self, resource_type: str, resource_id: Any):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message=f"{resource_type} with ID {resource_id} not found")

    def to_dict(self, include_detail: bool = True) -> Dict[str, Any]:
        return {"message": self.key}


class ConflictError(SkillGaugeError):
    """Raised when a unique value (national ID, email, phone) is already taken"""
    code = ErrorCode.CONFLICT
    status_code = 409
    severity = ErrorSeverity.WARNING
    default_key = "conflict"


class InternalError(SkillGaugeError):
    """Raised when storage or a transaction fails"""

    def to_dict(self, include_detail: bool = True) -> Dict[str, Any]:
        return {"message": self.key}


# Assessment errors

class InvalidAnswerMappingError(ValidationError):
    """An answer references an unknown option or an option of another question"""

    def __init__(self, question_id: str, option_id: str):
        super().__init__(
            key="invalid_answer_mapping",
            message=f"Option {option_id} does not belong to question {question_id}"
        )
        self.question_id = question_id
        self.option_id = option_id


class DuplicateQuestionError(ValidationError):
    """A submission answers the same question more than once"""

    def __init__(self, question_id: str):
        super().__init__(
            key="duplicate_question",
            message=f"Question {question_id} answered more than once"
        )
        self.question_id = question_id


class InvalidQuestionError(ValidationError):
    """A question write violates the option invariants"""


class EndBeforeStartError(ValidationError):
    """The assessment window closes before it opens"""

    def __init__(self):
        super().__init__(key="end_before_start", message="endAt must be after startAt")


def convert_exception(exception: Exception) -> SkillGaugeError:
    """
    Convert any exception to a SkillGaugeError.

    Unknown exceptions become ``InternalError`` with the original attached
    as the cause.
    """
    if isinstance(exception, SkillGaugeError):
        return exception
    return InternalError(message="An unexpected error occurred", cause=exception)


def error_response(error: Union[SkillGaugeError, Exception]) -> Dict[str, Any]:
    """
    Generate the response body for an error.

    Args:
        error: The error to render

    Returns:
        A dictionary with at least the ``message`` key
    """
    return convert_exception(error).to_dict()


def log_error(
    error: Union[SkillGaugeError, Exception],
    context: Optional[Dict[str, Any]] = None,
    include_stack_trace: bool = True
) -> None:
    """
    Log an error at a level matching its severity.

    Args:
        error: The error to log
        context: Additional context to include in the message
        include_stack_trace: Whether to attach the traceback for internal errors
    """
    converted = convert_exception(error)

    message = f"ERROR [{converted.code.value}/{converted.key}]: {converted.message}"
    if context:
        message += " (context: " + ", ".join(f"{k}={v}" for k, v in context.items()) + ")"
    if converted.cause is not None:
        message += f" caused by {type(converted.cause).__name__}: {converted.cause}"

    if converted.severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
        if include_stack_trace:
            source = converted.cause if converted.cause is not None else error
            message += "\n" + "".join(
                traceback.format_exception(type(source), source, source.__traceback__)
            )
        logger.error(message)
    elif converted.severity == ErrorSeverity.WARNING:
        logger.warning(message)
    else:
        logger.info(message)
