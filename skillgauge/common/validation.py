"""
Data Validation Utilities for SkillGauge

This module provides the small set of validators the stores share:
1. Regex patterns for phone numbers, emails and national IDs
2. Normalizers for Thai phone numbers and national IDs
3. Parsers for ISO-8601 timestamps

Every failure raises ``ValidationError`` carrying a stable key.
"""

import re
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from skillgauge.common.error_handling import ValidationError

logger = logging.getLogger(__name__)

# Regex patterns for common validation
PATTERNS = {
    "email": r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$",
    "phone": r"^[+0-9]{8,15}$",
    "local_phone": r"^0\d{9}$",
    "national_id": r"^\d{13}$",
}

MIN_PASSWORD_LENGTH = 8
NATIONAL_ID_LENGTH = 13


def normalize_phone_th(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a Thai phone number to E.164.

    ``0XXXXXXXXX`` becomes ``+66XXXXXXXXX``, ``66XXXXXXXXX`` gains a ``+`` and
    anything already starting with ``+`` is kept. Spaces and dashes are removed.

    Args:
        phone: Raw phone number

    Returns:
        The normalized number, or None for empty input
    """
    if phone is None:
        return None
    digits = re.sub(r"[\s-]", "", str(phone))
    if not digits:
        return None
    if digits.startswith("+"):
        return digits
    if digits.startswith("0"):
        return "+66" + digits[1:]
    if digits.startswith("66"):
        return "+" + digits
    return digits


def normalize_national_id(value: Optional[str]) -> str:
    """Strip dashes and spaces from a national ID."""
    return re.sub(r"[\s-]", "", str(value or ""))


def validate_national_id(value: Optional[str]) -> str:
    """
    Validate a Thai national ID.

    Returns:
        The normalized 13-digit ID

    Raises:
        ValidationError: ``invalid_national_id`` for non-digits,
            ``invalid_national_id_length`` for a wrong length
    """
    normalized = normalize_national_id(value)
    if not normalized or not normalized.isdigit():
        raise ValidationError(key="invalid_national_id")
    if len(normalized) != NATIONAL_ID_LENGTH:
        raise ValidationError(key="invalid_national_id_length")
    return normalized


def validate_local_phone(value: Optional[str]) -> str:
    """
    Validate a local 10-digit phone number starting with 0.

    Returns:
        The phone number in E.164 form
    """
    raw = re.sub(r"[\s-]", "", str(value or ""))
    if not re.match(PATTERNS["local_phone"], raw):
        raise ValidationError(key="invalid_phone")
    return normalize_phone_th(raw)


def validate_email(value: Optional[str]) -> Optional[str]:
    """Validate an optional email; returns it lower-cased or None when absent."""
    if value is None or not str(value).strip():
        return None
    email = str(value).strip()
    if not re.match(PATTERNS["email"], email):
        raise ValidationError(key="invalid_email")
    return email.lower()


def validate_password(value: Optional[str]) -> str:
    if not value:
        raise ValidationError(key="missing_password")
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValidationError(key="password_too_short")
    return value


def require_text(value: Any, key: str) -> str:
    """Return ``value`` stripped, raising ``key`` when it is blank or not a string."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(key=key)
    return value.strip()


def parse_iso_datetime(value: Any, key: str) -> Optional[datetime]:
    """
    Parse an optional ISO-8601 timestamp into a naive UTC datetime.

    Args:
        value: None, a datetime, or an ISO-8601 string (``Z`` suffix allowed)
        key: Error key raised when the value cannot be parsed

    Returns:
        The parsed datetime or None
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Rejected timestamp %r", value)
            raise ValidationError(key=key, message=f"Invalid ISO-8601 timestamp: {value}")
    else:
        raise ValidationError(key=key)

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def validate_login_phone(value: Optional[str]) -> str:
    """Validate a login phone (8-15 digits, optional ``+``) and return it stripped."""
    raw = re.sub(r"[\s-]", "", str(value or ""))
    if not re.match(PATTERNS["phone"], raw):
        raise ValidationError(key="invalid_phone")
    return raw
