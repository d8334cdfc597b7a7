"""
Common utility functions for the SkillGauge backend.

Timestamps are stored as naive UTC datetimes throughout the application;
``utcnow`` is the single source of "now" so tests can rely on it.
"""

import calendar
import datetime
from typing import Any, Dict, Optional


def utcnow() -> datetime.datetime:
    """Current time as a naive UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def serialize_datetime(obj: Optional[datetime.datetime]) -> Optional[str]:
    """
    Serialize a naive UTC datetime to an ISO-8601 string with a ``Z`` suffix.

    Args:
        obj: Datetime to serialize, or None

    Returns:
        ISO format string, or None
    """
    if obj is None:
        return None
    if obj.tzinfo is not None:
        obj = obj.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return obj.isoformat(timespec="milliseconds") + "Z"


def add_months(moment: datetime.datetime, months: int) -> datetime.datetime:
    """
    Add calendar months to a datetime, clamping the day to the target month.

    Jan 31 plus one month is Feb 28 (or 29).
    """
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def get_nested_value(obj: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Get a nested value from a dictionary using a dot-separated path.

    Args:
        obj: Dictionary to search
        path: Dot-separated path (e.g., "personal.phone")
        default: Default value if path not found

    Returns:
        Value at path or default
    """
    try:
        current = obj
        for part in path.split("."):
            current = current[part]
        return current
    except (KeyError, TypeError):
        return default


def set_nested_value(obj: Dict[str, Any], path: str, value: Any) -> None:
    """
    Set a nested value in a dictionary using a dot-separated path.

    Intermediate sections are created when missing or not dictionaries.
    """
    parts = path.split(".")
    current = obj
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value
