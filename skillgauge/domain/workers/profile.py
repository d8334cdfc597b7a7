"""
Worker profile documents.

A worker profile is a nested document with the sections ``personal``,
``identity``, ``address``, ``employment`` and ``credentials`` (plus any other
section the client sends). Part of it lives in relational columns and the
rest in the JSON overlay; the helpers here move values between the two
shapes without touching the database.
"""

import copy
from typing import Any, Dict, Mapping, Optional

from skillgauge.common.utils import get_nested_value, set_nested_value

SECRET_FIELDS = ("password", "confirmPassword")


def merge_profile(relational: Mapping[str, Any], overlay: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Combine relational values with the overlay document.

    Relational values win for every path they provide; ``None`` means the
    column has no value and the overlay is used instead. Neither argument is
    modified.

    Args:
        relational: Mapping of profile path (``section.field``) to column value
        overlay: Parsed overlay document, or None when there is none

    Returns:
        A new merged document
    """
    merged = copy.deepcopy(dict(overlay or {}))
    for path, value in relational.items():
        if value is not None:
            set_nested_value(merged, path, value)
    return merged


def values_for_columns(profile: Mapping[str, Any], paths: Mapping[str, str]) -> Dict[str, Any]:
    """
    Read column values out of a profile.

    Args:
        profile: Profile document
        paths: Mapping of column name to profile path

    Returns:
        Mapping of column name to value; blank strings become None
    """
    values = {}
    for column, path in paths.items():
        value = get_nested_value(dict(profile), path)
        if isinstance(value, str):
            value = value.strip() or None
        if isinstance(value, (dict, list)):
            continue
        values[column] = value
    return values


def relational_paths(row: Mapping[str, Any], paths: Mapping[str, str]) -> Dict[str, Any]:
    """Map a relational row to profile paths."""
    return {path: row.get(column) for column, path in paths.items()}


def strip_secrets(profile: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of ``profile`` without password fields."""
    cleaned = copy.deepcopy(dict(profile))
    credentials = cleaned.get("credentials")
    if isinstance(credentials, dict):
        for key in SECRET_FIELDS:
            credentials.pop(key, None)
        if not credentials:
            cleaned.pop("credentials")
    return cleaned


def full_name_of(profile: Mapping[str, Any]) -> Optional[str]:
    """``personal.fullName`` or the Thai first and last names joined."""
    name = get_nested_value(dict(profile), "personal.fullName")
    if isinstance(name, str) and name.strip():
        return name.strip()
    parts = [
        get_nested_value(dict(profile), "personal.firstNameTh"),
        get_nested_value(dict(profile), "personal.lastNameTh"),
    ]
    joined = " ".join(p.strip() for p in parts if isinstance(p, str) and p.strip())
    return joined or None
