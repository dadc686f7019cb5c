"""
String cleanup helpers shared by the record normalizers.
"""

from __future__ import annotations

from typing import Any


def clean_value(value: Any) -> str:
    """
    Convert a raw API field into a trimmed string.

    Args:
        value: Raw field value (None, str, or anything with a str form)

    Returns:
        Trimmed string, or "" when the value is None
    """
    if value is None:
        return ""
    return str(value).strip()


def join_name(first: Any, last: Any) -> str:
    """
    Join first and last name parts with a single space.

    Missing parts are treated as empty strings, so a contact with only a
    last name yields just that name without a leading space.
    """
    return f"{clean_value(first)} {clean_value(last)}".strip()


def split_name(name: str) -> tuple[str, str]:
    """
    Split a full name into (first, last) on the first space.

    Args:
        name: Full name as stored on a Contact

    Returns:
        Tuple of first name and the remainder (possibly empty)
    """
    parts = clean_value(name).split(" ", 1)
    first = parts[0]
    last = parts[1].strip() if len(parts) > 1 else ""
    return first, last
