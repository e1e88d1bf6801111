"""
Validation utilities for assessment submissions.
Rejects malformed payloads at the boundary with messages that name the field.
"""
import re
import time
from typing import Any, Iterable, Optional

from core.errors import InvalidSubmission

# Characters Google Sheets refuses in a tab title
_ILLEGAL_SHEET_CHARS = re.compile(r"['*?:/\\\[\]]")
MAX_SHEET_NAME_LEN = 100


def default_sheet_name() -> str:
    """Timestamp-derived fallback used when the work order is empty."""
    return f"WO-{int(time.time() * 1000)}"


def sanitize_sheet_name(name: Optional[str]) -> str:
    """
    Turn a work-order identifier into a valid worksheet title.

    Rules:
    - quotes, wildcards, colons, slashes and brackets become '-'
    - surrounding whitespace is trimmed
    - titles are capped at 100 characters
    - an empty result falls back to WO-<epoch ms>
    """
    if not name or not isinstance(name, str):
        return default_sheet_name()

    sanitized = _ILLEGAL_SHEET_CHARS.sub("-", name).strip()
    sanitized = sanitized[:MAX_SHEET_NAME_LEN]

    if not sanitized:
        return default_sheet_name()
    return sanitized


def safe_string(value: Any) -> str:
    """None -> '', everything else -> str(value)."""
    if value is None:
        return ""
    return str(value)


def require_text(value: Optional[str], field_name: str) -> str:
    """
    Ensure a required free-text field is present and non-blank.

    Raises:
        InvalidSubmission: naming `field_name`
    """
    if value is None or not str(value).strip():
        raise InvalidSubmission(f"{field_name} is required")
    return str(value)


def require_work_items(items: Optional[Iterable[Any]], field_name: str = "structuredData.workItems") -> list:
    """
    Ensure at least one raw work item was submitted.

    Raises:
        InvalidSubmission: if the list is missing or empty
    """
    materialized = list(items or [])
    if not materialized:
        raise InvalidSubmission(f"{field_name}: at least one work item is required")
    return materialized
