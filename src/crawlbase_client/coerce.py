"""Tolerant scalar coercions shared by the header and field projectors.

Every helper returns ``None`` for missing or unparsable input instead of
raising, so a single bad header or JSON value only leaves its own field unset.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from dateutil import parser as date_parser


def to_int(value: Any) -> int | None:
    """Parse an integer from a header string or JSON scalar."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def to_bool(value: Any) -> bool | None:
    """Parse ``true``/``false`` in any letter case."""
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    text = str(value).strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    return None


def to_presence(value: Any) -> bool:
    """Treat any non-false, non-null value as a success marker."""
    return value is not None and value is not False


def to_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_datetime(value: Any) -> datetime | None:
    """Parse a timestamp with the permissive dateutil parser."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return date_parser.parse(text)
    except (ValueError, OverflowError):
        return None
