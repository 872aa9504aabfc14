"""Date helpers for chat display. Bad input never raises."""

import logging
from datetime import datetime, timezone
from typing import Optional, Union

logger = logging.getLogger(__name__)

DateLike = Union[str, int, float, datetime, None]


def parse_date(value: DateLike) -> Optional[datetime]:
    """Best-effort conversion of a date-like value to a datetime.

    Accepts datetimes, ISO-8601 strings (a trailing ``Z`` is read as UTC)
    and epoch milliseconds. Returns None for anything else.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def _default_date(date: datetime) -> str:
    # e.g. "Jan 5, 2025"
    return f"{date:%b} {date.day}, {date.year}"


def safe_format_date(
    value: DateLike,
    fmt: Optional[str] = None,
    fallback: str = "Recently created",
) -> str:
    """Format a date for display, or return ``fallback`` if it is unusable."""
    date = parse_date(value)
    if date is None:
        return fallback
    try:
        return date.strftime(fmt) if fmt else _default_date(date)
    except ValueError as e:
        logger.warning("Date formatting error: %s", e)
        return fallback


def safe_format_date_with_prefix(
    created: DateLike,
    updated: DateLike = None,
    fmt: Optional[str] = None,
    fallback: str = "Recently created",
) -> str:
    """Return "Updated <date>" when an update time exists, else "Created <date>"."""
    prefix = "Updated" if updated else "Created"
    date = parse_date(updated or created)
    if date is None:
        return fallback
    try:
        text = date.strftime(fmt) if fmt else _default_date(date)
    except ValueError as e:
        logger.warning("Date formatting error: %s", e)
        return fallback
    return f"{prefix} {text}"


def safe_format_timestamp(value: DateLike, fmt: str = "%H:%M") -> str:
    """Format a chat message time; empty string when the value is unusable."""
    date = parse_date(value)
    if date is None:
        return ""
    try:
        return date.strftime(fmt)
    except ValueError as e:
        logger.warning("Timestamp formatting error: %s", e)
        return ""
