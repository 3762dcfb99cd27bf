"""Date and time utility functions."""
import re
from datetime import datetime
from typing import Any, Optional

DISPLAY_DATE_FORMAT = "%Y-%m-%d"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_NUMERIC_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")

_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
)


def parse_event_date(value: Any) -> Optional[datetime]:
    """
    Normalize a stored event date into a datetime.

    Args:
        value: Unix timestamp (int, float or numeric string) or datetime string

    Returns:
        datetime in local time, or None if the value cannot be interpreted
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value

    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value)

        text = str(value).strip()
        if not text:
            return None

        if _NUMERIC_PATTERN.match(text):
            return datetime.fromtimestamp(float(text))
    except (OverflowError, OSError, ValueError):
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass

    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    return None


def format_event_date(value: Any, fmt: str = DISPLAY_DATE_FORMAT) -> str:
    """
    Format a stored event date for display.

    Falls back to the raw stored value when it cannot be parsed.
    """
    parsed = parse_event_date(value)
    if parsed is None:
        return "" if value is None else str(value)
    return parsed.strftime(fmt)


def format_long_date(value: Any) -> str:
    """Format as e.g. 'October 5, 2026', falling back to the raw value."""
    parsed = parse_event_date(value)
    if parsed is None:
        return "" if value is None else str(value)
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def format_registration_time(timestamp: float) -> str:
    """Format as e.g. 'October 5, 2026 at 3:07 PM'."""
    moment = datetime.fromtimestamp(timestamp)
    hour = moment.hour % 12 or 12
    return f"{moment:%B} {moment.day}, {moment.year} at {hour}:{moment:%M %p}"


def format_timestamp(timestamp: Optional[int]) -> str:
    """Format a Unix timestamp as YYYY-MM-DD HH:MM:SS."""
    if timestamp is None:
        return ""
    return datetime.fromtimestamp(timestamp).strftime(TIMESTAMP_FORMAT)


def is_within_window(now: int, start: int, end: int) -> bool:
    """Check whether now falls inside the inclusive [start, end] window."""
    return start <= now <= end
