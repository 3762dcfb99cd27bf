"""Data validation utilities."""
import re
from typing import Optional, Tuple

EMAIL_PATTERN = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+$"
)

MIN_NAME_LENGTH = 2
MAX_EMAIL_LENGTH = 254
MAX_EVENT_ID = 2 ** 63 - 1  # largest SQLite INTEGER


def is_valid_email(email: str) -> bool:
    """
    Check email syntax.

    Args:
        email: Address to check (already trimmed)

    Returns:
        True if the address is syntactically valid
    """
    if not email or len(email) > MAX_EMAIL_LENGTH:
        return False
    local_part = email.split("@", 1)[0]
    if local_part.startswith(".") or local_part.endswith(".") or ".." in local_part:
        return False
    return EMAIL_PATTERN.match(email) is not None


def validate_full_name(name: Optional[str]) -> Tuple[bool, str]:
    """
    Validate registrant full name.

    Args:
        name: Name to validate

    Returns:
        Tuple of (is_valid: bool, error_message: str)
        - (True, "") if valid
        - (False, "Full name is required.") if empty after trimming
        - (False, "Full name must be at least 2 characters.") if too short
    """
    normalized = normalize_text(name)
    if not normalized:
        return False, "Full name is required."
    if len(normalized) < MIN_NAME_LENGTH:
        return False, f"Full name must be at least {MIN_NAME_LENGTH} characters."
    return True, ""


def validate_required(value: Optional[str], label: str) -> Tuple[bool, str]:
    """Validate that a text field is non-empty after trimming."""
    if not normalize_text(value):
        return False, f"{label} is required."
    return True, ""


def normalize_text(value: Optional[str]) -> str:
    """Trim surrounding whitespace, treating None as empty."""
    if value is None:
        return ""
    return str(value).strip()


def parse_event_id(value) -> Optional[int]:
    """
    Convert a submitted event id into an integer.

    Returns:
        The id, or None if the value is empty, not an integer, or outside
        the range of stored ids (1 to MAX_EVENT_ID)
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        event_id = value
    else:
        text = str(value).strip()
        if not re.match(r"^\d+$", text):
            return None
        event_id = int(text)
    if not 0 < event_id <= MAX_EVENT_ID:
        return None
    return event_id
