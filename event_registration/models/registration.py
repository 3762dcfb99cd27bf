"""Registration data models."""
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from event_registration.utils.date_utils import format_timestamp
from event_registration.utils.validation import normalize_text


@dataclass(frozen=True)
class RegistrationRequest:
    """Candidate submission from the registration form."""

    event_id: Any
    full_name: Optional[str]
    email: Optional[str]
    college: Optional[str]
    department: Optional[str]

    def normalized(self) -> "RegistrationRequest":
        """Return a copy with surrounding whitespace trimmed from every field."""
        event_id = self.event_id
        if isinstance(event_id, str):
            event_id = event_id.strip()
        return replace(
            self,
            event_id=event_id,
            full_name=normalize_text(self.full_name),
            email=normalize_text(self.email),
            college=normalize_text(self.college),
            department=normalize_text(self.department),
        )


@dataclass(frozen=True)
class RegistrationEntry:
    """Persisted registration. Never updated once written."""

    id: int
    event_id: int
    full_name: str
    email: str
    college: str
    department: str
    created: int

    def registrant_info(self) -> Dict[str, str]:
        """Registrant fields used in the admin notification."""
        return {
            "full_name": self.full_name,
            "email": self.email,
            "college": self.college,
            "department": self.department,
        }


@dataclass(frozen=True)
class RegistrationRow:
    """Registration joined with its event name, for listing and export."""

    id: int
    event_name: str
    full_name: str
    email: str
    college: str
    department: str
    created: int

    def registration_date(self) -> str:
        """Creation time as YYYY-MM-DD HH:MM:SS."""
        return format_timestamp(self.created)
