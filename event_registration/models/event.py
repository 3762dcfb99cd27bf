"""Event data model."""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from event_registration.utils.date_utils import format_event_date, is_within_window


@dataclass
class Event:
    """Event that visitors can register for."""

    id: int
    name: str
    category: str
    event_date: Any
    registration_start: int
    registration_end: int
    status: bool
    max_attendees: Optional[int] = None

    def __post_init__(self):
        """Validate event data after initialization."""
        if self.registration_start > self.registration_end:
            raise ValueError(
                f"Registration start ({self.registration_start}) cannot be after "
                f"registration end ({self.registration_end})"
            )

        if self.max_attendees is not None and self.max_attendees <= 0:
            raise ValueError("Max attendees must be a positive integer")

    def is_registration_open(self, now: int) -> bool:
        """Check if the event is active and now is inside its registration window."""
        return bool(self.status) and is_within_window(
            now, self.registration_start, self.registration_end
        )

    def has_capacity_limit(self) -> bool:
        """Check if the event caps its number of attendees."""
        return self.max_attendees is not None

    def display_date(self) -> str:
        """Event date as YYYY-MM-DD, or the raw stored value if unparsable."""
        return format_event_date(self.event_date)

    def label(self) -> str:
        """Selector label: 'category - name (date)'."""
        return f"{self.category} - {self.name} ({self.display_date()})"

    def to_details(self) -> Dict[str, Any]:
        """Event details consumed by the notification service."""
        return {
            "title": self.name,
            "event_date": self.event_date,
            "category": self.category or None,
        }
