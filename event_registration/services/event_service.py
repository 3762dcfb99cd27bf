"""Read-only access to events and the listing used to populate the form."""
import logging
import sqlite3
from typing import List, Optional, Tuple

from event_registration.models.event import Event
from event_registration.services.storage_service import Database
from event_registration.utils.date_utils import parse_event_date

logger = logging.getLogger(__name__)

EVENTS_UNAVAILABLE_MESSAGE = "Unable to load events at this time. Please try again later."

# Any non-zero status is active, matching Event.status = bool(row["status"]).
_OPEN_FILTER = "status <> 0 AND registration_start <= ? AND registration_end >= ?"


def _read_max_attendees(row: sqlite3.Row) -> Optional[int]:
    """Capacity from a row; anything unreadable means no limit."""
    if "max_attendees" not in row.keys():
        return None
    value = row["max_attendees"]
    if value is None or isinstance(value, bool):
        return None
    try:
        limit = int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring unreadable max_attendees %r for event %s", value, row["id"])
        return None
    return limit if limit > 0 else None


def row_to_event(row: sqlite3.Row) -> Event:
    """Build an Event from an event table row."""
    return Event(
        id=row["id"],
        name=row["event_name"],
        category=row["category"] or "",
        event_date=row["event_date"],
        registration_start=int(row["registration_start"]),
        registration_end=int(row["registration_end"]),
        status=bool(row["status"]),
        max_attendees=_read_max_attendees(row),
    )


class EventStore:
    """Queries against the event table."""

    def __init__(self, db: Database):
        self.db = db

    def get_event(self, event_id: int) -> Optional[Event]:
        """
        Get an event by id regardless of status or window.

        Returns:
            Event, or None if it doesn't exist
        """
        row = self.db.execute("SELECT * FROM event WHERE id = ?", (event_id,)).fetchone()
        return row_to_event(row) if row else None

    def get_open_event(self, event_id: int, now: int) -> Optional[Event]:
        """Get an event only if it is active and accepting registrations at now."""
        row = self.db.execute(
            f"SELECT * FROM event WHERE id = ? AND {_OPEN_FILTER}",
            (event_id, now, now),
        ).fetchone()
        return row_to_event(row) if row else None

    def list_open_events(self, now: int) -> List[Event]:
        """
        Events accepting registrations at now.

        Returns:
            List[Event] ordered by category, event date and name
        """
        rows = self.db.execute(
            f"SELECT * FROM event WHERE {_OPEN_FILTER}",
            (now, now),
        ).fetchall()
        # event_date mixes timestamps and date strings, so sort in Python
        return sorted((row_to_event(row) for row in rows), key=_listing_order)


def _listing_order(event: Event) -> Tuple:
    """Sort key: category, then parsed event date (unparsable dates last), then name."""
    parsed = parse_event_date(event.event_date)
    if parsed is None:
        date_key: Tuple = (1, "" if event.event_date is None else str(event.event_date))
    else:
        date_key = (0, parsed.timestamp())
    return (event.category, date_key, event.name)


def get_event_options(store: EventStore, now: int) -> Tuple[List[Tuple[int, str]], str]:
    """
    Build selector options for the registration form.

    Args:
        store: Event store to read from
        now: Current Unix timestamp

    Returns:
        Tuple of (options, error_message)
        - ([(id, label), ...], "") on success, possibly empty
        - ([], EVENTS_UNAVAILABLE_MESSAGE) if events could not be read
    """
    try:
        events = store.list_open_events(now)
    except (sqlite3.Error, ValueError):
        logger.exception("Failed to load open events")
        return [], EVENTS_UNAVAILABLE_MESSAGE

    return [(event.id, event.label()) for event in events], ""
