"""Registration listing and CSV export."""
import csv
import io
import logging
import sqlite3
from typing import Dict, List, Tuple

from event_registration.models.registration import RegistrationRow
from event_registration.services.registration_service import RegistrationStore

logger = logging.getLogger(__name__)

REGISTRATIONS_UNAVAILABLE_MESSAGE = "Unable to load registrations at this time. Please try again later."
EMPTY_MESSAGE = "No registrations found."

HEADER = [
    "ID",
    "Event Name",
    "Full Name",
    "Email",
    "College",
    "Department",
    "Registration Date",
]


def row_values(row: RegistrationRow) -> List[str]:
    """Values of one registration in HEADER order."""
    return [
        str(row.id),
        row.event_name,
        row.full_name,
        row.email,
        row.college,
        row.department,
        row.registration_date(),
    ]


def load_registrations(store: RegistrationStore) -> Tuple[List[RegistrationRow], str]:
    """
    Read all registrations for display.

    Returns:
        Tuple of (rows, error_message)
        - (rows, "") on success, newest first
        - ([], REGISTRATIONS_UNAVAILABLE_MESSAGE) on storage errors
    """
    try:
        return store.list_with_events(), ""
    except sqlite3.Error:
        logger.exception("Failed to load registrations")
        return [], REGISTRATIONS_UNAVAILABLE_MESSAGE


def to_table(rows: List[RegistrationRow]) -> List[Dict[str, str]]:
    """Rows as header-keyed dicts for table rendering."""
    return [dict(zip(HEADER, row_values(row))) for row in rows]


def to_csv(rows: List[RegistrationRow]) -> str:
    """Serialize registrations as CSV text with a header line."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(HEADER)
    for row in rows:
        writer.writerow(row_values(row))
    return buffer.getvalue()


def export_filename(now) -> str:
    """File name for an export created at the given datetime."""
    return f"event_registrations_{now:%Y%m%d_%H%M%S}.csv"
