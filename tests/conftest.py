"""Shared fixtures: a fresh SQLite database per test and an event factory."""
import pytest

from event_registration.services.storage_service import open_database

NOW = 1_800_000_000


@pytest.fixture
def now():
    """Fixed 'current time' used by the injected clocks."""
    return NOW


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "event_registration.db")


@pytest.fixture
def db(db_path):
    """Initialised database, closed after the test."""
    database = open_database(db_path)
    yield database
    database.close()


@pytest.fixture
def add_event(db, now):
    """Insert an event row and return its id."""

    def _add_event(
        name="Python Workshop",
        category="Workshop",
        event_date=None,
        start=None,
        end=None,
        status=1,
        max_attendees=None,
    ):
        cursor = db.execute(
            "INSERT INTO event (event_name, category, event_date, registration_start, "
            "registration_end, status, max_attendees) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                name,
                category,
                now + 86400 if event_date is None else event_date,
                now - 100 if start is None else start,
                now + 100 if end is None else end,
                status,
                max_attendees,
            ),
        )
        return cursor.lastrowid

    return _add_event
