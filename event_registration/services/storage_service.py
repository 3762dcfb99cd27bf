"""SQLite connection handling, schema and transaction boundary."""
import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Set

from event_registration.utils.exceptions import (
    DuplicateRegistrationError,
    EventFullError,
    EventNotAvailableError,
    StorageError,
)

logger = logging.getLogger(__name__)

EVENT_FULL_MARKER = "event_full"

SCHEMA = """
CREATE TABLE IF NOT EXISTS event (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_name TEXT NOT NULL,
    category TEXT NOT NULL DEFAULT '',
    event_date TEXT,
    registration_start INTEGER NOT NULL,
    registration_end INTEGER NOT NULL,
    status INTEGER NOT NULL DEFAULT 1,
    max_attendees INTEGER,
    CHECK (registration_start <= registration_end)
);

CREATE TABLE IF NOT EXISTS registration_entry (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_id INTEGER NOT NULL REFERENCES event(id),
    full_name TEXT NOT NULL,
    email TEXT NOT NULL COLLATE NOCASE,
    college TEXT NOT NULL,
    department TEXT NOT NULL,
    created INTEGER NOT NULL,
    UNIQUE (event_id, email)
);

CREATE INDEX IF NOT EXISTS idx_registration_entry_created
    ON registration_entry(created);
"""

# Only installed when the event table carries max_attendees.
CAPACITY_TRIGGER = f"""
CREATE TRIGGER IF NOT EXISTS registration_entry_capacity
BEFORE INSERT ON registration_entry
WHEN (SELECT max_attendees FROM event WHERE id = NEW.event_id) > 0
 AND (SELECT COUNT(*) FROM registration_entry WHERE event_id = NEW.event_id)
     >= (SELECT max_attendees FROM event WHERE id = NEW.event_id)
BEGIN
    SELECT RAISE(ABORT, '{EVENT_FULL_MARKER}');
END;
"""


class Database:
    """
    Thin wrapper around one SQLite connection.

    The connection runs in autocommit mode; writes go through
    transaction(), which takes the database write lock up front.
    """

    def __init__(self, path: str, timeout: float = 5.0):
        self.path = path
        if path != ":memory:":
            dir_path = os.path.dirname(path)
            if dir_path and not os.path.exists(dir_path):
                os.makedirs(dir_path, exist_ok=True)

        try:
            self.connection = sqlite3.connect(
                path,
                timeout=timeout,
                isolation_level=None,
                check_same_thread=False,
            )
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {path}: {e}") from e

        self.connection.row_factory = sqlite3.Row
        self.connection.execute("PRAGMA foreign_keys = ON")

    def initialise(self) -> None:
        """Create tables, indexes and the capacity trigger if missing."""
        self.connection.executescript(SCHEMA)
        if "max_attendees" in self.table_columns("event"):
            self.connection.executescript(CAPACITY_TRIGGER)
        else:
            logger.warning("event table has no max_attendees column; capacity limits disabled")

    def table_columns(self, table: str) -> Set[str]:
        """Names of the columns of a table (empty if the table is missing)."""
        rows = self.connection.execute(f"PRAGMA table_info({table})").fetchall()
        return {row["name"] for row in rows}

    def execute(self, sql: str, params=()) -> sqlite3.Cursor:
        return self.connection.execute(sql, params)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Context manager for a serialized write transaction.

        Usage:
            with db.transaction():
                count = ...
                db.execute("INSERT ...")

        Raises:
            DuplicateRegistrationError: If the unique (event_id, email) constraint fails
            EventFullError: If the capacity trigger rejects the insert
            sqlite3.Error: Any other storage failure (after rollback)
        """
        self.connection.execute("BEGIN IMMEDIATE")
        try:
            yield self.connection
        except sqlite3.IntegrityError as e:
            self._rollback()
            translated = translate_integrity_error(e)
            if translated is e:
                raise
            raise translated from e
        except BaseException:
            self._rollback()
            raise
        else:
            self.connection.execute("COMMIT")

    def _rollback(self) -> None:
        if self.connection.in_transaction:
            self.connection.execute("ROLLBACK")

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def translate_integrity_error(error: sqlite3.IntegrityError) -> Exception:
    """Map a constraint violation to its domain exception."""
    message = str(error)
    if EVENT_FULL_MARKER in message:
        return EventFullError(message)
    if "UNIQUE" in message and "registration_entry" in message:
        return DuplicateRegistrationError(message)
    if "FOREIGN KEY" in message:
        return EventNotAvailableError(message)
    return error


def open_database(path: str) -> Database:
    """Open a database and make sure its schema exists."""
    db = Database(path)
    try:
        db.initialise()
    except sqlite3.Error as e:
        db.close()
        raise StorageError(f"Cannot initialise database {path}: {e}") from e
    return db
