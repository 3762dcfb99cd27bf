"""Unit tests for export_service."""
import csv
import io
import sqlite3
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from event_registration.models.registration import RegistrationRequest, RegistrationRow
from event_registration.services.export_service import (
    HEADER,
    REGISTRATIONS_UNAVAILABLE_MESSAGE,
    export_filename,
    load_registrations,
    to_csv,
    to_table,
)
from event_registration.services.registration_service import RegistrationStore


@pytest.fixture
def store(db):
    return RegistrationStore(db)


@pytest.fixture
def sample_row():
    created = int(datetime(2026, 10, 5, 9, 15, 0).timestamp())
    return RegistrationRow(3, "Intro, Part 1", "Alice", "x@x.com", "C", "D", created)


def add_entry(store, event_id, email, created):
    request = RegistrationRequest(event_id, "Alice", email, "C", "D")
    return store.insert(event_id, request, created=created)


class TestLoadRegistrations:
    """Test the joined read path."""

    def test_newest_first_with_event_name(self, store, add_event):
        event_id = add_event(name="Intro")
        add_entry(store, event_id, "old@example.com", created=100)
        add_entry(store, event_id, "new@example.com", created=300)
        add_entry(store, event_id, "mid@example.com", created=200)

        rows, error_msg = load_registrations(store)

        assert error_msg == ""
        assert [r.email for r in rows] == ["new@example.com", "mid@example.com", "old@example.com"]
        assert {r.event_name for r in rows} == {"Intro"}

    def test_same_created_ordered_by_id_desc(self, store, add_event):
        event_id = add_event()
        first = add_entry(store, event_id, "a@example.com", created=100)
        second = add_entry(store, event_id, "b@example.com", created=100)

        rows, _ = load_registrations(store)

        assert [r.id for r in rows] == [second.id, first.id]

    def test_empty(self, store):
        assert load_registrations(store) == ([], "")

    def test_storage_error(self, caplog):
        broken = MagicMock(spec=RegistrationStore)
        broken.list_with_events.side_effect = sqlite3.OperationalError("locked")

        rows, error_msg = load_registrations(broken)

        assert rows == []
        assert error_msg == REGISTRATIONS_UNAVAILABLE_MESSAGE
        assert "Failed to load registrations" in caplog.text


class TestToCsv:
    """Test CSV serialization."""

    def test_header_and_rows(self, sample_row):
        parsed = list(csv.reader(io.StringIO(to_csv([sample_row]))))

        assert parsed[0] == HEADER
        assert parsed[1] == [
            "3", "Intro, Part 1", "Alice", "x@x.com", "C", "D", "2026-10-05 09:15:00",
        ]

    def test_empty_export_has_header_only(self):
        assert list(csv.reader(io.StringIO(to_csv([])))) == [HEADER]


class TestToTable:
    """Test table projection."""

    def test_keys_follow_header(self, sample_row):
        table = to_table([sample_row])
        assert list(table[0].keys()) == HEADER
        assert table[0]["Event Name"] == "Intro, Part 1"


def test_export_filename():
    assert export_filename(datetime(2026, 10, 5, 9, 15, 0)) == "event_registrations_20261005_091500.csv"
