"""Integration tests for the registration flow against a real SQLite file."""
import csv
import importlib.util
import io
import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from event_registration.models.registration import RegistrationRequest
from event_registration.services.event_service import get_event_options
from event_registration.services.export_service import load_registrations, to_csv
from event_registration.services.notification_service import (
    MailDispatcher,
    NotificationService,
    build_notification_hook,
)
from event_registration.services.registration_service import (
    FIELD_EMAIL,
    MSG_DUPLICATE,
    MSG_EVENT_FULL,
    MSG_INVALID_EVENT,
    RegistrationWorkflow,
)
from event_registration.services.storage_service import open_database

SCRIPTS_DIR = Path(__file__).resolve().parents[2] / "scripts"


def request_for(event_id, email, name="Alice"):
    return RegistrationRequest(
        event_id=event_id, full_name=name, email=email, college="C", department="D"
    )


def entry_count(db, event_id):
    return db.execute(
        "SELECT COUNT(*) FROM registration_entry WHERE event_id = ?", (event_id,)
    ).fetchone()[0]


def submit_concurrently(db_path, now, requests):
    """Submit each request from its own thread and connection at the same moment."""
    barrier = threading.Barrier(len(requests))
    results = [None] * len(requests)

    def worker(index, request):
        with open_database(db_path) as database:
            workflow = RegistrationWorkflow(database, clock=lambda: now)
            barrier.wait()
            results[index] = workflow.submit(request)

    threads = [
        threading.Thread(target=worker, args=(i, request))
        for i, request in enumerate(requests)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    return results


class TestRegistrationScenario:
    """Single event with one seat."""

    def test_capacity_and_duplicate_scenario(self, db, add_event, now):
        event_id = add_event(start=now - 100, end=now + 100, max_attendees=1)
        workflow = RegistrationWorkflow(db, clock=lambda: now)

        # A: first registration succeeds
        result_a = workflow.register(request_for(event_id, "x@x.com"))
        assert result_a.success is True
        assert entry_count(db, event_id) == 1

        # B: same email is a duplicate
        result_b = workflow.register(request_for(event_id, "x@x.com"))
        assert result_b.success is False
        assert result_b.errors[FIELD_EMAIL] == MSG_DUPLICATE

        # C: new email, but the only seat is taken
        result_c = workflow.register(request_for(event_id, "y@y.com", name="Bob"))
        assert result_c.success is False
        assert result_c.message == MSG_EVENT_FULL
        assert entry_count(db, event_id) == 1

    def test_closed_event_hidden_and_rejected(self, db, add_event, now):
        closed_id = add_event(name="Closed", start=now - 200, end=now - 1)
        inactive_id = add_event(name="Inactive", status=0)
        open_id = add_event(name="Open")
        workflow = RegistrationWorkflow(db, clock=lambda: now)

        options, _ = get_event_options(workflow.events, now)
        assert [event_id for event_id, _ in options] == [open_id]

        for event_id in (closed_id, inactive_id):
            assert workflow.validate(request_for(event_id, "x@x.com"))
            assert workflow.submit(request_for(event_id, "x@x.com")).message == MSG_INVALID_EVENT
            assert entry_count(db, event_id) == 0

    def test_registrations_listed_and_exported(self, db, add_event, now):
        event_id = add_event(name="Intro")
        clock = iter([now, now + 5])
        workflow = RegistrationWorkflow(db, clock=lambda: next(clock))
        workflow.submit(request_for(event_id, "first@example.com"))
        workflow.submit(request_for(event_id, "second@example.com"))

        rows, _ = load_registrations(workflow.registrations)
        exported = list(csv.reader(io.StringIO(to_csv(rows))))

        assert [row[3] for row in exported[1:]] == ["second@example.com", "first@example.com"]
        assert {row[1] for row in exported[1:]} == {"Intro"}

    def test_notifications_after_commit(self, db, add_event, now):
        event_id = add_event(name="Intro", category="")
        dispatcher = MagicMock(spec=MailDispatcher)
        dispatcher.mail.return_value = True
        service = NotificationService(dispatcher, site_mail="site@example.com", clock=lambda: now)
        workflow = RegistrationWorkflow(
            db, clock=lambda: now, post_commit_hooks=[build_notification_hook(service)]
        )

        assert workflow.register(request_for(event_id, "x@x.com")).success is True

        recipients = [call[0][1] for call in dispatcher.mail.call_args_list]
        assert recipients == ["x@x.com", "site@example.com"]
        assert dispatcher.mail.call_args_list[0][0][3]["event_category"] == "N/A"

    def test_notification_outage_does_not_undo_registration(self, db, add_event, now):
        event_id = add_event()
        dispatcher = MagicMock(spec=MailDispatcher)
        dispatcher.mail.side_effect = OSError("connection refused")
        service = NotificationService(dispatcher, admin_email="admin@example.com")
        workflow = RegistrationWorkflow(
            db, clock=lambda: now, post_commit_hooks=[build_notification_hook(service)]
        )

        result = workflow.register(request_for(event_id, "x@x.com"))

        assert result.success is True
        assert entry_count(db, event_id) == 1


class TestConcurrentSubmissions:
    """Racing submissions are resolved by the database."""

    def test_last_seat_goes_to_one_submission(self, db_path, db, add_event, now):
        event_id = add_event(max_attendees=1)

        results = submit_concurrently(
            db_path, now,
            [request_for(event_id, "x@x.com"), request_for(event_id, "y@y.com", name="Bob")],
        )

        assert sorted(r.success for r in results) == [False, True]
        assert [r.message for r in results if not r.success] == [MSG_EVENT_FULL]
        assert entry_count(db, event_id) == 1

    def test_same_email_registered_once(self, db_path, db, add_event, now):
        event_id = add_event()

        results = submit_concurrently(
            db_path, now,
            [request_for(event_id, "x@x.com"), request_for(event_id, "X@x.com")],
        )

        assert sorted(r.success for r in results) == [False, True]
        assert [r.message for r in results if not r.success] == [MSG_DUPLICATE]
        assert entry_count(db, event_id) == 1


class TestExportScript:
    """Command line export endpoint."""

    @pytest.fixture
    def export_script(self):
        spec = importlib.util.spec_from_file_location(
            "export_registrations", SCRIPTS_DIR / "export_registrations.py"
        )
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    def test_writes_csv_file(self, export_script, db_path, db, add_event, now, tmp_path):
        event_id = add_event(name="Intro")
        RegistrationWorkflow(db, clock=lambda: now).submit(request_for(event_id, "x@x.com"))
        output = tmp_path / "out.csv"

        exit_code = export_script.main(["--db", db_path, "--output", str(output)])

        assert exit_code == 0
        lines = list(csv.reader(io.StringIO(output.read_text(encoding="utf-8"))))
        assert lines[0][0] == "ID"
        assert lines[1][1:4] == ["Intro", "Alice", "x@x.com"]

    def test_writes_to_stdout(self, export_script, db_path, db, capsys):
        assert export_script.main(["--db", db_path, "--output", "-"]) == 0
        assert capsys.readouterr().out.startswith("ID,Event Name,Full Name")
