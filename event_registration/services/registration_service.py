"""Registration store and the registration workflow (validation + submission)."""
import logging
import sqlite3
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from event_registration.models.event import Event
from event_registration.models.registration import (
    RegistrationEntry,
    RegistrationRequest,
    RegistrationRow,
)
from event_registration.services.event_service import EventStore
from event_registration.services.notification_service import (
    NotificationService,
    build_notification_hook,
)
from event_registration.services.storage_service import Database
from event_registration.utils.config import Settings
from event_registration.utils.exceptions import (
    DuplicateRegistrationError,
    EventFullError,
    EventNotAvailableError,
)
from event_registration.utils.validation import (
    is_valid_email,
    parse_event_id,
    validate_full_name,
    validate_required,
)

logger = logging.getLogger(__name__)

FIELD_EVENT = "event_id"
FIELD_FULL_NAME = "full_name"
FIELD_EMAIL = "email"
FIELD_COLLEGE = "college"
FIELD_DEPARTMENT = "department"
FIELD_FORM = "form"

MSG_SELECT_EVENT = "Please select an event."
MSG_EVENT_NOT_AVAILABLE = "The selected event is not available."
MSG_EVENT_NOT_OPEN = "Registration for the selected event is not currently open."
MSG_EMAIL_REQUIRED = "Email is required."
MSG_EMAIL_INVALID = "Please enter a valid email address."
MSG_DUPLICATE = "You have already registered for this event."
MSG_INVALID_EVENT = "Invalid event selected."
MSG_EVENT_FULL = "This event has reached its maximum number of attendees."
MSG_SUCCESS = "Registration successful."
MSG_GENERIC_ERROR = "An unexpected error occurred. Please try again later."

REQUIRED_TEXT_FIELDS: Tuple[Tuple[str, str], ...] = (
    (FIELD_COLLEGE, "College"),
    (FIELD_DEPARTMENT, "Department"),
)

PostCommitHook = Callable[[RegistrationEntry, Event], None]


@dataclass
class RegistrationResult:
    """Outcome of a registration attempt."""

    success: bool
    message: str
    errors: Dict[str, str] = field(default_factory=dict)
    entry: Optional[RegistrationEntry] = None


class RegistrationStore:
    """Queries against the registration_entry table."""

    def __init__(self, db: Database):
        self.db = db

    def exists(self, event_id: int, email: str) -> bool:
        """Check for an entry with this (event_id, email) pair, ignoring email case."""
        row = self.db.execute(
            "SELECT 1 FROM registration_entry WHERE event_id = ? AND email = ? LIMIT 1",
            (event_id, email),
        ).fetchone()
        return row is not None

    def count_for_event(self, event_id: int) -> int:
        row = self.db.execute(
            "SELECT COUNT(*) AS total FROM registration_entry WHERE event_id = ?",
            (event_id,),
        ).fetchone()
        return int(row["total"])

    def insert(self, event_id: int, request: RegistrationRequest, created: int) -> RegistrationEntry:
        """
        Insert a registration entry.

        Args:
            event_id: Event to register for
            request: Normalized registration request
            created: Server-assigned Unix timestamp

        Returns:
            RegistrationEntry with its new id

        Raises:
            sqlite3.IntegrityError: If a storage constraint rejects the row
        """
        cursor = self.db.execute(
            "INSERT INTO registration_entry "
            "(event_id, full_name, email, college, department, created) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                event_id,
                request.full_name,
                request.email,
                request.college,
                request.department,
                created,
            ),
        )
        return RegistrationEntry(
            id=cursor.lastrowid,
            event_id=event_id,
            full_name=request.full_name,
            email=request.email,
            college=request.college,
            department=request.department,
            created=created,
        )

    def list_with_events(self) -> List[RegistrationRow]:
        """
        All registrations joined with their event name.

        Returns:
            List[RegistrationRow] ordered by creation time, newest first
        """
        rows = self.db.execute(
            "SELECT r.id, e.event_name, r.full_name, r.email, r.college, "
            "r.department, r.created "
            "FROM registration_entry r "
            "JOIN event e ON r.event_id = e.id "
            "ORDER BY r.created DESC, r.id DESC"
        ).fetchall()
        return [
            RegistrationRow(
                id=row["id"],
                event_name=row["event_name"],
                full_name=row["full_name"],
                email=row["email"],
                college=row["college"],
                department=row["department"],
                created=row["created"],
            )
            for row in rows
        ]


class RegistrationWorkflow:
    """
    Validates registration requests and persists new entries.

    Collaborators are injected: the database, the email syntax check, the
    clock (returning Unix seconds) and the logger. Hooks registered with
    add_post_commit_hook run after a successful commit; their failures are
    logged and never affect the result.
    """

    def __init__(
        self,
        db: Database,
        email_validator: Callable[[str], bool] = is_valid_email,
        clock: Callable[[], float] = time.time,
        log: Optional[logging.Logger] = None,
        post_commit_hooks: Optional[Iterable[PostCommitHook]] = None,
    ):
        self.db = db
        self.events = EventStore(db)
        self.registrations = RegistrationStore(db)
        self.email_validator = email_validator
        self.clock = clock
        self.logger = log or logger
        self.post_commit_hooks: List[PostCommitHook] = list(post_commit_hooks or [])

    def add_post_commit_hook(self, hook: PostCommitHook) -> None:
        self.post_commit_hooks.append(hook)

    def _now(self) -> int:
        return int(self.clock())

    def validate(self, request: RegistrationRequest) -> Dict[str, str]:
        """
        Validate a registration request.

        Args:
            request: Submitted values (untrimmed)

        Returns:
            Dict of field name -> error message, empty if valid.
            Every field is checked, so several errors can be reported at once.
            Storage failures yield a single FIELD_FORM error.
        """
        request = request.normalized()
        now = self._now()
        errors: Dict[str, str] = {}

        try:
            event_id = self._validate_event(request.event_id, now, errors)

            is_valid, error_msg = validate_full_name(request.full_name)
            if not is_valid:
                errors[FIELD_FULL_NAME] = error_msg

            email_ok = self._validate_email(request.email, errors)

            if event_id is not None and email_ok:
                if self.registrations.exists(event_id, request.email):
                    errors[FIELD_EMAIL] = MSG_DUPLICATE

            for field_name, label in REQUIRED_TEXT_FIELDS:
                is_valid, error_msg = validate_required(getattr(request, field_name), label)
                if not is_valid:
                    errors[field_name] = error_msg

        except sqlite3.Error:
            self.logger.exception(
                "Storage error while validating registration for event %r", request.event_id
            )
            return {FIELD_FORM: MSG_GENERIC_ERROR}
        except Exception:
            self.logger.exception(
                "Unexpected error while validating registration for event %r", request.event_id
            )
            return {FIELD_FORM: MSG_GENERIC_ERROR}

        return errors

    def _validate_event(self, raw_event_id, now: int, errors: Dict[str, str]) -> Optional[int]:
        """Check the selected event; return its id if it exists."""
        if raw_event_id is None or raw_event_id == "":
            errors[FIELD_EVENT] = MSG_SELECT_EVENT
            return None

        event_id = parse_event_id(raw_event_id)
        if event_id is None:
            errors[FIELD_EVENT] = MSG_EVENT_NOT_AVAILABLE
            return None

        event = self.events.get_event(event_id)
        if event is None:
            errors[FIELD_EVENT] = MSG_EVENT_NOT_AVAILABLE
            return None

        if not event.status:
            errors[FIELD_EVENT] = MSG_EVENT_NOT_AVAILABLE
        elif not event.is_registration_open(now):
            errors[FIELD_EVENT] = MSG_EVENT_NOT_OPEN

        return event_id

    def _validate_email(self, email: str, errors: Dict[str, str]) -> bool:
        if not email:
            errors[FIELD_EMAIL] = MSG_EMAIL_REQUIRED
            return False
        if not self.email_validator(email):
            errors[FIELD_EMAIL] = MSG_EMAIL_INVALID
            return False
        return True

    def submit(self, request: RegistrationRequest) -> RegistrationResult:
        """
        Persist a registration.

        Event availability and capacity are checked again inside a write
        transaction; the storage constraints reject duplicates and overflow
        even if two submissions race.

        Args:
            request: Submitted values (untrimmed)

        Returns:
            RegistrationResult
            - success with the new entry and MSG_SUCCESS
            - failure with MSG_INVALID_EVENT if the event is not open
            - failure with MSG_EVENT_FULL if capacity is reached
            - failure with MSG_DUPLICATE if already registered
            - failure with MSG_GENERIC_ERROR on storage or unexpected errors
        """
        request = request.normalized()
        now = self._now()

        event_id = parse_event_id(request.event_id)
        if event_id is None:
            return _failure(MSG_INVALID_EVENT, FIELD_EVENT)

        try:
            with self.db.transaction():
                event = self.events.get_open_event(event_id, now)
                if event is None:
                    raise EventNotAvailableError(f"Event {event_id} is not open at {now}")

                if event.has_capacity_limit():
                    registered = self.registrations.count_for_event(event_id)
                    if registered >= event.max_attendees:
                        raise EventFullError(
                            f"Event {event_id} is full ({registered}/{event.max_attendees})"
                        )

                entry = self.registrations.insert(event_id, request, created=now)

        except EventNotAvailableError as e:
            self.logger.info("Rejected registration: %s", e)
            return _failure(MSG_INVALID_EVENT, FIELD_EVENT)
        except EventFullError as e:
            self.logger.info("Rejected registration: %s", e)
            return _failure(MSG_EVENT_FULL, FIELD_FORM)
        except DuplicateRegistrationError:
            self.logger.info("Rejected duplicate registration of %s for event %s", request.email, event_id)
            return _failure(MSG_DUPLICATE, FIELD_EMAIL)
        except sqlite3.Error:
            self.logger.exception(
                "Storage error while registering %s for event %s", request.email, event_id
            )
            return _failure(MSG_GENERIC_ERROR, FIELD_FORM)
        except Exception:
            self.logger.exception(
                "Unexpected error while registering %s for event %s", request.email, event_id
            )
            return _failure(MSG_GENERIC_ERROR, FIELD_FORM)

        self.logger.info("Registered %s for event %s (entry %s)", entry.email, event_id, entry.id)
        self._run_post_commit_hooks(entry, event)
        return RegistrationResult(success=True, message=MSG_SUCCESS, entry=entry)

    def register(self, request: RegistrationRequest) -> RegistrationResult:
        """Validate, then submit if the request is valid."""
        errors = self.validate(request)
        if errors:
            message = errors.get(FIELD_FORM) or "Please correct the errors below."
            return RegistrationResult(success=False, message=message, errors=errors)
        return self.submit(request)

    def _run_post_commit_hooks(self, entry: RegistrationEntry, event: Event) -> None:
        for hook in self.post_commit_hooks:
            try:
                hook(entry, event)
            except Exception:
                self.logger.exception(
                    "Post-registration hook %r failed for entry %s", hook, entry.id
                )


def _failure(message: str, field_name: str) -> RegistrationResult:
    return RegistrationResult(success=False, message=message, errors={field_name: message})


def create_workflow(db: Database, settings: Settings) -> RegistrationWorkflow:
    """Workflow wired from settings, with email notifications if enabled."""
    workflow = RegistrationWorkflow(db)
    if settings.notify_on_registration:
        service = NotificationService.from_settings(settings)
        workflow.add_post_commit_hook(build_notification_hook(service))
    return workflow
