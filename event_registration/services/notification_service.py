"""Registration emails: confirmation to the registrant and alert to the admin."""
import logging
import smtplib
import ssl
import time
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Any, Callable, Dict, Optional, Tuple

from event_registration.models.event import Event
from event_registration.models.registration import RegistrationEntry
from event_registration.utils.config import Settings
from event_registration.utils.date_utils import format_long_date, format_registration_time

logger = logging.getLogger(__name__)

CONFIRMATION_KEY = "registration_confirmation"
ADMIN_NOTIFICATION_KEY = "admin_notification"
DEFAULT_LANGCODE = "en"

MAIL_TEMPLATES: Dict[str, Tuple[str, str]] = {
    CONFIRMATION_KEY: (
        "Registration confirmed: {event_title}",
        "Hello {recipient_name},\n\n"
        "Thank you for registering for {event_title}.\n\n"
        "Date: {event_date}\n"
        "Location: {event_location}\n"
        "Category: {event_category}\n\n"
        "We look forward to seeing you.\n",
    ),
    ADMIN_NOTIFICATION_KEY: (
        "New registration: {registrant_name} for {event_title}",
        "A new registration has been received.\n\n"
        "Name: {registrant_name}\n"
        "Email: {registrant_email}\n"
        "College: {registrant_college}\n"
        "Department: {registrant_department}\n\n"
        "Event: {event_title}\n"
        "Event date: {event_date}\n"
        "Registered: {registration_time}\n",
    ),
}


class MailDispatcher(ABC):
    """Sends a templated message; the transport is up to the implementation."""

    @abstractmethod
    def mail(self, key: str, to: str, langcode: str, params: Dict[str, Any]) -> bool:
        """
        Send one message.

        Args:
            key: Template key
            to: Recipient address
            langcode: Message language
            params: Template parameters

        Returns:
            True if the message was handed to the transport
        """


def render_mail(key: str, params: Dict[str, Any]) -> Tuple[str, str]:
    """
    Render subject and body for a template key.

    Raises:
        KeyError: If the key or one of its parameters is unknown
    """
    subject_template, body_template = MAIL_TEMPLATES[key]
    return subject_template.format(**params), body_template.format(**params)


class SmtpMailDispatcher(MailDispatcher):
    """MailDispatcher backed by an SMTP server."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def mail(self, key: str, to: str, langcode: str, params: Dict[str, Any]) -> bool:
        try:
            subject, body = render_mail(key, params)
        except KeyError as e:
            logger.error("Cannot render mail %s: missing %s", key, e)
            return False

        sender = self.settings.smtp_from or self.settings.smtp_username
        if not sender:
            logger.warning("SMTP not configured: missing SMTP_FROM or SMTP_USERNAME")
            return False

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = sender
        msg["To"] = to
        msg["Content-Language"] = langcode
        msg.set_content(body)

        host = self.settings.smtp_host
        port = self.settings.smtp_port
        # Socket operations give up after smtp_timeout seconds
        timeout = self.settings.smtp_timeout
        try:
            if port == 465:
                with smtplib.SMTP_SSL(
                    host, port, timeout=timeout, context=ssl.create_default_context()
                ) as s:
                    self._login(s)
                    s.send_message(msg)
            else:
                with smtplib.SMTP(host, port, timeout=timeout) as s:
                    if self.settings.smtp_username:
                        s.starttls(context=ssl.create_default_context())
                    self._login(s)
                    s.send_message(msg)
        except (smtplib.SMTPException, OSError):
            logger.exception("SMTP send of %s to %s failed", key, to)
            return False

        return True

    def _login(self, server: smtplib.SMTP) -> None:
        if self.settings.smtp_username and self.settings.smtp_password:
            server.login(self.settings.smtp_username, self.settings.smtp_password)


class NotificationService:
    """
    Sends registration emails through a MailDispatcher.

    Both send methods are fire-and-forget: failures are logged and reported
    through the boolean return value, never raised.
    """

    def __init__(
        self,
        dispatcher: MailDispatcher,
        admin_email: Optional[str] = None,
        site_mail: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.dispatcher = dispatcher
        self.admin_email = admin_email
        self.site_mail = site_mail
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, dispatcher: Optional[MailDispatcher] = None):
        return cls(
            dispatcher or SmtpMailDispatcher(settings),
            admin_email=settings.admin_notification_email,
            site_mail=settings.site_mail,
        )

    def _dispatch(self, key: str, to: str, params: Dict[str, Any]) -> bool:
        try:
            return bool(self.dispatcher.mail(key, to, DEFAULT_LANGCODE, params))
        except Exception:
            logger.exception("Mail dispatcher raised while sending %s to %s", key, to)
            return False

    def send_confirmation(
        self, recipient_email: str, recipient_name: str, event_details: Dict[str, Any]
    ) -> bool:
        """Send the registration confirmation to the registrant."""
        title = event_details.get("title")
        params = {
            "recipient_name": recipient_name,
            "event_title": title,
            "event_date": format_long_date(event_details.get("event_date")),
            "event_location": event_details.get("location") or "TBD",
            "event_category": event_details.get("category") or "N/A",
        }

        if self._dispatch(CONFIRMATION_KEY, recipient_email, params):
            logger.info(
                "Registration confirmation email sent to %s for event %s.", recipient_email, title
            )
            return True

        logger.error(
            "Failed to send registration confirmation email to %s for event %s.",
            recipient_email,
            title,
        )
        return False

    def resolve_admin_email(self) -> Optional[str]:
        """Configured admin address, else the site contact address."""
        return self.admin_email or self.site_mail or None

    def send_admin_notification(
        self, registrant_info: Dict[str, Any], event_details: Dict[str, Any]
    ) -> bool:
        """Alert the admin about a new registration; skipped if no address is configured."""
        admin_email = self.resolve_admin_email()
        if not admin_email:
            logger.warning("No admin email configured for event registration notifications.")
            return False

        name = registrant_info.get("full_name")
        title = event_details.get("title")
        params = {
            "registrant_name": name,
            "registrant_email": registrant_info.get("email"),
            "registrant_college": registrant_info.get("college"),
            "registrant_department": registrant_info.get("department"),
            "event_title": title,
            "event_date": format_long_date(event_details.get("event_date")),
            "registration_time": format_registration_time(self.clock()),
        }

        if self._dispatch(ADMIN_NOTIFICATION_KEY, admin_email, params):
            logger.info(
                "Admin notification email sent for registration of %s to event %s.", name, title
            )
            return True

        logger.error(
            "Failed to send admin notification email for registration of %s to event %s.",
            name,
            title,
        )
        return False


def build_notification_hook(
    service: NotificationService,
) -> Callable[[RegistrationEntry, Event], None]:
    """Adapt a NotificationService into a RegistrationWorkflow post-commit hook."""

    def notify(entry: RegistrationEntry, event: Event) -> None:
        details = event.to_details()
        service.send_confirmation(entry.email, entry.full_name, details)
        service.send_admin_notification(entry.registrant_info(), details)

    return notify
