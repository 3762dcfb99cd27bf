"""Custom exception classes."""


class RegistrationError(Exception):
    """Base class for registration business errors."""
    pass


class EventNotAvailableError(RegistrationError):
    """Raised when the selected event is missing, inactive or closed."""
    pass


class EventFullError(RegistrationError):
    """Raised when an event has reached max_attendees."""
    pass


class DuplicateRegistrationError(RegistrationError):
    """Raised when (event_id, email) is already registered."""
    pass


class StorageError(Exception):
    """Raised when the database cannot be read or written."""
    pass


class ConfigurationError(Exception):
    """Raised when a setting has an invalid value."""
    pass
