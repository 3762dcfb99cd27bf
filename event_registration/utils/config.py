"""Application settings loaded from the environment and an optional .env file."""
import os
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Optional

from event_registration.utils.exceptions import ConfigurationError

DEFAULT_DB_PATH = "data/event_registration.db"
DEFAULT_SMTP_TIMEOUT = 10.0

_ENV_LOADED = False
_ENV_LOCK = Lock()


@dataclass(frozen=True)
class Settings:
    """Runtime configuration."""

    db_path: str = DEFAULT_DB_PATH
    admin_notification_email: Optional[str] = None
    site_mail: Optional[str] = None
    notify_on_registration: bool = False
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: Optional[str] = None
    smtp_timeout: float = DEFAULT_SMTP_TIMEOUT
    log_level: str = "INFO"


def load_env_file(env_path: Path = Path(".env")) -> None:
    """Load settings from .env file if present, without overriding the environment."""
    global _ENV_LOADED

    if _ENV_LOADED:
        return

    with _ENV_LOCK:
        if _ENV_LOADED:
            return

        if env_path.exists():
            for raw_line in env_path.read_text(encoding="utf-8").splitlines():
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue

                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip('"\'')

                if key and key not in os.environ:
                    os.environ[key] = value

        _ENV_LOADED = True


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def _flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def load_settings() -> Settings:
    """
    Build Settings from environment variables.

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If SMTP_PORT is not an integer or SMTP_TIMEOUT
            is not a positive number
    """
    load_env_file()

    raw_port = os.getenv("SMTP_PORT", "25").strip()
    try:
        smtp_port = int(raw_port)
    except ValueError as e:
        raise ConfigurationError(f"SMTP_PORT must be an integer: {raw_port}") from e

    raw_timeout = os.getenv("SMTP_TIMEOUT", str(DEFAULT_SMTP_TIMEOUT)).strip()
    try:
        smtp_timeout = float(raw_timeout)
    except ValueError as e:
        raise ConfigurationError(f"SMTP_TIMEOUT must be a number: {raw_timeout}") from e
    if smtp_timeout <= 0:
        raise ConfigurationError(f"SMTP_TIMEOUT must be positive: {raw_timeout}")

    return Settings(
        db_path=os.getenv("EVENT_REGISTRATION_DB", DEFAULT_DB_PATH),
        admin_notification_email=_optional("ADMIN_NOTIFICATION_EMAIL"),
        site_mail=_optional("SITE_MAIL"),
        notify_on_registration=_flag("NOTIFY_ON_REGISTRATION"),
        smtp_host=os.getenv("SMTP_HOST", "localhost"),
        smtp_port=smtp_port,
        smtp_username=_optional("SMTP_USERNAME"),
        smtp_password=_optional("SMTP_PASSWORD"),
        smtp_from=_optional("SMTP_FROM"),
        smtp_timeout=smtp_timeout,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
