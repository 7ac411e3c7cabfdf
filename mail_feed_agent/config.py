"""Configuration management."""

import os
import re
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

DEFAULT_FEED_URL = "https://mail.google.com/mail/feed/atom"


@dataclass
class FeedConfig:
    """Feed fetch configuration."""
    url: str
    username: str
    password: str
    timeout_seconds: float = 30.0


@dataclass
class SchedulerConfig:
    """Scheduler configuration."""
    poll_interval_seconds: int
    tick_seconds: float


@dataclass
class TwilioConfig:
    """Twilio SMS configuration."""
    account_sid: str
    auth_token: str
    from_number: str
    to_number: str


@dataclass
class SmtpConfig:
    """SMTP configuration for the email sink."""
    host: str
    port: int
    username: str
    password: str
    to_email: str
    from_email: Optional[str] = None  # defaults to username


@dataclass
class WatchConfig:
    """A watch rule as read from the environment."""
    pattern: str
    command: Optional[str] = None  # shell command run on every match


@dataclass
class OutputConfig:
    """Output sink configuration."""
    display_enabled: bool = True
    output_root: Optional[str] = None  # enables the two-file sink
    notification_method: str = "none"  # "none", "sms" or "email"
    twilio: Optional[TwilioConfig] = None
    smtp: Optional[SmtpConfig] = None


@dataclass
class AppConfig:
    """Complete application configuration."""
    feed: FeedConfig
    scheduler: SchedulerConfig
    output: OutputConfig
    watches: List[WatchConfig] = field(default_factory=list)


def _parse_bool_env(key: str, default: bool) -> bool:
    """Parse a true/false environment variable."""
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_number_env(key: str, default: str, cast=int):
    value = os.getenv(key, default)
    try:
        return cast(value)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {value!r}")


def _load_watches() -> List[WatchConfig]:
    """
    Load numbered watch rules: WATCH_PATTERN_1, WATCH_COMMAND_1, WATCH_PATTERN_2, ...

    Stops at the first missing WATCH_PATTERN_<n>.
    """
    watches = []
    rule_num = 1
    while True:
        pattern = os.getenv(f"WATCH_PATTERN_{rule_num}")
        if not pattern:
            break  # No more rules
        try:
            re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(
                f"WATCH_PATTERN_{rule_num} is not a valid regular expression: {e}"
            )
        command = os.getenv(f"WATCH_COMMAND_{rule_num}") or None
        watches.append(WatchConfig(pattern=pattern, command=command))
        rule_num += 1
    return watches


def load_config() -> AppConfig:
    """
    Load configuration from environment variables (and a .env file if present).

    Raises:
        ConfigurationError: If required configuration values are missing or invalid.
    """
    load_dotenv()

    missing = []

    # Feed
    feed_url = os.getenv("FEED_URL", DEFAULT_FEED_URL)
    feed_username = os.getenv("FEED_USERNAME")
    feed_password = os.getenv("FEED_PASSWORD")
    if not feed_username:
        missing.append("FEED_USERNAME")
    if not feed_password:
        missing.append("FEED_PASSWORD")
    feed_timeout = _parse_number_env("FEED_TIMEOUT_SECONDS", "30", float)

    # Scheduler
    poll_interval = _parse_number_env("POLL_INTERVAL_SECONDS", "120")
    tick_seconds = _parse_number_env("TICK_SECONDS", "5", float)
    if poll_interval < 0:
        raise ConfigurationError("POLL_INTERVAL_SECONDS must not be negative")
    if tick_seconds <= 0:
        raise ConfigurationError("TICK_SECONDS must be positive")

    # Outputs
    notification_method = os.getenv("NOTIFICATION_METHOD", "none").strip().lower()
    if notification_method not in ("none", "sms", "email"):
        raise ConfigurationError(
            f"NOTIFICATION_METHOD must be one of none, sms, email; got {notification_method!r}"
        )

    twilio = None
    if notification_method == "sms":
        twilio_values = {
            key: os.getenv(key)
            for key in (
                "TWILIO_ACCOUNT_SID",
                "TWILIO_AUTH_TOKEN",
                "TWILIO_FROM_NUMBER",
                "TWILIO_TO_NUMBER",
            )
        }
        missing.extend(key for key, value in twilio_values.items() if not value)
        twilio = TwilioConfig(
            account_sid=twilio_values["TWILIO_ACCOUNT_SID"],
            auth_token=twilio_values["TWILIO_AUTH_TOKEN"],
            from_number=twilio_values["TWILIO_FROM_NUMBER"],
            to_number=twilio_values["TWILIO_TO_NUMBER"],
        )

    smtp = None
    if notification_method == "email":
        smtp_host = os.getenv("SMTP_HOST")
        smtp_username = os.getenv("SMTP_USERNAME")
        smtp_password = os.getenv("SMTP_PASSWORD")
        to_email = os.getenv("NOTIFICATION_EMAIL")
        for key, value in (
            ("SMTP_HOST", smtp_host),
            ("SMTP_USERNAME", smtp_username),
            ("SMTP_PASSWORD", smtp_password),
            ("NOTIFICATION_EMAIL", to_email),
        ):
            if not value:
                missing.append(key)
        smtp = SmtpConfig(
            host=smtp_host,
            port=_parse_number_env("SMTP_PORT", "587"),
            username=smtp_username,
            # Remove spaces from password (app passwords are often shown grouped)
            password=smtp_password.replace(" ", "") if smtp_password else smtp_password,
            to_email=to_email,
            from_email=os.getenv("SMTP_FROM_EMAIL") or None,
        )

    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    return AppConfig(
        feed=FeedConfig(
            url=feed_url,
            username=feed_username,
            password=feed_password,
            timeout_seconds=feed_timeout,
        ),
        scheduler=SchedulerConfig(
            poll_interval_seconds=poll_interval,
            tick_seconds=tick_seconds,
        ),
        output=OutputConfig(
            display_enabled=_parse_bool_env("DISPLAY_ENABLED", True),
            output_root=os.getenv("OUTPUT_ROOT") or None,
            notification_method=notification_method,
            twilio=twilio,
            smtp=smtp,
        ),
        watches=_load_watches(),
    )
