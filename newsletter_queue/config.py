"""Configuration for the newsletter delivery queue."""

import os
from typing import Optional

DEFAULT_BATCH_SIZE = 10
DEFAULT_PROCESSING_DELAY_MS = 1000
DEFAULT_BATCH_DELAY_MS = 5000
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_SEND_TIMEOUT_SECONDS = 60
DEFAULT_RETENTION_DAYS = 7
DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_EMAIL_FROM = "Newsletter <noreply@localhost>"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"Invalid integer in {name}: {raw!r}") from e


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class NewsletterQueueConfig:
    """
    Configuration object for the newsletter queue.

    Delays are expressed in milliseconds to match the throttling knobs
    operators tune: ``processing_delay_ms`` between two sends of a batch and
    ``batch_delay_ms`` between two batches.
    """

    def __init__(
        self,
        db_dsn: str,
        base_url: str = DEFAULT_BASE_URL,
        batch_size: int = DEFAULT_BATCH_SIZE,
        processing_delay_ms: int = DEFAULT_PROCESSING_DELAY_MS,
        batch_delay_ms: int = DEFAULT_BATCH_DELAY_MS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        send_timeout_seconds: int = DEFAULT_SEND_TIMEOUT_SECONDS,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        email_transport: str = "smtp",
        email_from: str = DEFAULT_EMAIL_FROM,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        smtp_secure: bool = False,
        ses_region: Optional[str] = None,
        public_root: str = "public",
        enqueue_auth_token: Optional[str] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if processing_delay_ms < 0 or batch_delay_ms < 0:
            raise ValueError("delays must not be negative")
        if email_transport not in ("smtp", "ses"):
            raise ValueError(f"Unknown email transport: {email_transport}")

        self.db_dsn = db_dsn
        self.base_url = base_url.rstrip("/")
        self.batch_size = batch_size
        self.processing_delay_ms = processing_delay_ms
        self.batch_delay_ms = batch_delay_ms
        self.max_attempts = max_attempts
        self.send_timeout_seconds = send_timeout_seconds
        self.retention_days = retention_days
        self.email_transport = email_transport
        self.email_from = email_from
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.smtp_secure = smtp_secure
        self.ses_region = ses_region
        self.public_root = public_root
        self.enqueue_auth_token = enqueue_auth_token

    @classmethod
    def from_env(cls) -> "NewsletterQueueConfig":
        """Create config from environment variables."""
        db_dsn = os.getenv("NEWSLETTER_QUEUE_DB_DSN")
        if not db_dsn:
            raise ValueError("NEWSLETTER_QUEUE_DB_DSN environment variable is required")

        return cls(
            db_dsn=db_dsn,
            base_url=os.getenv("NEWSLETTER_QUEUE_BASE_URL", DEFAULT_BASE_URL),
            batch_size=_int_env("NEWSLETTER_QUEUE_BATCH_SIZE", DEFAULT_BATCH_SIZE),
            processing_delay_ms=_int_env(
                "NEWSLETTER_QUEUE_PROCESSING_DELAY_MS", DEFAULT_PROCESSING_DELAY_MS
            ),
            batch_delay_ms=_int_env(
                "NEWSLETTER_QUEUE_BATCH_DELAY_MS", DEFAULT_BATCH_DELAY_MS
            ),
            max_attempts=_int_env("NEWSLETTER_QUEUE_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
            send_timeout_seconds=_int_env(
                "NEWSLETTER_QUEUE_SEND_TIMEOUT_SECONDS", DEFAULT_SEND_TIMEOUT_SECONDS
            ),
            retention_days=_int_env(
                "NEWSLETTER_QUEUE_RETENTION_DAYS", DEFAULT_RETENTION_DAYS
            ),
            email_transport=os.getenv("NEWSLETTER_QUEUE_EMAIL_TRANSPORT", "smtp"),
            email_from=os.getenv("NEWSLETTER_QUEUE_EMAIL_FROM", DEFAULT_EMAIL_FROM),
            smtp_host=os.getenv("NEWSLETTER_QUEUE_SMTP_HOST") or None,
            smtp_port=_int_env("NEWSLETTER_QUEUE_SMTP_PORT", 587),
            smtp_user=os.getenv("NEWSLETTER_QUEUE_SMTP_USER") or None,
            smtp_password=os.getenv("NEWSLETTER_QUEUE_SMTP_PASSWORD") or None,
            smtp_secure=_bool_env("NEWSLETTER_QUEUE_SMTP_SECURE", False),
            ses_region=os.getenv("NEWSLETTER_QUEUE_SES_REGION") or None,
            public_root=os.getenv("NEWSLETTER_QUEUE_PUBLIC_ROOT", "public"),
            enqueue_auth_token=os.getenv("NEWSLETTER_QUEUE_AUTH_TOKEN") or None,
        )

    @property
    def processing_delay_seconds(self) -> float:
        """Pause between two jobs of the same batch."""
        return self.processing_delay_ms / 1000.0

    @property
    def batch_delay_seconds(self) -> float:
        """Pause between two batches."""
        return self.batch_delay_ms / 1000.0
