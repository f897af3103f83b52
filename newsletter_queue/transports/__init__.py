"""Email transports used by the queue worker."""

from newsletter_queue.config import NewsletterQueueConfig
from newsletter_queue.transports.base import EmailTransport, build_mime_message
from newsletter_queue.transports.ses import SesTransport
from newsletter_queue.transports.smtp import SmtpTransport


def create_transport(config: NewsletterQueueConfig) -> EmailTransport:
    """Build the transport selected by ``config.email_transport``."""
    if config.email_transport == "ses":
        return SesTransport(sender=config.email_from, region_name=config.ses_region)
    return SmtpTransport(
        sender=config.email_from,
        host=config.smtp_host,
        port=config.smtp_port,
        user=config.smtp_user,
        password=config.smtp_password,
        secure=config.smtp_secure,
    )


__all__ = [
    "EmailTransport",
    "SesTransport",
    "SmtpTransport",
    "build_mime_message",
    "create_transport",
]
