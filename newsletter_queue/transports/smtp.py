"""SMTP transport backed by aiosmtplib."""

import logging
import uuid
from typing import Optional

import aiosmtplib

from newsletter_queue.models import OutboundEmail, SendResult
from newsletter_queue.transports.base import EmailTransport, build_mime_message


class SmtpTransport(EmailTransport):
    """
    Send emails through an SMTP relay.

    Without a configured ``host`` the transport runs in development mode:
    the message is built and logged but not sent, and the result carries
    ``development=True``.

    TLS handling follows the port: implicit TLS on 465 when ``secure`` is
    set, STARTTLS on any other port when ``secure`` is set, plain otherwise.
    """

    def __init__(
        self,
        sender: str,
        host: Optional[str] = None,
        port: int = 587,
        user: Optional[str] = None,
        password: Optional[str] = None,
        secure: bool = False,
        timeout: float = 30.0,
        logger: Optional[logging.Logger] = None,
    ):
        self.sender = sender
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.secure = secure
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    @property
    def development(self) -> bool:
        return not self.host

    async def send(self, message: OutboundEmail) -> SendResult:
        try:
            mime = await build_mime_message(message, self.sender)

            if self.development:
                preview = message.html[:200]
                self.logger.info(
                    f"Simulated email to {message.to} (subject={message.subject!r}): "
                    f"{preview}..."
                )
                return SendResult(
                    success=True,
                    message_id=f"dev-{uuid.uuid4().hex}",
                    development=True,
                )

            use_tls = self.secure and self.port == 465
            start_tls = self.secure and self.port != 465
            await aiosmtplib.send(
                mime,
                hostname=self.host,
                port=self.port,
                username=self.user,
                password=self.password,
                use_tls=use_tls,
                start_tls=start_tls,
                timeout=self.timeout,
            )
            self.logger.info(f"Email sent to {message.to} (message_id={mime['Message-ID']})")
            return SendResult(success=True, message_id=mime["Message-ID"])

        except Exception as e:
            self.logger.error(f"SMTP error sending to {message.to}: {e}")
            return SendResult(success=False, error=str(e) or type(e).__name__)
