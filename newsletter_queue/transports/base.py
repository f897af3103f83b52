"""Transport interface and MIME message construction."""

import asyncio
import mimetypes
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import make_msgid
from pathlib import Path

from newsletter_queue.models import OutboundEmail, SendResult
from newsletter_queue.rendering import html_to_text


class EmailTransport(ABC):
    """
    Delivers one rendered email.

    Implementations report failures through ``SendResult(success=False)``
    rather than raising, so a delivery problem is always a value the worker
    can record.
    """

    @abstractmethod
    async def send(self, message: OutboundEmail) -> SendResult:
        pass

    async def close(self) -> None:
        """Release transport resources, if any."""
        return None


def _read_attachment(path: str) -> bytes:
    return Path(path).read_bytes()


async def build_mime_message(message: OutboundEmail, sender: str) -> EmailMessage:
    """Build a multipart message with a text fallback and file attachments."""
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = message.to
    msg["Subject"] = message.subject
    msg["Message-ID"] = make_msgid()
    msg.set_content(message.text or html_to_text(message.html))
    msg.add_alternative(message.html, subtype="html")

    for attachment in message.attachments:
        content = await asyncio.to_thread(_read_attachment, attachment.path)
        content_type = attachment.content_type
        if not content_type or "/" not in content_type:
            content_type = (
                mimetypes.guess_type(attachment.filename)[0] or "application/octet-stream"
            )
        maintype, subtype = content_type.split("/", 1)
        msg.add_attachment(
            content, maintype=maintype, subtype=subtype, filename=attachment.filename
        )

    return msg
