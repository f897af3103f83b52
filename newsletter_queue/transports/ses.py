"""Amazon SES transport backed by boto3."""

import asyncio
import logging
from typing import Any, Optional

import boto3

from newsletter_queue.models import OutboundEmail, SendResult
from newsletter_queue.transports.base import EmailTransport, build_mime_message


class SesTransport(EmailTransport):
    """Send emails as raw MIME through the SES ``SendRawEmail`` API."""

    def __init__(
        self,
        sender: str,
        region_name: Optional[str] = None,
        ses_client: Any = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.sender = sender
        self.ses_client = ses_client or boto3.client("ses", region_name=region_name)
        self.logger = logger or logging.getLogger(__name__)

    async def send(self, message: OutboundEmail) -> SendResult:
        try:
            mime = await build_mime_message(message, self.sender)
            # boto3 is blocking
            response = await asyncio.to_thread(
                self.ses_client.send_raw_email,
                Source=self.sender,
                Destinations=[message.to],
                RawMessage={"Data": mime.as_bytes()},
            )
            message_id = response.get("MessageId")
            self.logger.info(f"Email sent to {message.to} via SES (message_id={message_id})")
            return SendResult(success=True, message_id=message_id)
        except Exception as e:
            self.logger.error(f"SES error sending to {message.to}: {e}")
            return SendResult(success=False, error=str(e) or type(e).__name__)
