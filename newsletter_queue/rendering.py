"""Newsletter HTML rendering."""

import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from jinja2 import Environment, PackageLoader, select_autoescape

from newsletter_queue.models import (
    Attachment,
    Campaign,
    EmailAttachment,
    SelectedContent,
    Subscriber,
)

_TAG_RE = re.compile(r"<[^>]*>")
_HIDDEN_BLOCK_RE = re.compile(r"<(style|script|head)\b.*?</\1>", re.IGNORECASE | re.DOTALL)
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")

_env: Optional[Environment] = None


def format_date(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime("%d/%m/%Y")
    return str(value)


def get_template_env() -> Environment:
    """Shared Jinja2 environment, created on first use."""
    global _env
    if _env is None:
        _env = Environment(
            loader=PackageLoader("newsletter_queue", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
        )
        _env.filters["format_date"] = format_date
    return _env


def html_to_text(html: str) -> str:
    """Plain-text fallback: the HTML with its tags stripped."""
    text = _TAG_RE.sub("", _HIDDEN_BLOCK_RE.sub("", html))
    return _BLANK_LINES_RE.sub("\n\n", text).strip()


def tracking_pixel_url(base_url: str, campaign_id: str, subscriber_id: str) -> str:
    query = urlencode({"c": campaign_id, "s": subscriber_id})
    return f"{base_url}/api/newsletter/track/open?{query}"


def unsubscribe_url(base_url: str, token: str) -> str:
    return f"{base_url}/newsletter/unsubscribe?{urlencode({'token': token})}"


class NewsletterRenderer:
    """Renders the newsletter template for one campaign and subscriber."""

    def __init__(
        self,
        base_url: str,
        public_root: str = "public",
        template_name: str = "newsletter.html",
        env: Optional[Environment] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.public_root = public_root.rstrip("/")
        self.template_name = template_name
        self.env = env or get_template_env()
        self.env.filters.setdefault("format_date", format_date)

    def render(
        self,
        campaign: Campaign,
        subscriber: Subscriber,
        content: SelectedContent,
    ) -> str:
        template = self.env.get_template(self.template_name)
        return template.render(
            **self.context(campaign, subscriber, content),
        )

    def context(
        self,
        campaign: Campaign,
        subscriber: Subscriber,
        content: SelectedContent,
    ) -> Dict[str, Any]:
        return {
            "base_url": self.base_url,
            "campaign_id": campaign.id,
            "subscriber_id": subscriber.id,
            "campaign_title": campaign.title,
            "subject": campaign.subject,
            "content": campaign.content,
            "subscriber_name": subscriber.first_name,
            "events": content.events,
            "places": content.places,
            "posts": content.posts,
            "attachments": self.template_attachments(campaign.attachments),
            "tracking_pixel_url": tracking_pixel_url(
                self.base_url, campaign.id, subscriber.id
            ),
            "unsubscribe_url": unsubscribe_url(
                self.base_url, subscriber.unsubscribe_token
            ),
        }

    def template_attachments(self, attachments: List[Attachment]) -> List[Dict[str, Any]]:
        """Attachments as listed in the email body, linked to their public URL."""
        return [
            {
                "name": a.original_name,
                "size": a.file_size,
                "type": a.file_type,
                "url": f"{self.base_url}{a.file_path}",
            }
            for a in attachments
        ]

    def email_attachments(self, attachments: List[Attachment]) -> List[EmailAttachment]:
        """Attachments as handed to the transport, resolved on disk."""
        return [
            EmailAttachment(
                filename=a.original_name,
                path=f"{self.public_root}{a.file_path}",
                content_type=a.file_type,
            )
            for a in attachments
        ]
