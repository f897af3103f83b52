"""Data models for queue jobs and newsletter render data."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class JobStatus(str, Enum):
    """Queue job status values."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class DeliveryStatus(str, Enum):
    """Per-subscriber delivery outcome stored in the ledger."""

    SENT = "SENT"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


class CampaignStatus(str, Enum):
    """Aggregate campaign status."""

    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    SENDING = "SENDING"
    SENT = "SENT"
    ERROR = "ERROR"


class CampaignType(str, Enum):
    """Campaign types, used to match subscriber preferences."""

    NEWSLETTER = "NEWSLETTER"
    EVENT_DIGEST = "EVENT_DIGEST"
    PLACE_UPDATE = "PLACE_UPDATE"
    PROMOTIONAL = "PROMOTIONAL"
    ANNOUNCEMENT = "ANNOUNCEMENT"


TERMINAL_JOB_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED)
OPEN_JOB_STATUSES = (JobStatus.PENDING, JobStatus.PROCESSING)


class QueueJob:
    """Represents one queued delivery of a campaign to a subscriber."""

    def __init__(
        self,
        id: UUID,
        campaign_id: str,
        subscriber_id: str,
        status: JobStatus,
        scheduled_at: datetime,
        priority: int = 0,
        attempts: int = 0,
        max_attempts: int = 3,
        processed_at: Optional[datetime] = None,
        error: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.campaign_id = campaign_id
        self.subscriber_id = subscriber_id
        self.status = JobStatus(status) if isinstance(status, str) else status
        self.scheduled_at = scheduled_at
        self.priority = priority
        self.attempts = attempts
        self.max_attempts = max_attempts
        self.processed_at = processed_at
        self.error = error
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_JOB_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        """Convert job to dictionary for JSON serialization."""
        return {
            "id": str(self.id),
            "campaign_id": self.campaign_id,
            "subscriber_id": self.subscriber_id,
            "status": self.status.value,
            "priority": self.priority,
            "attempts": self.attempts,
            "max_attempts": self.max_attempts,
            "scheduled_at": self.scheduled_at.isoformat() if self.scheduled_at else None,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
            "error": self.error,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return (
            f"QueueJob(id={self.id}, campaign_id={self.campaign_id}, "
            f"subscriber_id={self.subscriber_id}, status={self.status.value}, "
            f"attempts={self.attempts}/{self.max_attempts})"
        )


class Attachment(BaseModel):
    """File attached to a campaign."""

    original_name: str
    file_path: str
    file_size: int = 0
    file_type: str = "application/octet-stream"


class SubscriberPreferences(BaseModel):
    """Content categories a subscriber opted into."""

    events: bool = True
    places: bool = True
    offers: bool = True
    news: bool = True


class Subscriber(BaseModel):
    """Newsletter subscriber as needed for rendering and targeting."""

    id: str
    email: str
    first_name: Optional[str] = None
    unsubscribe_token: str
    is_active: bool = True
    is_verified: bool = True
    preferences: Optional[SubscriberPreferences] = None

    def accepts(self, campaign_type: str) -> bool:
        """Whether this subscriber wants campaigns of the given type."""
        if self.preferences is None:
            return True
        if campaign_type == CampaignType.EVENT_DIGEST.value:
            return self.preferences.events
        if campaign_type == CampaignType.PLACE_UPDATE.value:
            return self.preferences.places
        if campaign_type == CampaignType.PROMOTIONAL.value:
            return self.preferences.offers
        return self.preferences.news


class Campaign(BaseModel):
    """Newsletter campaign with its content selection."""

    id: str
    title: str
    subject: str
    content: str = ""
    type: str = CampaignType.NEWSLETTER.value
    status: CampaignStatus = CampaignStatus.DRAFT
    included_events: List[str] = Field(default_factory=list)
    included_places: List[str] = Field(default_factory=list)
    included_posts: List[str] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    total_recipients: int = 0
    total_sent: int = 0
    total_delivered: int = 0
    sent_at: Optional[datetime] = None


class SelectedContent(BaseModel):
    """Directory content referenced by a campaign, resolved by id lists."""

    events: List[Dict[str, Any]] = Field(default_factory=list)
    places: List[Dict[str, Any]] = Field(default_factory=list)
    posts: List[Dict[str, Any]] = Field(default_factory=list)


class EmailAttachment(BaseModel):
    """Attachment as handed to the email transport."""

    filename: str
    path: str
    content_type: str = "application/octet-stream"


class OutboundEmail(BaseModel):
    """A fully rendered message ready for delivery."""

    to: str
    subject: str
    html: str
    text: Optional[str] = None
    attachments: List[EmailAttachment] = Field(default_factory=list)


class SendResult(BaseModel):
    """Outcome reported by an email transport."""

    success: bool
    error: Optional[str] = None
    message_id: Optional[str] = None
    development: bool = False
