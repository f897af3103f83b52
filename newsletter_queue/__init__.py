"""Durable, retrying newsletter delivery queue."""

from newsletter_queue.config import NewsletterQueueConfig
from newsletter_queue.ddl import (
    CAMPAIGN_SENT_TABLE_DDL,
    DIRECTORY_TABLES_DDL,
    QUEUE_TABLE_DDL,
)
from newsletter_queue.errors import (
    AuthTokenError,
    CampaignNotFoundError,
    CampaignStateError,
    DataNotFoundError,
    DeliveryError,
    EnqueueError,
    NewsletterQueueError,
    NoRecipientsError,
    RemoteHttpError,
)
from newsletter_queue.http_client import NewsletterQueueHttpClient
from newsletter_queue.models import (
    CampaignStatus,
    DeliveryStatus,
    JobStatus,
    OutboundEmail,
    QueueJob,
    SendResult,
)
from newsletter_queue.reconciler import reconcile_campaign_statuses
from newsletter_queue.service import NewsletterService
from newsletter_queue.store import QueueStore
from newsletter_queue.worker import QueueWorker

__version__ = "0.1.0"

__all__ = [
    "NewsletterQueueConfig",
    "QUEUE_TABLE_DDL",
    "CAMPAIGN_SENT_TABLE_DDL",
    "DIRECTORY_TABLES_DDL",
    "AuthTokenError",
    "CampaignNotFoundError",
    "CampaignStateError",
    "DataNotFoundError",
    "DeliveryError",
    "EnqueueError",
    "NewsletterQueueError",
    "NoRecipientsError",
    "RemoteHttpError",
    "NewsletterQueueHttpClient",
    "CampaignStatus",
    "DeliveryStatus",
    "JobStatus",
    "OutboundEmail",
    "QueueJob",
    "SendResult",
    "reconcile_campaign_statuses",
    "NewsletterService",
    "QueueStore",
    "QueueWorker",
]
