"""Unit tests for models module."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from newsletter_queue.models import (
    Campaign,
    CampaignStatus,
    CampaignType,
    JobStatus,
    QueueJob,
    Subscriber,
    SubscriberPreferences,
)


def test_job_status_enum():
    """Test JobStatus enum values."""
    assert JobStatus.PENDING.value == "PENDING"
    assert JobStatus.PROCESSING.value == "PROCESSING"
    assert JobStatus.COMPLETED.value == "COMPLETED"
    assert JobStatus.FAILED.value == "FAILED"


def test_queue_job_creation():
    """Test creating a QueueJob from database values."""
    job_id = uuid4()
    now = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    job = QueueJob(
        id=job_id,
        campaign_id="C1",
        subscriber_id="s1",
        status="PENDING",
        scheduled_at=now,
    )

    assert job.status == JobStatus.PENDING
    assert job.priority == 0
    assert job.attempts == 0
    assert job.max_attempts == 3
    assert job.is_terminal is False


def test_queue_job_terminal_statuses():
    now = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    for status, terminal in (
        (JobStatus.PROCESSING, False),
        (JobStatus.COMPLETED, True),
        (JobStatus.FAILED, True),
    ):
        job = QueueJob(uuid4(), "C1", "s1", status, now)
        assert job.is_terminal is terminal


def test_queue_job_to_dict():
    """Test converting QueueJob to dictionary."""
    job_id = uuid4()
    now = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    job = QueueJob(
        id=job_id,
        campaign_id="C1",
        subscriber_id="s1",
        status=JobStatus.FAILED,
        scheduled_at=now,
        attempts=3,
        error="550 mailbox unavailable",
    )

    result = job.to_dict()

    assert result["id"] == str(job_id)
    assert result["status"] == "FAILED"
    assert result["attempts"] == 3
    assert result["scheduled_at"] == now.isoformat()
    assert result["processed_at"] is None
    assert result["error"] == "550 mailbox unavailable"


def test_subscriber_without_preferences_accepts_everything():
    subscriber = Subscriber(id="s1", email="s1@example.com", unsubscribe_token="t")

    for campaign_type in CampaignType:
        assert subscriber.accepts(campaign_type.value)


@pytest.mark.parametrize(
    "campaign_type,field",
    [
        (CampaignType.EVENT_DIGEST, "events"),
        (CampaignType.PLACE_UPDATE, "places"),
        (CampaignType.PROMOTIONAL, "offers"),
        (CampaignType.NEWSLETTER, "news"),
        (CampaignType.ANNOUNCEMENT, "news"),
    ],
)
def test_subscriber_preferences_by_campaign_type(campaign_type, field):
    """Test the preference flag consulted for each campaign type."""
    subscriber = Subscriber(
        id="s1",
        email="s1@example.com",
        unsubscribe_token="t",
        preferences=SubscriberPreferences(**{field: False}),
    )

    assert subscriber.accepts(campaign_type.value) is False


def test_campaign_defaults():
    campaign = Campaign(id="C1", title="March", subject="News")

    assert campaign.status == CampaignStatus.DRAFT
    assert campaign.type == "NEWSLETTER"
    assert campaign.included_events == []
    assert campaign.attachments == []
    assert campaign.total_sent == 0
