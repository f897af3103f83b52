"""High-level service layer for the newsletter queue."""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

import asyncpg

from newsletter_queue.config import NewsletterQueueConfig
from newsletter_queue.errors import (
    CampaignNotFoundError,
    CampaignStateError,
    EnqueueError,
    NoRecipientsError,
)
from newsletter_queue.models import CampaignStatus, JobStatus
from newsletter_queue.reconciler import reconcile_campaign_statuses
from newsletter_queue.store import QueueStore
from newsletter_queue.transports import EmailTransport, create_transport
from newsletter_queue.worker import QueueWorker

SENDABLE_CAMPAIGN_STATUSES = (CampaignStatus.DRAFT, CampaignStatus.SCHEDULED)


class NewsletterService:
    """High-level API for queueing and delivering newsletter campaigns."""

    def __init__(
        self,
        config: NewsletterQueueConfig,
        db_pool: Optional[asyncpg.Pool] = None,
        logger: Optional[logging.Logger] = None,
        store: Optional[QueueStore] = None,
        transport: Optional[EmailTransport] = None,
        worker: Optional[QueueWorker] = None,
    ):
        if store is None and db_pool is None:
            raise ValueError("Either db_pool or store is required")

        self.config = config
        self.store = store or QueueStore(db_pool)
        self.logger = logger or logging.getLogger(__name__)
        self.transport = transport or create_transport(config)
        self.worker = worker or QueueWorker(
            config, self.store, self.transport, logger=self.logger
        )

    async def enqueue(
        self,
        campaign_id: str,
        subscriber_ids: List[str],
        priority: int = 0,
    ) -> Dict[str, int]:
        """
        Queue one delivery job per subscriber and wake the worker.

        All jobs of one call are inserted in a single transaction. Delivery
        happens in the background; this returns as soon as the jobs exist.

        Args:
            campaign_id: Campaign to deliver
            subscriber_ids: Recipients of the campaign
            priority: Job priority (higher = processed first)

        Returns:
            ``{"queued": <number of jobs created>}``

        Raises:
            EnqueueError: If the insert failed; no job was created.
        """
        if not subscriber_ids:
            return {"queued": 0}

        try:
            job_ids = await self.store.create_jobs(
                campaign_id,
                list(subscriber_ids),
                scheduled_at=self.worker.clock(),
                max_attempts=self.config.max_attempts,
                priority=priority,
            )
        except Exception as e:
            self.logger.error(f"Failed to enqueue campaign {campaign_id}: {str(e)}")
            raise EnqueueError(campaign_id, f"Failed to enqueue jobs: {str(e)}") from e

        self.logger.info(f"Queued {len(job_ids)} emails for campaign {campaign_id}")
        self.worker.wake()
        return {"queued": len(job_ids)}

    async def send_campaign(self, campaign_id: str, priority: int = 0) -> Dict[str, Any]:
        """
        Start delivering a draft or scheduled campaign to its audience.

        The audience is every active, verified subscriber whose preferences
        accept the campaign type. The campaign is marked SENDING before its
        jobs are queued; if queueing fails it is marked ERROR.

        Raises:
            CampaignNotFoundError: Unknown campaign
            CampaignStateError: Campaign is not DRAFT or SCHEDULED
            NoRecipientsError: No subscriber accepts this campaign
            EnqueueError: Jobs could not be created
        """
        campaign = await self.store.find_campaign(campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(campaign_id)

        if CampaignStatus(campaign.status) not in SENDABLE_CAMPAIGN_STATUSES:
            raise CampaignStateError(campaign_id, CampaignStatus(campaign.status).value)

        subscribers = await self.store.list_eligible_subscribers()
        recipients = [s for s in subscribers if s.accepts(campaign.type)]
        if not recipients:
            raise NoRecipientsError(campaign_id)

        await self.store.update_campaign(
            campaign_id,
            status=CampaignStatus.SENDING,
            sent_at=self.worker.clock(),
            total_recipients=len(recipients),
        )

        try:
            result = await self.enqueue(
                campaign_id, [s.id for s in recipients], priority=priority
            )
        except EnqueueError:
            await self.store.update_campaign(campaign_id, status=CampaignStatus.ERROR)
            raise

        return {
            "campaign_id": campaign_id,
            "status": CampaignStatus.SENDING.value,
            "total_recipients": len(recipients),
            "queued": result["queued"],
            "batch_size": self.config.batch_size,
            "queue_status": await self.get_queue_status(),
        }

    async def process_queue(self) -> bool:
        """
        Start the worker if it is idle.

        Returns:
            True if a run was started, False if one was already in flight.
        """
        return self.worker.wake() is not None

    async def get_queue_status(self) -> Dict[str, int]:
        """Number of jobs per status, keyed by lowercase status name."""
        counts = await self.store.count_jobs_by_status()
        return {status.lower(): count for status, count in counts.items()}

    async def clear_completed_jobs(self, older_than_days: Optional[int] = None) -> int:
        """
        Delete COMPLETED jobs scheduled more than ``older_than_days`` ago.

        Pending, processing and failed jobs are never deleted.
        """
        if older_than_days is None:
            older_than_days = self.config.retention_days
        if older_than_days < 0:
            raise ValueError("older_than_days must not be negative")

        cutoff = self.worker.clock() - timedelta(days=older_than_days)
        count = await self.store.delete_jobs(JobStatus.COMPLETED, cutoff)
        self.logger.info(f"Removed {count} completed jobs from the queue")
        return count

    async def fix_stuck_campaigns(self) -> Dict[str, CampaignStatus]:
        """Reconcile campaigns left in SENDING, e.g. after a restart."""
        self.logger.info("Checking for stuck campaigns")
        updated = await reconcile_campaign_statuses(self.store, self.logger)
        self.logger.info(f"Campaign check finished, {len(updated)} campaigns updated")
        return updated

    async def get_campaign_stats(self, campaign_id: str) -> Dict[str, Any]:
        """Delivery ledger counts and stored totals for one campaign."""
        campaign = await self.store.find_campaign(campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(campaign_id)

        ledger = await self.store.delivery_stats(campaign_id)
        return {
            "campaign_id": campaign_id,
            "status": CampaignStatus(campaign.status).value,
            "total_recipients": campaign.total_recipients,
            "total_sent": campaign.total_sent,
            "total_delivered": campaign.total_delivered,
            "ledger": {status.lower(): count for status, count in ledger.items()},
            "failed": ledger.get("FAILED", 0),
        }

    async def close(self) -> None:
        await self.transport.close()
