"""Worker logic for the newsletter queue."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional

from newsletter_queue.config import NewsletterQueueConfig
from newsletter_queue.errors import DataNotFoundError, DeliveryError
from newsletter_queue.models import (
    Campaign,
    DeliveryStatus,
    OutboundEmail,
    QueueJob,
    SelectedContent,
    Subscriber,
)
from newsletter_queue.reconciler import reconcile_campaign_statuses
from newsletter_queue.rendering import NewsletterRenderer, html_to_text
from newsletter_queue.store import QueueStore
from newsletter_queue.transports import EmailTransport


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def calculate_backoff(attempts: int) -> timedelta:
    """
    Delay before the next attempt of a job that has failed ``attempts`` times.

    2^attempts minutes: 2, 4, 8 ... for attempts 1, 2, 3.
    """
    return timedelta(minutes=2 ** attempts)


class QueueWorker:
    """
    Single in-process consumer of the newsletter queue.

    At most one ``run()`` is in flight per worker; the run token is an
    ``asyncio.Lock`` that a second caller checks without waiting. ``wake()``
    starts a run in the background, or flags the running one to fetch again
    before it goes idle.
    """

    def __init__(
        self,
        config: NewsletterQueueConfig,
        store: QueueStore,
        transport: EmailTransport,
        renderer: Optional[NewsletterRenderer] = None,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        shutdown_event: Optional[asyncio.Event] = None,
    ):
        self.config = config
        self.store = store
        self.transport = transport
        self.renderer = renderer or NewsletterRenderer(
            config.base_url, public_root=config.public_root
        )
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock
        self.sleep = sleep
        self.shutdown_event = shutdown_event

        self._run_token = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._wake_requested = False

    @property
    def is_running(self) -> bool:
        return self._run_token.locked()

    def wake(self) -> Optional[asyncio.Task]:
        """
        Make sure queued jobs get processed without waiting for them.

        Returns the background task running the loop, or None when a run
        already in flight was asked to look for new jobs.
        """
        if self.is_running:
            self._wake_requested = True
            return None
        if self._task is not None and not self._task.done():
            return self._task
        self._task = asyncio.create_task(self.run())
        return self._task

    async def wait_idle(self) -> None:
        """Wait for the background run started by ``wake()``, if any."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def run(self) -> bool:
        """
        Process ready jobs batch by batch until none are left.

        Returns:
            False if another run was already in flight, True otherwise.
        """
        if self._run_token.locked():
            self.logger.info("Queue processing already in progress")
            return False

        async with self._run_token:
            self.logger.info("Starting queue processing")
            try:
                # Heal campaigns left in SENDING by an interrupted run
                await reconcile_campaign_statuses(self.store, self.logger)

                while not self._shutdown_requested():
                    self._wake_requested = False
                    jobs = await self.store.fetch_ready_jobs(
                        self.config.batch_size, self.clock()
                    )

                    if not jobs:
                        if self._wake_requested:
                            continue
                        self.logger.info("No pending jobs, stopping queue processing")
                        break

                    await self.process_batch(jobs)
                    await reconcile_campaign_statuses(self.store, self.logger)
                    await self.sleep(self.config.batch_delay_seconds)

            except Exception as e:
                self.logger.error(f"Error in queue processing: {str(e)}", exc_info=True)
            finally:
                self.logger.info("Queue processing finished")

        return True

    async def process_batch(self, jobs: List[QueueJob]) -> None:
        """Process jobs in order, pausing between two consecutive sends."""
        self.logger.info(f"Processing batch of {len(jobs)} emails")
        for index, job in enumerate(jobs):
            await self.process_job(job)
            if index < len(jobs) - 1:
                await self.sleep(self.config.processing_delay_seconds)

    async def process_job(self, job: QueueJob) -> None:
        """
        Deliver one job and record the outcome.

        Never raises: a failed attempt is rescheduled with backoff or, once
        ``max_attempts`` is reached, marked FAILED in the queue and the
        delivery ledger.
        """
        try:
            if not await self.store.mark_job_processing(job.id, self.clock()):
                self.logger.info(f"Job {job.id} is no longer pending, skipping")
                return

            campaign, subscriber = await asyncio.gather(
                self.store.find_campaign(job.campaign_id),
                self.store.find_subscriber(job.subscriber_id),
            )
            if campaign is None or subscriber is None:
                raise DataNotFoundError(job.campaign_id, job.subscriber_id)

            content = await self.store.find_selected_content(campaign)
            message = self.build_message(campaign, subscriber, content)

            result = await asyncio.wait_for(
                self.transport.send(message),
                timeout=self.config.send_timeout_seconds,
            )
            if not result.success:
                raise DeliveryError(result.error or "Unknown send error")

            await self.store.mark_job_completed(job.id)
            await self.store.upsert_delivery_record(
                job.campaign_id,
                job.subscriber_id,
                DeliveryStatus.SENT if result.development else DeliveryStatus.DELIVERED,
                sent_at=self.clock(),
            )
            self.logger.info(f"Job {job.id} delivered to {subscriber.email}")

        except asyncio.TimeoutError:
            error = f"Send timed out after {self.config.send_timeout_seconds}s"
            self.logger.error(f"Job {job.id} failed: {error}")
            await self._record_failure(job, error)
        except Exception as e:
            self.logger.error(f"Job {job.id} failed: {str(e)}", exc_info=True)
            await self._record_failure(job, str(e) or type(e).__name__)

    def build_message(
        self, campaign: Campaign, subscriber: Subscriber, content: SelectedContent
    ) -> OutboundEmail:
        html = self.renderer.render(campaign, subscriber, content)
        return OutboundEmail(
            to=subscriber.email,
            subject=campaign.subject,
            html=html,
            text=html_to_text(html),
            attachments=self.renderer.email_attachments(campaign.attachments),
        )

    async def _record_failure(self, job: QueueJob, error: str) -> None:
        attempts = min(job.attempts + 1, job.max_attempts)

        try:
            if attempts < job.max_attempts:
                backoff = calculate_backoff(attempts)
                await self.store.mark_job_retry(
                    job.id, attempts, error, self.clock() + backoff
                )
                self.logger.info(
                    f"Job {job.id} will retry (attempt {attempts}/{job.max_attempts}) "
                    f"in {int(backoff.total_seconds() // 60)} minutes"
                )
                return

            await self.store.mark_job_failed(job.id, attempts, error)
            await self.store.upsert_delivery_record(
                job.campaign_id,
                job.subscriber_id,
                DeliveryStatus.FAILED,
                error_message=error,
            )
            self.logger.error(f"Job {job.id} failed after {attempts} attempts: {error}")

        except Exception as e:
            # The job stays PROCESSING; reconciliation keeps the campaign in SENDING.
            self.logger.error(
                f"Could not record failure of job {job.id}: {str(e)}", exc_info=True
            )

    def _shutdown_requested(self) -> bool:
        return self.shutdown_event is not None and self.shutdown_event.is_set()
