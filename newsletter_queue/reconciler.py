"""Campaign status reconciliation from queue job counts."""

import asyncio
import logging
from typing import Dict, Optional

from newsletter_queue.models import CampaignStatus, JobStatus, OPEN_JOB_STATUSES
from newsletter_queue.store import QueueStore


def resolve_campaign_status(
    total_count: int, pending_count: int, failed_count: int
) -> Optional[CampaignStatus]:
    """
    Final status for a campaign, or None while it is still in flight.

    A campaign without any job stays in flight: nothing was ever queued for
    it, so there is nothing to conclude from.
    """
    if pending_count > 0 or total_count == 0:
        return None
    if failed_count == total_count:
        return CampaignStatus.ERROR
    return CampaignStatus.SENT


async def reconcile_campaign_statuses(
    store: QueueStore, logger: Optional[logging.Logger] = None
) -> Dict[str, CampaignStatus]:
    """
    Move finished SENDING campaigns to SENT or ERROR.

    Status is derived from persisted job rows only, so running this again
    after a crash or with no job changes yields the same result. Errors are
    logged and not raised; the next batch reconciles again.

    Returns:
        Mapping of campaign id to the status it was moved to.
    """
    logger = logger or logging.getLogger(__name__)
    updated: Dict[str, CampaignStatus] = {}

    try:
        campaigns = await store.list_campaigns_by_status(CampaignStatus.SENDING.value)

        for campaign in campaigns:
            pending_count, total_count, completed_count, failed_count = (
                await asyncio.gather(
                    store.count_jobs(campaign.id, OPEN_JOB_STATUSES),
                    store.count_jobs(campaign.id),
                    store.count_jobs(campaign.id, [JobStatus.COMPLETED]),
                    store.count_jobs(campaign.id, [JobStatus.FAILED]),
                )
            )

            new_status = resolve_campaign_status(total_count, pending_count, failed_count)
            if new_status is None:
                continue

            await store.update_campaign(
                campaign.id,
                status=new_status,
                total_sent=completed_count,
                total_delivered=completed_count,
            )
            updated[campaign.id] = new_status

            logger.info(
                f"Campaign {campaign.id} ({campaign.title!r}) is now {new_status.value}: "
                f"{completed_count} sent, {failed_count} failed"
            )

    except Exception as e:
        logger.error(f"Error reconciling campaign statuses: {str(e)}", exc_info=True)

    return updated
