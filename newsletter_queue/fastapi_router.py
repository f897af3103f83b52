"""FastAPI router for the newsletter queue HTTP API."""

import logging
from typing import Callable, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, Field

from newsletter_queue.errors import (
    CampaignNotFoundError,
    CampaignStateError,
    EnqueueError,
    NoRecipientsError,
)
from newsletter_queue.service import NewsletterService


logger = logging.getLogger(__name__)


class EnqueueRequest(BaseModel):
    """Request model for queueing deliveries of a campaign."""

    campaign_id: str
    subscriber_ids: List[str] = Field(min_length=1)
    priority: int = 0


class EnqueueResponse(BaseModel):
    """Response model for queueing deliveries."""

    queued: int


class SendCampaignResponse(BaseModel):
    """Response model for sending a campaign."""

    campaign_id: str
    status: str
    total_recipients: int
    queued: int
    batch_size: int
    queue_status: Dict[str, int]


class ProcessResponse(BaseModel):
    started: bool


class FixStuckResponse(BaseModel):
    updated: Dict[str, str]


class ClearCompletedResponse(BaseModel):
    removed: int


class CampaignStatsResponse(BaseModel):
    campaign_id: str
    status: str
    total_recipients: int
    total_sent: int
    total_delivered: int
    ledger: Dict[str, int]
    failed: int


def create_newsletter_router(
    service_factory: Callable[[], NewsletterService],
    auth_token: Optional[str] = None,
) -> APIRouter:
    """
    Create FastAPI router for the newsletter queue API.

    Args:
        service_factory: Callable that returns a NewsletterService instance
        auth_token: Optional shared token required on every endpoint

    Returns:
        APIRouter instance
    """

    async def get_service() -> NewsletterService:
        """Dependency to get NewsletterService instance."""
        return service_factory()

    async def verify_auth_token(
        x_newsletter_queue_token: Optional[str] = Header(
            None, alias="X-Newsletter-Queue-Token"
        )
    ) -> None:
        """Verify auth token if configured."""
        if auth_token:
            if not x_newsletter_queue_token or x_newsletter_queue_token != auth_token:
                raise HTTPException(
                    status_code=401, detail="Invalid or missing auth token"
                )

    router = APIRouter(prefix="/newsletter", dependencies=[Depends(verify_auth_token)])

    @router.post("/campaigns/{campaign_id}/send", response_model=SendCampaignResponse)
    async def send_campaign(
        campaign_id: str,
        priority: int = Query(0),
        service: NewsletterService = Depends(get_service),
    ):
        """Queue a draft or scheduled campaign for all eligible subscribers."""
        try:
            result = await service.send_campaign(campaign_id, priority=priority)
            return SendCampaignResponse(**result)
        except CampaignNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except (CampaignStateError, NoRecipientsError) as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except Exception as e:
            logger.exception("Error sending campaign")
            raise HTTPException(status_code=500, detail="Internal server error") from e

    @router.get("/campaigns/{campaign_id}/stats", response_model=CampaignStatsResponse)
    async def campaign_stats(
        campaign_id: str,
        service: NewsletterService = Depends(get_service),
    ):
        """Delivery counts for one campaign."""
        try:
            return CampaignStatsResponse(**await service.get_campaign_stats(campaign_id))
        except CampaignNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except Exception as e:
            logger.exception("Error getting campaign stats")
            raise HTTPException(status_code=500, detail="Internal server error") from e

    @router.post("/queue/enqueue", response_model=EnqueueResponse)
    async def enqueue(
        request: EnqueueRequest,
        service: NewsletterService = Depends(get_service),
    ):
        """Queue deliveries of a campaign to explicit subscribers."""
        try:
            result = await service.enqueue(
                request.campaign_id, request.subscriber_ids, priority=request.priority
            )
            return EnqueueResponse(**result)
        except EnqueueError as e:
            logger.error(f"Enqueue failed: {e}")
            raise HTTPException(status_code=503, detail=str(e)) from e
        except Exception as e:
            logger.exception("Error enqueueing jobs")
            raise HTTPException(status_code=500, detail="Internal server error") from e

    @router.get("/queue/status", response_model=Dict[str, int])
    async def queue_status(service: NewsletterService = Depends(get_service)):
        """Number of jobs per status."""
        return await service.get_queue_status()

    @router.post("/queue/process", response_model=ProcessResponse)
    async def process_queue(service: NewsletterService = Depends(get_service)):
        """Start the worker if it is idle."""
        return ProcessResponse(started=await service.process_queue())

    @router.post("/queue/fix-stuck", response_model=FixStuckResponse)
    async def fix_stuck(service: NewsletterService = Depends(get_service)):
        """Reconcile campaigns left in SENDING."""
        updated = await service.fix_stuck_campaigns()
        return FixStuckResponse(
            updated={campaign_id: status.value for campaign_id, status in updated.items()}
        )

    @router.delete("/queue/completed", response_model=ClearCompletedResponse)
    async def clear_completed(
        older_than_days: Optional[int] = Query(None, ge=0),
        service: NewsletterService = Depends(get_service),
    ):
        """Purge completed jobs older than the retention window (configured default if omitted)."""
        removed = await service.clear_completed_jobs(older_than_days)
        return ClearCompletedResponse(removed=removed)

    return router
