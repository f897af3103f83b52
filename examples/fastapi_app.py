"""FastAPI app exposing the newsletter queue API."""

import logging
from contextlib import asynccontextmanager

import asyncpg
from fastapi import FastAPI

from newsletter_queue import NewsletterQueueConfig, NewsletterService
from newsletter_queue.fastapi_router import create_newsletter_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

config = NewsletterQueueConfig.from_env()
service: NewsletterService = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the pool and service, and heal campaigns left in SENDING."""
    global service

    pool = await asyncpg.create_pool(config.db_dsn, min_size=2, max_size=10)
    service = NewsletterService(config, pool, logger)
    await service.fix_stuck_campaigns()
    # Pick up jobs left pending by a previous process
    service.worker.wake()
    logger.info("Newsletter queue ready")

    yield

    await service.close()
    await pool.close()


app = FastAPI(title="Newsletter Queue", lifespan=lifespan)
app.include_router(
    create_newsletter_router(lambda: service, auth_token=config.enqueue_auth_token)
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
