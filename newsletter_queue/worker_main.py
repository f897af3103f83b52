"""CLI entrypoint and programmatic interface for the queue worker."""

import argparse
import asyncio
import json
import logging
import os
import signal
import sys
from typing import Optional

import asyncpg

from newsletter_queue.config import NewsletterQueueConfig
from newsletter_queue.service import NewsletterService


def setup_logging():
    """Setup logging configuration."""
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def create_db_pool(config: NewsletterQueueConfig):
    """Create database connection pool."""
    return await asyncpg.create_pool(config.db_dsn, min_size=2, max_size=10)


async def run_worker(
    service: NewsletterService,
    logger: logging.Logger,
    shutdown_event: asyncio.Event,
    poll_interval_seconds: float = 60.0,
) -> None:
    """
    Run the queue worker until ``shutdown_event`` is set.

    Each cycle processes everything that is ready, then waits
    ``poll_interval_seconds`` so that jobs rescheduled with backoff are
    picked up once they become due.

    Example:
        ```python
        config = NewsletterQueueConfig.from_env()
        pool = await asyncpg.create_pool(config.db_dsn)
        service = NewsletterService(config, pool)
        await run_worker(service, logging.getLogger("worker"), asyncio.Event())
        ```
    """
    service.worker.shutdown_event = shutdown_event
    logger.info(f"Starting newsletter worker (poll interval {poll_interval_seconds}s)")

    while not shutdown_event.is_set():
        await service.worker.run()
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=poll_interval_seconds)
        except asyncio.TimeoutError:
            pass

    logger.info("Shutdown signal received, exiting worker loop")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Newsletter Queue Worker")
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=60.0,
        help="Seconds between two processing cycles (default: 60)",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--once",
        action="store_true",
        help="Process ready jobs once, then exit",
    )
    group.add_argument(
        "--status",
        action="store_true",
        help="Print the number of jobs per status and exit",
    )
    group.add_argument(
        "--fix-stuck",
        action="store_true",
        help="Reconcile campaigns left in SENDING and exit",
    )
    group.add_argument(
        "--clear-completed",
        type=int,
        metavar="DAYS",
        help="Delete completed jobs older than DAYS days and exit",
    )
    return parser


async def run_command(
    args: argparse.Namespace,
    service: NewsletterService,
    logger: logging.Logger,
    shutdown_event: Optional[asyncio.Event] = None,
) -> None:
    """Dispatch the parsed CLI arguments to the service."""
    if args.status:
        print(json.dumps(await service.get_queue_status(), sort_keys=True))
    elif args.fix_stuck:
        updated = await service.fix_stuck_campaigns()
        print(json.dumps({k: v.value for k, v in updated.items()}, sort_keys=True))
    elif args.clear_completed is not None:
        removed = await service.clear_completed_jobs(args.clear_completed)
        print(json.dumps({"removed": removed}))
    elif args.once:
        await service.worker.run()
    else:
        await run_worker(
            service,
            logger,
            shutdown_event or asyncio.Event(),
            poll_interval_seconds=args.poll_interval,
        )


def main(argv=None):
    """Main entrypoint for worker."""
    setup_logging()
    logger = logging.getLogger(__name__)

    args = build_parser().parse_args(argv)

    try:
        config = NewsletterQueueConfig.from_env()
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        sys.exit(1)

    shutdown_event = asyncio.Event()

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        shutdown_event.set()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    async def run():
        """Async main function."""
        db_pool = None
        service = None
        try:
            logger.info("Creating database connection pool...")
            db_pool = await create_db_pool(config)
            service = NewsletterService(config, db_pool, logger)
            await run_command(args, service, logger, shutdown_event)
        except Exception as e:
            logger.error(f"Fatal error in worker: {e}", exc_info=True)
            sys.exit(1)
        finally:
            if service:
                await service.close()
            if db_pool:
                logger.info("Closing database connection pool...")
                await db_pool.close()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")


if __name__ == "__main__":
    main()
