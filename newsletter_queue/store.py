"""Database store layer for the newsletter queue."""

import asyncio
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID, uuid4

import asyncpg

from newsletter_queue.models import (
    Attachment,
    Campaign,
    DeliveryStatus,
    JobStatus,
    OPEN_JOB_STATUSES,
    QueueJob,
    SelectedContent,
    Subscriber,
    SubscriberPreferences,
)

EVENT_COLUMNS = (
    "id, title, slug, summary, start_date, end_date, is_all_day, "
    "location_name, location_city, cover_image"
)
PLACE_COLUMNS = "id, name, slug, summary, street, city, phone, website, cover_image"
POST_COLUMNS = "id, title, slug, excerpt, cover_image, published_at"

CAMPAIGN_PATCH_COLUMNS = frozenset(
    {"status", "total_sent", "total_delivered", "total_recipients", "sent_at"}
)


def _affected_rows(result: str) -> int:
    """Extract the row count from a command tag such as ``DELETE 5``."""
    return int(result.split()[-1]) if result else 0


class QueueStore:
    """Database layer for queue jobs, the delivery ledger and campaign lookups."""

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    async def create_jobs(
        self,
        campaign_id: str,
        subscriber_ids: List[str],
        scheduled_at: datetime,
        max_attempts: int,
        priority: int = 0,
    ) -> List[UUID]:
        """Insert one pending job per subscriber inside a single transaction."""
        rows = [
            (
                uuid4(),
                campaign_id,
                subscriber_id,
                JobStatus.PENDING.value,
                priority,
                0,
                max_attempts,
                scheduled_at,
            )
            for subscriber_id in subscriber_ids
        ]

        async with self.db_pool.acquire() as conn:
            async with conn.transaction():
                await conn.executemany(
                    """
                    INSERT INTO newsletter_queue (
                        id, campaign_id, subscriber_id, status, priority,
                        attempts, max_attempts, scheduled_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    """,
                    rows,
                )

        return [row[0] for row in rows]

    async def fetch_ready_jobs(self, limit: int, now: datetime) -> List[QueueJob]:
        """Pending jobs due at ``now``, highest priority then oldest schedule first."""
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT * FROM newsletter_queue
                WHERE status = $1
                  AND scheduled_at <= $2
                ORDER BY priority DESC, scheduled_at ASC
                LIMIT $3
                """,
                JobStatus.PENDING.value,
                now,
                limit,
            )

        return [self._row_to_job(row) for row in rows]

    async def get_job(self, job_id: UUID) -> Optional[QueueJob]:
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM newsletter_queue WHERE id = $1", job_id
            )
        return self._row_to_job(row) if row else None

    async def mark_job_processing(self, job_id: UUID, now: datetime) -> bool:
        """
        Claim a pending job.

        Returns:
            False if the job was no longer PENDING, e.g. already handled by
            another worker.
        """
        async with self.db_pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE newsletter_queue
                SET status = $1, processed_at = $2, updated_at = now()
                WHERE id = $3 AND status = $4
                """,
                JobStatus.PROCESSING.value,
                now,
                job_id,
                JobStatus.PENDING.value,
            )
        return _affected_rows(result) == 1

    async def mark_job_completed(self, job_id: UUID) -> None:
        async with self.db_pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE newsletter_queue
                SET status = $1, error = NULL, updated_at = now()
                WHERE id = $2 AND status = ANY($3::text[])
                """,
                JobStatus.COMPLETED.value,
                job_id,
                [s.value for s in OPEN_JOB_STATUSES],
            )

    async def mark_job_retry(
        self, job_id: UUID, attempts: int, error: str, scheduled_at: datetime
    ) -> None:
        """Put a failed job back to pending with a later schedule."""
        async with self.db_pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE newsletter_queue
                SET status = $1,
                    attempts = $2,
                    error = $3,
                    scheduled_at = $4,
                    updated_at = now()
                WHERE id = $5 AND status = ANY($6::text[])
                """,
                JobStatus.PENDING.value,
                attempts,
                error,
                scheduled_at,
                job_id,
                [s.value for s in OPEN_JOB_STATUSES],
            )

    async def mark_job_failed(self, job_id: UUID, attempts: int, error: str) -> None:
        """Mark a job as permanently failed."""
        async with self.db_pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE newsletter_queue
                SET status = $1,
                    attempts = $2,
                    error = $3,
                    updated_at = now()
                WHERE id = $4 AND status = ANY($5::text[])
                """,
                JobStatus.FAILED.value,
                attempts,
                error,
                job_id,
                [s.value for s in OPEN_JOB_STATUSES],
            )

    async def upsert_delivery_record(
        self,
        campaign_id: str,
        subscriber_id: str,
        status: DeliveryStatus,
        sent_at: Optional[datetime] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """
        Record the outcome for a campaign/subscriber pair.

        A failure keeps the previous ``sent_at``; a success clears any
        earlier error message.
        """
        async with self.db_pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO newsletter_campaign_sent (
                    campaign_id, subscriber_id, sent_at, status, error_message
                ) VALUES ($1, $2, $3, $4, $5)
                ON CONFLICT (campaign_id, subscriber_id) DO UPDATE
                SET sent_at = COALESCE(EXCLUDED.sent_at, newsletter_campaign_sent.sent_at),
                    status = EXCLUDED.status,
                    error_message = EXCLUDED.error_message
                """,
                campaign_id,
                subscriber_id,
                sent_at,
                status.value,
                error_message,
            )

    async def count_jobs(
        self, campaign_id: str, statuses: Optional[Iterable[JobStatus]] = None
    ) -> int:
        """Count jobs of a campaign, optionally restricted to some statuses."""
        query = "SELECT COUNT(*) FROM newsletter_queue WHERE campaign_id = $1"
        params: List[Any] = [campaign_id]
        if statuses is not None:
            query += " AND status = ANY($2::text[])"
            params.append([JobStatus(s).value for s in statuses])

        async with self.db_pool.acquire() as conn:
            count = await conn.fetchval(query, *params)
        return count

    async def count_jobs_by_status(self) -> Dict[str, int]:
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT status, COUNT(*) AS count FROM newsletter_queue GROUP BY status"
            )
        return {row["status"]: row["count"] for row in rows}

    async def delete_jobs(self, status: JobStatus, older_than: datetime) -> int:
        """Delete jobs in ``status`` scheduled strictly before ``older_than``."""
        async with self.db_pool.acquire() as conn:
            result = await conn.execute(
                """
                DELETE FROM newsletter_queue
                WHERE status = $1 AND scheduled_at < $2
                """,
                JobStatus(status).value,
                older_than,
            )
        return _affected_rows(result)

    async def find_campaign(self, campaign_id: str) -> Optional[Campaign]:
        """Load a campaign with its attachments."""
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM newsletter_campaigns WHERE id = $1", campaign_id
            )
            if not row:
                return None
            attachment_rows = await conn.fetch(
                """
                SELECT original_name, file_path, file_size, file_type
                FROM newsletter_attachments
                WHERE campaign_id = $1
                ORDER BY original_name
                """,
                campaign_id,
            )

        return self._row_to_campaign(
            row, [Attachment(**dict(a)) for a in attachment_rows]
        )

    async def find_subscriber(self, subscriber_id: str) -> Optional[Subscriber]:
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT s.*, p.events, p.places, p.offers, p.news,
                       p.subscriber_id IS NOT NULL AS has_preferences
                FROM newsletter_subscribers s
                LEFT JOIN newsletter_preferences p ON p.subscriber_id = s.id
                WHERE s.id = $1
                """,
                subscriber_id,
            )
        return self._row_to_subscriber(row) if row else None

    async def list_eligible_subscribers(self) -> List[Subscriber]:
        """Active and verified subscribers with their preferences."""
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT s.*, p.events, p.places, p.offers, p.news,
                       p.subscriber_id IS NOT NULL AS has_preferences
                FROM newsletter_subscribers s
                LEFT JOIN newsletter_preferences p ON p.subscriber_id = s.id
                WHERE s.is_active AND s.is_verified
                ORDER BY s.id
                """
            )
        return [self._row_to_subscriber(row) for row in rows]

    async def find_selected_content(self, campaign: Campaign) -> SelectedContent:
        """Resolve the campaign's event, place and post id lists."""
        events, places, posts = await asyncio.gather(
            self._fetch_by_ids("events", EVENT_COLUMNS, campaign.included_events),
            self._fetch_by_ids("places", PLACE_COLUMNS, campaign.included_places),
            self._fetch_by_ids("posts", POST_COLUMNS, campaign.included_posts),
        )
        return SelectedContent(events=events, places=places, posts=posts)

    async def list_campaigns_by_status(self, status: str) -> List[Campaign]:
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM newsletter_campaigns WHERE status = $1 ORDER BY id",
                status,
            )
        return [self._row_to_campaign(row) for row in rows]

    async def update_campaign(self, campaign_id: str, **patch: Any) -> None:
        """Update status and counter columns of a campaign."""
        unknown = set(patch) - CAMPAIGN_PATCH_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update campaign columns: {sorted(unknown)}")
        if not patch:
            return

        assignments = []
        params: List[Any] = []
        for idx, (column, value) in enumerate(sorted(patch.items()), start=1):
            assignments.append(f"{column} = ${idx}")
            params.append(value.value if hasattr(value, "value") else value)
        params.append(campaign_id)

        async with self.db_pool.acquire() as conn:
            await conn.execute(
                f"UPDATE newsletter_campaigns SET {', '.join(assignments)} "
                f"WHERE id = ${len(params)}",
                *params,
            )

    async def delivery_stats(self, campaign_id: str) -> Dict[str, int]:
        """Ledger row counts per delivery status for one campaign."""
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT status, COUNT(*) AS count
                FROM newsletter_campaign_sent
                WHERE campaign_id = $1
                GROUP BY status
                """,
                campaign_id,
            )
        return {row["status"]: row["count"] for row in rows}

    async def _fetch_by_ids(
        self, table: str, columns: str, ids: List[str]
    ) -> List[Dict[str, Any]]:
        if not ids:
            return []
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {columns} FROM {table} WHERE id = ANY($1::text[])",
                list(ids),
            )
        return [dict(row) for row in rows]

    def _row_to_job(self, row: asyncpg.Record) -> QueueJob:
        """Convert a database row to a QueueJob model."""
        return QueueJob(
            id=row["id"],
            campaign_id=row["campaign_id"],
            subscriber_id=row["subscriber_id"],
            status=JobStatus(row["status"]),
            scheduled_at=row["scheduled_at"],
            priority=row["priority"],
            attempts=row["attempts"],
            max_attempts=row["max_attempts"],
            processed_at=row["processed_at"],
            error=row["error"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _row_to_campaign(
        self, row: asyncpg.Record, attachments: Optional[List[Attachment]] = None
    ) -> Campaign:
        return Campaign(
            id=row["id"],
            title=row["title"],
            subject=row["subject"],
            content=row["content"],
            type=row["type"],
            status=row["status"],
            included_events=list(row["included_events"] or []),
            included_places=list(row["included_places"] or []),
            included_posts=list(row["included_posts"] or []),
            attachments=attachments or [],
            total_recipients=row["total_recipients"],
            total_sent=row["total_sent"],
            total_delivered=row["total_delivered"],
            sent_at=row["sent_at"],
        )

    def _row_to_subscriber(self, row: asyncpg.Record) -> Subscriber:
        preferences = None
        if row["has_preferences"]:
            preferences = SubscriberPreferences(
                events=row["events"],
                places=row["places"],
                offers=row["offers"],
                news=row["news"],
            )
        return Subscriber(
            id=row["id"],
            email=row["email"],
            first_name=row["first_name"],
            unsubscribe_token=row["unsubscribe_token"],
            is_active=row["is_active"],
            is_verified=row["is_verified"],
            preferences=preferences,
        )
