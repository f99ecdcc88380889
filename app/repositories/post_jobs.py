"""Repository for scheduled post job queue operations.

Every mutation is a single conditional UPDATE so concurrent dispatcher runs
cannot double-publish a job: ``claim`` only moves rows that are still
``pending``, and the completion operations only move rows in ``processing``.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence
from uuid import UUID

import structlog

from app.jobs.backoff import DEFAULT_CAP_SECONDS, DEFAULT_JITTER_MS, backoff_delay
from app.jobs.models import PostJob
from app.jobs.types import JobStatus

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class PostJobRepository:
    """Repository for post_jobs queue operations."""

    def __init__(
        self,
        pool,
        backoff_cap_seconds: int = DEFAULT_CAP_SECONDS,
        backoff_jitter_ms: int = DEFAULT_JITTER_MS,
        default_max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self._pool = pool
        self._default_max_attempts = default_max_attempts
        self._backoff_cap_seconds = backoff_cap_seconds
        self._backoff_jitter_ms = backoff_jitter_ms

    def _calculate_backoff(self, attempts: int) -> timedelta:
        """Retry delay: min(cap, 2^attempts) seconds + jitter."""
        return backoff_delay(
            attempts,
            cap_seconds=self._backoff_cap_seconds,
            jitter_ms=self._backoff_jitter_ms,
        )

    async def create(
        self,
        user_id: UUID,
        platform: str,
        content: str,
        run_at: Optional[datetime] = None,
        media_urls: Optional[Sequence[str]] = None,
        post_id: Optional[UUID] = None,
        idempotency_key: Optional[str] = None,
        max_attempts: Optional[int] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> PostJob:
        """Enqueue a publish job. A repeated idempotency_key returns the existing job."""
        if max_attempts is None:
            max_attempts = self._default_max_attempts
        query = """
            INSERT INTO post_jobs (user_id, post_id, platform, content, media_urls,
                                   run_at, idempotency_key, max_attempts, payload)
            VALUES ($1, $2, $3, $4, $5, COALESCE($6, now()), $7, $8, $9::jsonb)
            ON CONFLICT (idempotency_key) WHERE idempotency_key IS NOT NULL
            DO UPDATE SET id = post_jobs.id  -- no-op, just return existing
            RETURNING *
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                query,
                user_id,
                post_id,
                platform.strip().lower(),
                content,
                list(media_urls) if media_urls else None,
                run_at,
                idempotency_key,
                max_attempts,
                json.dumps(payload or {}),
            )
        job = self._row_to_job(row)
        logger.info(
            "job_created",
            job_id=str(job.id),
            user_id=str(user_id),
            platform=job.platform,
            run_at=job.run_at.isoformat(),
        )
        return job

    async def fetch_due_jobs(self, limit: int) -> list[PostJob]:
        """Pending jobs with run_at <= now(), oldest-due first. Read only."""
        query = """
            SELECT * FROM post_jobs
            WHERE status = 'pending' AND run_at <= now()
            ORDER BY run_at ASC
            LIMIT $1
        """
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, limit)
        return [self._row_to_job(row) for row in rows]

    async def claim(self, job_id: UUID) -> bool:
        """Atomically move a job from pending to processing.

        Returns False when another invocation already moved it.
        """
        query = """
            UPDATE post_jobs SET
                status = 'processing',
                claimed_at = now(),
                updated_at = now()
            WHERE id = $1 AND status = 'pending'
            RETURNING id
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, job_id)

        if row:
            logger.debug("job_claimed", job_id=str(job_id))
            return True
        logger.debug("job_claim_lost", job_id=str(job_id))
        return False

    async def mark_succeeded(self, job_id: UUID) -> bool:
        """Mark a processing job as succeeded and clear its error.

        Returns False (no change) if the job is not in processing, which makes
        repeated calls a no-op.
        """
        query = """
            UPDATE post_jobs SET
                status = 'succeeded',
                error = NULL,
                claimed_at = NULL,
                updated_at = now()
            WHERE id = $1 AND status = 'processing'
            RETURNING id
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, job_id)

        if row:
            logger.info("job_succeeded", job_id=str(job_id))
            return True
        return False

    async def mark_failed_or_retry(
        self, job: PostJob, reason: str
    ) -> Optional[JobStatus]:
        """Record a failed attempt.

        Increments attempts. When the new count reaches max_attempts the job
        becomes failed and keeps its run_at; otherwise it goes back to pending
        with run_at pushed out by the backoff delay. Both branches are one
        UPDATE evaluated against the stored attempt count.

        Returns the resulting status, or None if the job was not in processing.
        """
        next_attempts = job.attempts + 1
        next_run_at = datetime.now(timezone.utc) + self._calculate_backoff(
            next_attempts
        )
        query = """
            UPDATE post_jobs SET
                attempts = attempts + 1,
                status = CASE
                    WHEN attempts + 1 >= max_attempts THEN 'failed'
                    ELSE 'pending'
                END,
                run_at = CASE
                    WHEN attempts + 1 >= max_attempts THEN run_at
                    ELSE $2
                END,
                error = $3,
                claimed_at = NULL,
                updated_at = now()
            WHERE id = $1 AND status = 'processing'
            RETURNING status, attempts, max_attempts, run_at
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, job.id, next_run_at, reason)

        if not row:
            logger.warning("job_not_processing", job_id=str(job.id))
            return None

        status = JobStatus(row["status"])
        if status == JobStatus.FAILED:
            logger.warning(
                "job_failed",
                job_id=str(job.id),
                attempts=row["attempts"],
                max_attempts=row["max_attempts"],
                error=reason,
            )
        else:
            logger.info(
                "job_retry_scheduled",
                job_id=str(job.id),
                attempts=row["attempts"],
                run_at=row["run_at"].isoformat(),
                error=reason,
            )
        return status

    async def cancel(self, job_id: UUID) -> bool:
        """Cancel a job that has not started. Returns whether it changed."""
        query = """
            UPDATE post_jobs SET
                status = 'cancelled',
                updated_at = now()
            WHERE id = $1 AND status = 'pending'
            RETURNING id
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, job_id)
        if row:
            logger.info("job_cancelled", job_id=str(job_id))
        return row is not None

    async def get(self, job_id: UUID) -> Optional[PostJob]:
        """Get a job by ID."""
        query = "SELECT * FROM post_jobs WHERE id = $1"
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, job_id)
        return self._row_to_job(row) if row else None

    async def reap_stale(self, stale_minutes: int = 30) -> int:
        """Return jobs stuck in processing (crashed dispatcher) to pending.

        Does not consume an attempt.
        """
        query = """
            UPDATE post_jobs SET
                status = 'pending',
                claimed_at = NULL,
                updated_at = now()
            WHERE status = 'processing'
              AND claimed_at < now() - make_interval(mins => $1)
            RETURNING id
        """
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, stale_minutes)
        count = len(rows)
        if count > 0:
            logger.warning("stale_jobs_reaped", count=count)
        return count

    def _row_to_job(self, row) -> PostJob:
        """Convert a database row to a PostJob model."""
        payload = row["payload"]
        if isinstance(payload, str):
            payload = json.loads(payload)
        return PostJob(
            id=row["id"],
            user_id=row["user_id"],
            post_id=row["post_id"],
            platform=row["platform"],
            content=row["content"] or "",
            media_urls=list(row["media_urls"] or []),
            payload=payload or {},
            status=JobStatus(row["status"]),
            run_at=row["run_at"],
            idempotency_key=row["idempotency_key"],
            attempts=row["attempts"],
            max_attempts=row["max_attempts"],
            error=row["error"],
            claimed_at=row["claimed_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
