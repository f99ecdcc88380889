"""Publish dispatcher - one bounded processing cycle over due post jobs.

Cycle:
1. fetch up to ``batch_size`` due jobs (oldest run_at first)
2. claim each one; jobs lost to a concurrent run are dropped silently
3. group claimed jobs by user
4. per user (users in parallel, a user's jobs sequentially): resolve active
   integrations once, publish each job through the platform's publisher
5. record success, or a failed attempt (retry with backoff / terminal failure)

Publisher and integration lookup errors become failed attempts for the
affected jobs only. Job store errors from fetch/claim abort the cycle; an
error recording one job's outcome is logged and the user's next job proceeds.
"""

import asyncio
import time
from collections import defaultdict
from typing import Optional, Protocol
from uuid import UUID

import structlog

from app.jobs.models import DispatchSummary, Integration, PostJob
from app.jobs.types import JobStatus, NotificationType
from app.services.publishers.base import PublishResult
from app.services.publishers.registry import PublisherRegistry

logger = structlog.get_logger(__name__)

MAX_BATCH = 20


class JobStore(Protocol):
    """Job queue operations the dispatcher depends on."""

    async def fetch_due_jobs(self, limit: int) -> list[PostJob]: ...

    async def claim(self, job_id: UUID) -> bool: ...

    async def mark_succeeded(self, job_id: UUID) -> bool: ...

    async def mark_failed_or_retry(
        self, job: PostJob, reason: str
    ) -> Optional[JobStatus]: ...


class IntegrationLookup(Protocol):
    """Read-only source of a user's active integrations."""

    async def active_integrations_for_user(
        self, user_id: UUID
    ) -> dict[str, Integration]: ...


class Notifier(Protocol):
    """User notification sink for terminal outcomes."""

    async def notify(
        self,
        user_id: UUID,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.OTHER,
        metadata: Optional[dict] = None,
    ) -> UUID: ...


class PublishDispatcher:
    """Orchestrates claiming, publishing and outcome recording for due jobs."""

    def __init__(
        self,
        job_store: JobStore,
        integrations: IntegrationLookup,
        publishers: PublisherRegistry,
        notifier: Optional[Notifier] = None,
        batch_size: int = MAX_BATCH,
    ):
        self._jobs = job_store
        self._integrations = integrations
        self._publishers = publishers
        self._notifier = notifier
        self._batch_size = batch_size

    async def run_cycle(self) -> DispatchSummary:
        """Process one batch of due jobs and return outcome counters."""
        start = time.perf_counter()
        summary = DispatchSummary()

        jobs = await self._jobs.fetch_due_jobs(self._batch_size)
        summary.fetched = len(jobs)
        if not jobs:
            logger.debug("dispatch_no_due_jobs")
            summary.duration_ms = (time.perf_counter() - start) * 1000
            return summary

        claimed: list[PostJob] = []
        for job in jobs:
            if await self._jobs.claim(job.id):
                claimed.append(job)
        summary.processed = len(claimed)

        by_user: dict[UUID, list[PostJob]] = defaultdict(list)
        for job in claimed:
            by_user[job.user_id].append(job)

        logger.info(
            "dispatch_cycle_started",
            fetched=summary.fetched,
            claimed=summary.processed,
            users=len(by_user),
        )

        user_ids = list(by_user)
        results = await asyncio.gather(
            *(self._process_user(uid, by_user[uid], summary) for uid in user_ids),
            return_exceptions=True,
        )
        for user_id, result in zip(user_ids, results):
            if isinstance(result, Exception):
                summary.errors += 1
                logger.error(
                    "dispatch_group_failed",
                    user_id=str(user_id),
                    jobs=len(by_user[user_id]),
                    error=str(result),
                    error_type=type(result).__name__,
                )
            elif isinstance(result, BaseException):
                raise result

        summary.duration_ms = (time.perf_counter() - start) * 1000
        logger.info("dispatch_cycle_completed", **summary.to_dict())
        return summary

    async def _process_user(
        self, user_id: UUID, jobs: list[PostJob], summary: DispatchSummary
    ) -> None:
        """Publish one user's jobs sequentially with a shared integration map."""
        try:
            integrations = await self._integrations.active_integrations_for_user(user_id)
        except Exception as e:
            logger.error(
                "integration_lookup_failed", user_id=str(user_id), error=str(e)
            )
            failure = PublishResult.failure(
                f"Integration lookup failed: {_describe(e)}"
            )
            for job in jobs:
                await self._record_outcome_isolated(job, failure, summary)
            return

        for job in jobs:
            result = await self._publish(job, integrations)
            await self._record_outcome_isolated(job, result, summary)

    async def _record_outcome_isolated(
        self, job: PostJob, result: PublishResult, summary: DispatchSummary
    ) -> None:
        """Record one outcome; a store error affects only this job."""
        try:
            await self._record_outcome(job, result, summary)
        except Exception as e:
            summary.errors += 1
            logger.error(
                "dispatch_job_store_failed",
                job_id=str(job.id),
                user_id=str(job.user_id),
                error=str(e),
                error_type=type(e).__name__,
            )

    async def _publish(
        self, job: PostJob, integrations: dict[str, Integration]
    ) -> PublishResult:
        """Run the job through its platform publisher. Never raises."""
        platform = job.platform_key
        log = logger.bind(job_id=str(job.id), user_id=str(job.user_id), platform=platform)

        integration = integrations.get(platform)
        if integration is None:
            return PublishResult.failure(f"No active integration for {platform}")

        try:
            publisher = self._publishers.get(platform)
        except KeyError:
            return PublishResult.failure(f"Unsupported platform {platform}")

        try:
            result = await publisher.publish(job.content, job.media_urls, integration)
        except Exception as e:
            log.warning(
                "publisher_exception", error=str(e), error_type=type(e).__name__
            )
            return PublishResult.failure(_describe(e))

        if result.ok:
            log.info("job_published", attempt=job.attempts + 1)
        else:
            log.info("job_publish_failed", attempt=job.attempts + 1, error=result.error)
        return result

    async def _record_outcome(
        self, job: PostJob, result: PublishResult, summary: DispatchSummary
    ) -> None:
        if result.ok:
            await self._jobs.mark_succeeded(job.id)
            summary.succeeded += 1
            await self._notify(
                job,
                NotificationType.POST_PUBLISHED,
                "Post published",
                f"Your scheduled post was published to {job.platform}.",
            )
            return

        reason = result.error or "Unknown error"
        status = await self._jobs.mark_failed_or_retry(job, reason)
        if status == JobStatus.FAILED:
            summary.failed += 1
            await self._notify(
                job,
                NotificationType.POST_FAILED,
                "Post failed to publish",
                f"Publishing to {job.platform} failed after "
                f"{job.max_attempts} attempts: {reason}",
            )
        elif status == JobStatus.PENDING:
            summary.retried += 1

    async def _notify(
        self,
        job: PostJob,
        notification_type: NotificationType,
        title: str,
        message: str,
    ) -> None:
        """Best-effort user notification; failures never change the job outcome."""
        if self._notifier is None:
            return
        try:
            await self._notifier.notify(
                job.user_id,
                title,
                message,
                notification_type,
                metadata={
                    "job_id": str(job.id),
                    "post_id": str(job.post_id) if job.post_id else None,
                    "platform": job.platform,
                },
            )
        except Exception as e:
            logger.warning("notification_failed", job_id=str(job.id), error=str(e))


def _describe(exc: Exception) -> str:
    """Exception message, falling back to the type name for empty messages."""
    message = str(exc)
    return message if message else type(exc).__name__
