"""Dispatch scheduler - optional in-process trigger for the publish dispatcher.

Production deployments trigger ``POST /cron/process-queue`` from an external
scheduler. This runner is the same cycle on a fixed interval for setups
without one.
"""

import asyncio
import os
import socket
import traceback
from typing import Optional

import structlog

from app import __version__
from app.config import Settings, get_settings
from app.jobs.dispatcher import PublishDispatcher
from app.jobs.models import DispatchSummary
from app.repositories.integrations import CredentialDecryptor, IntegrationRepository
from app.repositories.notifications import NotificationRepository
from app.repositories.post_jobs import PostJobRepository
from app.services.publishers.registry import build_default_registry

logger = structlog.get_logger(__name__)


def generate_worker_id() -> str:
    """Generate a unique worker ID: hostname:pid."""
    return f"{socket.gethostname()}:{os.getpid()}"


def build_dispatcher(
    pool,
    settings: Optional[Settings] = None,
    decrypt: Optional[CredentialDecryptor] = None,
) -> PublishDispatcher:
    """Wire repositories and publishers for a pool from settings."""
    settings = settings or get_settings()
    publishers = build_default_registry(
        timeout=settings.publisher_timeout_s,
        bluesky_service_url=settings.bluesky_service_url,
        facebook_graph_version=settings.facebook_graph_version,
    )
    return PublishDispatcher(
        job_store=PostJobRepository(
            pool,
            backoff_cap_seconds=settings.backoff_cap_seconds,
            backoff_jitter_ms=settings.backoff_jitter_ms,
            default_max_attempts=settings.job_default_max_attempts,
        ),
        integrations=IntegrationRepository(pool, decrypt=decrypt),
        publishers=publishers,
        notifier=NotificationRepository(pool) if settings.notifications_enabled else None,
        batch_size=settings.dispatch_batch_size,
    )


async def run_dispatch(pool, settings: Optional[Settings] = None) -> DispatchSummary:
    """Reap stale claims, then run one dispatch cycle."""
    settings = settings or get_settings()
    await PostJobRepository(pool).reap_stale(settings.stale_processing_minutes)
    return await build_dispatcher(pool, settings).run_cycle()


class DispatchScheduler:
    """Runs a dispatch cycle every ``interval_s`` seconds until stopped."""

    def __init__(
        self,
        pool,
        interval_s: Optional[float] = None,
        worker_id: Optional[str] = None,
    ):
        self._pool = pool
        self._interval_s = interval_s
        self._worker_id = worker_id or generate_worker_id()
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def worker_id(self) -> str:
        return self._worker_id

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self):
        """Start the scheduler loop."""
        settings = get_settings()
        self._running = True
        interval = self._interval_s or settings.dispatch_interval_minutes * 60

        logger.info(
            "dispatch_scheduler_started",
            worker_id=self._worker_id,
            version=__version__,
            interval_s=interval,
        )

        while self._running:
            try:
                await run_dispatch(self._pool, settings)
            except asyncio.CancelledError:
                logger.info("dispatch_scheduler_cancelled", worker_id=self._worker_id)
                break
            except Exception as e:
                logger.error(
                    "dispatch_cycle_error",
                    worker_id=self._worker_id,
                    error=str(e),
                    traceback=traceback.format_exc(),
                )

            try:
                await asyncio.sleep(interval)
            except asyncio.CancelledError:
                break

        self._running = False
        logger.info("dispatch_scheduler_stopped", worker_id=self._worker_id)

    def start_background(self) -> asyncio.Task:
        """Start the loop as a background task."""
        self._task = asyncio.create_task(self.start())
        return self._task

    async def stop(self):
        """Stop the loop; cancels the sleep if running in the background."""
        self._running = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
