"""Fakes for dispatcher tests: in-memory job store, integration lookup, publishers."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence
from uuid import UUID, uuid4

import pytest

from app.jobs.backoff import backoff_delay
from app.jobs.models import Integration, PostJob
from app.jobs.types import JobStatus
from app.services.publishers.base import PlatformPublisher, PublishResult
from app.services.publishers.registry import PublisherRegistry


class InMemoryJobStore:
    """Job store with the same conditional-update semantics as PostJobRepository."""

    def __init__(self, jobs: Sequence[PostJob] = ()):
        self.jobs: dict[UUID, PostJob] = {job.id: job for job in jobs}
        self.calls: list[tuple[str, UUID]] = []
        self.fail_on: dict[str, Exception] = {}
        self.fail_for: dict[tuple[str, UUID], Exception] = {}
        self.claim_delay: float = 0.0

    def _maybe_fail(self, op: str, job_id: Optional[UUID] = None) -> None:
        if op in self.fail_on:
            raise self.fail_on[op]
        if (op, job_id) in self.fail_for:
            raise self.fail_for[(op, job_id)]

    async def fetch_due_jobs(self, limit: int) -> list[PostJob]:
        self._maybe_fail("fetch_due_jobs")
        now = datetime.now(timezone.utc)
        due = [
            job
            for job in self.jobs.values()
            if job.status == JobStatus.PENDING and job.run_at <= now
        ]
        due.sort(key=lambda j: j.run_at)
        return [_copy(job) for job in due[:limit]]

    async def claim(self, job_id: UUID) -> bool:
        self._maybe_fail("claim")
        self.calls.append(("claim", job_id))
        if self.claim_delay:
            await asyncio.sleep(self.claim_delay)
        job = self.jobs.get(job_id)
        # check-and-set with no await in between
        if job is None or job.status != JobStatus.PENDING:
            return False
        job.status = JobStatus.PROCESSING
        return True

    async def mark_succeeded(self, job_id: UUID) -> bool:
        self._maybe_fail("mark_succeeded", job_id)
        self.calls.append(("mark_succeeded", job_id))
        job = self.jobs[job_id]
        if job.status != JobStatus.PROCESSING:
            return False
        job.status = JobStatus.SUCCEEDED
        job.error = None
        return True

    async def mark_failed_or_retry(self, job: PostJob, reason: str) -> Optional[JobStatus]:
        self._maybe_fail("mark_failed_or_retry", job.id)
        self.calls.append(("mark_failed_or_retry", job.id))
        stored = self.jobs[job.id]
        if stored.status != JobStatus.PROCESSING:
            return None
        stored.attempts += 1
        stored.error = reason
        if stored.attempts >= stored.max_attempts:
            stored.status = JobStatus.FAILED
        else:
            stored.status = JobStatus.PENDING
            stored.run_at = datetime.now(timezone.utc) + backoff_delay(stored.attempts)
        return stored.status


class FakeIntegrationLookup:
    def __init__(self, by_user: Optional[dict[UUID, dict[str, Integration]]] = None):
        self.by_user = by_user or {}
        self.calls: list[UUID] = []
        self.error: Optional[Exception] = None

    async def active_integrations_for_user(self, user_id: UUID) -> dict[str, Integration]:
        self.calls.append(user_id)
        if self.error is not None:
            raise self.error
        return dict(self.by_user.get(user_id, {}))


class StubPublisher(PlatformPublisher):
    """Publisher returning queued results (or raising queued exceptions)."""

    def __init__(self, platform: str, outcomes: Sequence = ()):
        self.platform = platform
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, list[str], Integration]] = []
        self.active = 0
        self.max_active = 0

    async def publish(self, content, media_urls, integration) -> PublishResult:
        self.calls.append((content, list(media_urls or []), integration))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            outcome = self.outcomes.pop(0) if self.outcomes else PublishResult.success()
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            self.active -= 1


class RecordingNotifier:
    def __init__(self, error: Optional[Exception] = None):
        self.sent: list[dict] = []
        self.error = error

    async def notify(self, user_id, title, message, notification_type=None, metadata=None):
        if self.error is not None:
            raise self.error
        self.sent.append(
            {
                "user_id": user_id,
                "title": title,
                "message": message,
                "type": notification_type,
                "metadata": metadata,
            }
        )
        return uuid4()


def _copy(job: PostJob) -> PostJob:
    return PostJob(**{k: getattr(job, k) for k in job.__dataclass_fields__})


def make_job(
    user_id: Optional[UUID] = None,
    platform: str = "linkedin",
    content: str = "Hello world",
    minutes_ago: float = 5,
    attempts: int = 0,
    max_attempts: int = 3,
    media_urls: Optional[list[str]] = None,
) -> PostJob:
    return PostJob(
        id=uuid4(),
        user_id=user_id or uuid4(),
        platform=platform,
        content=content,
        media_urls=media_urls or [],
        run_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
        attempts=attempts,
        max_attempts=max_attempts,
    )


def make_integration(user_id: UUID, platform: str = "linkedin") -> Integration:
    return Integration(
        id=uuid4(),
        user_id=user_id,
        platform=platform,
        credentials={"accessToken": "token"},
        configuration={"ownerUrn": "urn:li:person:abc"},
    )


def make_registry(*publishers: PlatformPublisher) -> PublisherRegistry:
    registry = PublisherRegistry()
    for publisher in publishers:
        registry.register(publisher)
    return registry


@pytest.fixture
def job_factory():
    return make_job


@pytest.fixture
def integration_factory():
    return make_integration


@pytest.fixture
def registry_factory():
    return make_registry


@pytest.fixture
def store_factory():
    return InMemoryJobStore


@pytest.fixture
def lookup_factory():
    return FakeIntegrationLookup


@pytest.fixture
def publisher_factory():
    return StubPublisher


@pytest.fixture
def notifier_factory():
    return RecordingNotifier
