"""Publishing data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from app.jobs.types import JobStatus


@dataclass
class PostJob:
    """A scheduled unit of publication to one platform."""

    id: UUID
    user_id: UUID
    platform: str
    content: str
    status: JobStatus = JobStatus.PENDING

    post_id: Optional[UUID] = None
    media_urls: list[str] = field(default_factory=list)
    payload: dict[str, Any] = field(default_factory=dict)

    # Scheduling
    run_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    idempotency_key: Optional[str] = None

    # Retry handling
    attempts: int = 0
    max_attempts: int = 3
    error: Optional[str] = None

    # Lifecycle timestamps
    claimed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @property
    def platform_key(self) -> str:
        """Lower-cased platform identifier used for adapter/integration lookup."""
        return (self.platform or "").strip().lower()


@dataclass
class Integration:
    """A user's active connection to one external platform.

    ``credentials`` are already decrypted when an adapter sees them.
    """

    id: UUID
    user_id: UUID
    platform: str
    is_active: bool = True
    credentials: dict[str, Any] = field(default_factory=dict)
    configuration: dict[str, Any] = field(default_factory=dict)


@dataclass
class DispatchSummary:
    """Outcome counters for one dispatch cycle."""

    fetched: int = 0
    processed: int = 0  # claimed in this cycle
    succeeded: int = 0
    retried: int = 0
    failed: int = 0
    errors: int = 0  # jobs or groups whose outcome could not be stored
    duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "fetched": self.fetched,
            "processed": self.processed,
            "published": self.succeeded,
            "retried": self.retried,
            "failed": self.failed,
            "errors": self.errors,
            "duration_ms": round(self.duration_ms, 1),
        }
