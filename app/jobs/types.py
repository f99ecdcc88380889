"""Publishing job type definitions."""

from enum import Enum


class JobStatus(str, Enum):
    """Post job lifecycle statuses."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Check if this status is terminal (job won't change)."""
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.CANCELLED)


class NotificationType(str, Enum):
    """Notification categories accepted by the notifications table.

    The dispatcher writes POST_PUBLISHED and POST_FAILED. INTEGRATION_ERROR and
    OTHER are valid ``type`` values for writers outside the dispatch cycle.
    """

    POST_PUBLISHED = "post_published"
    POST_FAILED = "post_failed"
    INTEGRATION_ERROR = "integration_error"
    OTHER = "other"
