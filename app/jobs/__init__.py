"""Scheduled post publishing package."""

from app.jobs.types import JobStatus, NotificationType
from app.jobs.models import DispatchSummary, Integration, PostJob

__all__ = [
    "JobStatus",
    "NotificationType",
    "PostJob",
    "Integration",
    "DispatchSummary",
]
