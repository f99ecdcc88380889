"""Publishers for platforms whose server-side flow is not available yet.

Each always returns a failed result explaining what is missing, so jobs for
these platforms exhaust their attempt budget and surface the reason.
"""

from typing import Optional, Sequence

from app.jobs.models import Integration
from app.services.publishers.base import PlatformPublisher, PublishResult


class PendingPublisher(PlatformPublisher):
    """Publisher that never calls out and always fails with ``reason``."""

    reason: str = "Publishing is not available for this platform."

    async def publish(
        self,
        content: str,
        media_urls: Optional[Sequence[str]],
        integration: Integration,
    ) -> PublishResult:
        return PublishResult.failure(self.reason)


class TwitterPublisher(PendingPublisher):
    platform = "twitter"
    reason = "Twitter/X requires OAuth 1.0a server implementation (pending credentials)."


class InstagramPublisher(PendingPublisher):
    platform = "instagram"
    reason = "Instagram Graph API requires media publishing flow and image URL."


class BloggerPublisher(PendingPublisher):
    platform = "blogger"
    reason = "Blogger server-side posting requires OAuth 2.0 refresh token credentials."
