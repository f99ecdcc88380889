"""LinkedIn publisher (UGC share posts)."""

from typing import Any, Optional, Sequence

from app.jobs.models import Integration
from app.services.publishers.base import (
    HttpPublisher,
    PublishResult,
    first_present,
    is_success,
)


class LinkedInPublisher(HttpPublisher):
    """Creates a public text share on behalf of a person or organization URN."""

    platform = "linkedin"
    UGC_POSTS_URL = "https://api.linkedin.com/v2/ugcPosts"

    async def publish(
        self,
        content: str,
        media_urls: Optional[Sequence[str]],
        integration: Integration,
    ) -> PublishResult:
        token = first_present(integration.credentials, "accessToken")
        # e.g. urn:li:person:xxx or urn:li:organization:xxx
        owner = first_present(integration.configuration, "ownerUrn")
        if not token or not owner:
            return PublishResult.failure("Missing LinkedIn accessToken or ownerUrn")

        async with self._http() as client:
            resp = await client.post(
                self.UGC_POSTS_URL,
                json=build_share_body(owner, content),
                headers={
                    "Authorization": f"Bearer {token}",
                    "X-Restli-Protocol-Version": "2.0.0",
                },
            )

        if not is_success(resp):
            return self._http_failure("LinkedIn", resp, include_body=True)
        return PublishResult.success()


def build_share_body(owner_urn: str, text: str) -> dict[str, Any]:
    """UGC post body for a text-only public share."""
    return {
        "author": owner_urn,
        "lifecycleState": "PUBLISHED",
        "specificContent": {
            "com.linkedin.ugc.ShareContent": {
                "shareCommentary": {"text": text},
                "shareMediaCategory": "NONE",
            }
        },
        "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
    }
