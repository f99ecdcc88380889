"""Facebook page publisher (Graph API page feed)."""

from typing import Optional, Sequence

import httpx

from app.jobs.models import Integration
from app.services.publishers.base import (
    DEFAULT_TIMEOUT_S,
    HttpPublisher,
    PublishResult,
    first_present,
    is_success,
)


class FacebookPublisher(HttpPublisher):
    """Posts text to a Facebook page feed with a page access token."""

    platform = "facebook"
    GRAPH_URL = "https://graph.facebook.com/{version}/{page_id}/feed"

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_S,
        client: Optional[httpx.AsyncClient] = None,
        graph_version: str = "v19.0",
    ):
        super().__init__(timeout=timeout, client=client)
        self.graph_version = graph_version

    async def publish(
        self,
        content: str,
        media_urls: Optional[Sequence[str]],
        integration: Integration,
    ) -> PublishResult:
        token = first_present(integration.credentials, "accessToken", "pageAccessToken")
        page_id = first_present(integration.configuration, "pageId")
        if not token or not page_id:
            return PublishResult.failure("Missing Facebook page token or pageId")

        url = self.GRAPH_URL.format(version=self.graph_version, page_id=page_id)
        async with self._http() as client:
            resp = await client.post(
                url, data={"message": content, "access_token": token}
            )

        if not is_success(resp):
            return self._http_failure("Facebook", resp)
        return PublishResult.success()
