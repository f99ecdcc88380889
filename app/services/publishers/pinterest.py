"""Pinterest publisher (v5 pins API)."""

from typing import Any, Optional, Sequence

from app.jobs.models import Integration
from app.services.publishers.base import (
    HttpPublisher,
    PublishResult,
    first_present,
    is_success,
)

TITLE_MAX_CHARS = 80
DESCRIPTION_MAX_CHARS = 500


class PinterestPublisher(HttpPublisher):
    """Creates an image pin on a board. The first media URL is the pin image."""

    platform = "pinterest"
    PINS_URL = "https://api.pinterest.com/v5/pins"

    async def publish(
        self,
        content: str,
        media_urls: Optional[Sequence[str]],
        integration: Integration,
    ) -> PublishResult:
        token = first_present(integration.credentials, "accessToken")
        board_id = first_present(integration.configuration, "boardId")
        image_url = media_urls[0] if media_urls else None
        if not token or not board_id or not image_url:
            return PublishResult.failure("Missing Pinterest token, boardId, or image URL")

        async with self._http() as client:
            resp = await client.post(
                self.PINS_URL,
                json=build_pin_body(board_id, content, image_url),
                headers={"Authorization": f"Bearer {token}"},
            )

        if not is_success(resp):
            return self._http_failure("Pinterest", resp, include_body=True)
        return PublishResult.success()


def build_pin_body(board_id: str, content: str, image_url: str) -> dict[str, Any]:
    return {
        "board_id": board_id,
        "title": content[:TITLE_MAX_CHARS] or "Post",
        "description": content[:DESCRIPTION_MAX_CHARS],
        "media_source": {"source_type": "image_url", "url": image_url},
    }
