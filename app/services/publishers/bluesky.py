"""Bluesky publisher (AT Protocol session + feed post record)."""

from datetime import datetime, timezone
from typing import Any, Optional, Sequence

import httpx

from app.jobs.models import Integration
from app.services.publishers.base import (
    DEFAULT_TIMEOUT_S,
    HttpPublisher,
    PublishResult,
    first_present,
    is_success,
)

DEFAULT_SERVICE_URL = "https://bsky.social"


class BlueskyPublisher(HttpPublisher):
    """Logs in with an app password, then creates an app.bsky.feed.post record."""

    platform = "bluesky"

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_S,
        client: Optional[httpx.AsyncClient] = None,
        service_url: str = DEFAULT_SERVICE_URL,
    ):
        super().__init__(timeout=timeout, client=client)
        self.service_url = service_url.rstrip("/")

    async def publish(
        self,
        content: str,
        media_urls: Optional[Sequence[str]],
        integration: Integration,
    ) -> PublishResult:
        creds = integration.credentials or {}
        identifier = creds.get("identifier")
        app_password = first_present(creds, "password", "appPassword")
        if not identifier or not app_password:
            return PublishResult.failure("Missing Bluesky identifier or app password")

        service_url = (creds.get("serviceUrl") or self.service_url).rstrip("/")

        async with self._http() as client:
            session_resp = await client.post(
                f"{service_url}/xrpc/com.atproto.server.createSession",
                json={"identifier": identifier, "password": app_password},
            )
            if not is_success(session_resp):
                return self._http_failure("Bluesky login", session_resp)

            session = session_resp.json()
            access_jwt = session.get("accessJwt")
            did = session.get("did")
            if not access_jwt or not did:
                return PublishResult.failure(
                    "Bluesky login: session missing did or accessJwt"
                )

            post_resp = await client.post(
                f"{service_url}/xrpc/com.atproto.repo.createRecord",
                headers={"Authorization": f"Bearer {access_jwt}"},
                json={
                    "repo": did,
                    "collection": "app.bsky.feed.post",
                    "record": build_post_record(content),
                },
            )

        if not is_success(post_resp):
            return self._http_failure("Bluesky post", post_resp)
        return PublishResult.success()


def build_post_record(text: str, now: Optional[datetime] = None) -> dict[str, Any]:
    created = (now or datetime.now(timezone.utc)).isoformat(timespec="milliseconds")
    return {
        "$type": "app.bsky.feed.post",
        "text": text,
        "createdAt": created.replace("+00:00", "Z"),
    }
