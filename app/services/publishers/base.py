"""Platform publisher interface and shared types.

Every social platform is reached through one ``PlatformPublisher``. A publisher
receives the literal content, optional media URLs and the user's (decrypted)
``Integration`` and returns a ``PublishResult``. Expected failures - missing
credentials/configuration, non-2xx responses - are returned as failed results,
never raised. Transport errors (timeouts, connection resets) may propagate and
are converted to failures by the dispatcher.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional, Sequence

import httpx
import structlog

from app.jobs.models import Integration

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_S = 15.0
MAX_ERROR_BODY_CHARS = 500


@dataclass(frozen=True)
class PublishResult:
    """Result of one publish call."""

    ok: bool
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "PublishResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str) -> "PublishResult":
        return cls(ok=False, error=error)


class PlatformPublisher(ABC):
    """Abstract publisher for one external platform."""

    platform: str = ""

    @abstractmethod
    async def publish(
        self,
        content: str,
        media_urls: Optional[Sequence[str]],
        integration: Integration,
    ) -> PublishResult:
        """Submit one unit of content to the platform."""


class HttpPublisher(PlatformPublisher):
    """Base for publishers that talk to an HTTP API with httpx.

    A shared ``httpx.AsyncClient`` can be injected (tests, connection reuse);
    otherwise a short-lived client with ``timeout`` is created per publish.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_S,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout = timeout
        self._client = client

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    def _http_failure(
        self, label: str, response: httpx.Response, include_body: bool = False
    ) -> PublishResult:
        """Build a failure result from a non-2xx response."""
        logger.warning(
            "publisher_http_error",
            platform=self.platform,
            step=label,
            status=response.status_code,
        )
        if include_body:
            return PublishResult.failure(f"{label}: {response_detail(response)}")
        return PublishResult.failure(f"{label}: {response.status_code}")


def response_detail(response: httpx.Response) -> str:
    """Response body (or status code when empty), truncated for the error column."""
    body = (response.text or "").strip()
    if not body:
        return str(response.status_code)
    if len(body) > MAX_ERROR_BODY_CHARS:
        return body[:MAX_ERROR_BODY_CHARS] + "..."
    return body


def first_present(mapping: Optional[dict[str, Any]], *keys: str) -> Optional[Any]:
    """Return the first non-empty value among ``keys``."""
    if not mapping:
        return None
    for key in keys:
        value = mapping.get(key)
        if value:
            return value
    return None


def is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code < 300
