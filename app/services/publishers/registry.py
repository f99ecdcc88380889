"""Publisher registry: platform identifier -> PlatformPublisher."""

from typing import Iterable, Optional

import httpx

from app.services.publishers.base import DEFAULT_TIMEOUT_S, PlatformPublisher
from app.services.publishers.bluesky import DEFAULT_SERVICE_URL, BlueskyPublisher
from app.services.publishers.facebook import FacebookPublisher
from app.services.publishers.linkedin import LinkedInPublisher
from app.services.publishers.pending import (
    BloggerPublisher,
    InstagramPublisher,
    TwitterPublisher,
)
from app.services.publishers.pinterest import PinterestPublisher
from app.services.publishers.reddit import RedditPublisher


class PublisherRegistry:
    """Registry mapping lower-cased platform names to publishers."""

    def __init__(self):
        self._publishers: dict[str, PlatformPublisher] = {}

    def register(
        self, publisher: PlatformPublisher, aliases: Iterable[str] = ()
    ) -> None:
        """Register a publisher under its platform name and any aliases."""
        for name in (publisher.platform, *aliases):
            self._publishers[name.strip().lower()] = publisher

    def get(self, platform: str) -> PlatformPublisher:
        """Get the publisher for a platform. Raises KeyError if not found."""
        key = (platform or "").strip().lower()
        if key not in self._publishers:
            raise KeyError(f"No publisher registered for platform: {platform}")
        return self._publishers[key]

    def __contains__(self, platform: str) -> bool:
        return (platform or "").strip().lower() in self._publishers

    @property
    def platforms(self) -> list[str]:
        return sorted(self._publishers)


def build_default_registry(
    timeout: float = DEFAULT_TIMEOUT_S,
    client: Optional[httpx.AsyncClient] = None,
    bluesky_service_url: str = DEFAULT_SERVICE_URL,
    facebook_graph_version: str = "v19.0",
) -> PublisherRegistry:
    """Registry with every supported platform."""
    registry = PublisherRegistry()
    registry.register(
        FacebookPublisher(
            timeout=timeout, client=client, graph_version=facebook_graph_version
        )
    )
    registry.register(LinkedInPublisher(timeout=timeout, client=client))
    registry.register(RedditPublisher(timeout=timeout, client=client))
    registry.register(
        BlueskyPublisher(
            timeout=timeout, client=client, service_url=bluesky_service_url
        )
    )
    registry.register(PinterestPublisher(timeout=timeout, client=client))
    registry.register(TwitterPublisher(), aliases=("x",))
    registry.register(InstagramPublisher())
    registry.register(BloggerPublisher())
    return registry
