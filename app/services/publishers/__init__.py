"""Per-platform publishing adapters."""

from app.services.publishers.base import PlatformPublisher, PublishResult
from app.services.publishers.registry import PublisherRegistry, build_default_registry

__all__ = [
    "PlatformPublisher",
    "PublishResult",
    "PublisherRegistry",
    "build_default_registry",
]
