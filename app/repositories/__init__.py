"""Database repositories for Post Dispatch."""

from app.repositories import integrations, notifications, post_jobs

__all__ = ["post_jobs", "integrations", "notifications"]
