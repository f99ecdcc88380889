"""API routers for Post Dispatch."""

from app.routers import cron, health

__all__ = ["cron", "health"]
