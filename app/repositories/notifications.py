"""Repository for user notifications about publishing outcomes."""

import json
from typing import Any, Optional
from uuid import UUID

import structlog

from app.jobs.types import NotificationType

logger = structlog.get_logger(__name__)


class NotificationRepository:
    """Writes rows to the notifications table read by the dashboard."""

    def __init__(self, pool):
        self._pool = pool

    async def notify(
        self,
        user_id: UUID,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.OTHER,
        metadata: Optional[dict[str, Any]] = None,
    ) -> UUID:
        """Insert a notification and return its id."""
        query = """
            INSERT INTO notifications (user_id, title, message, type, metadata)
            VALUES ($1, $2, $3, $4, $5::jsonb)
            RETURNING id
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                query,
                str(user_id),
                title[:255],
                message,
                notification_type.value,
                json.dumps(metadata or {}, default=str),
            )
        logger.info(
            "notification_created",
            user_id=str(user_id),
            type=notification_type.value,
        )
        return row["id"]
