"""Repository for reading users' active platform integrations."""

import json
from typing import Any, Awaitable, Callable, Optional
from uuid import UUID

import structlog

from app.jobs.models import Integration

logger = structlog.get_logger(__name__)

# (platform, stored credentials) -> decrypted credentials
CredentialDecryptor = Callable[[str, dict[str, Any]], Awaitable[dict[str, Any]]]


async def passthrough_decryptor(platform: str, credentials: dict[str, Any]) -> dict[str, Any]:
    """Decryptor for stores that already hold plaintext credentials."""
    return credentials


class IntegrationRepository:
    """Read-only lookup of active integrations. Never mutates integration rows."""

    def __init__(self, pool, decrypt: Optional[CredentialDecryptor] = None):
        self._pool = pool
        self._decrypt = decrypt or passthrough_decryptor

    async def active_integrations_for_user(self, user_id: UUID) -> dict[str, Integration]:
        """Map of lower-cased platform -> active Integration for one user.

        Rows are read oldest-updated first, so when a user has two active
        integrations for one platform the most recently updated one wins.
        """
        query = """
            SELECT id, user_id, platform, is_active, credentials, configuration
            FROM integrations
            WHERE user_id = $1 AND is_active = true
            ORDER BY updated_at ASC NULLS FIRST, id ASC
        """
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, user_id)

        integrations: dict[str, Integration] = {}
        for row in rows:
            integration = await self._row_to_integration(row)
            key = integration.platform.strip().lower()
            if key in integrations:
                logger.warning(
                    "duplicate_active_integration",
                    user_id=str(user_id),
                    platform=key,
                    replaced_id=str(integrations[key].id),
                    kept_id=str(integration.id),
                )
            integrations[key] = integration
        return integrations

    async def _row_to_integration(self, row) -> Integration:
        platform = row["platform"] or ""
        credentials = _json_object(row["credentials"])
        return Integration(
            id=row["id"],
            user_id=row["user_id"],
            platform=platform,
            is_active=row["is_active"],
            credentials=await self._decrypt(platform, credentials),
            configuration=_json_object(row["configuration"]),
        )


def _json_object(value) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        value = json.loads(value)
    return dict(value)
