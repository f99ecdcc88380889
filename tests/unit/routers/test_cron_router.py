"""Unit tests for the cron trigger endpoint."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.config import Settings
from app.deps.security import SIGNATURE_HEADER, compute_signature
from app.jobs.models import DispatchSummary

SIGNING_KEY = "test-signing-key"
BODY = b'{"trigger":"schedule"}'


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_db_pool():
    """Create mock database pool."""
    return MagicMock()


@pytest.fixture
def client(mock_db_pool):
    """Test client with a mocked pool and a configured signing key."""
    from app.routers import cron

    cron.set_db_pool(mock_db_pool)

    app = FastAPI()
    app.include_router(cron.router)

    settings = Settings(_env_file=None, qstash_current_signing_key=SIGNING_KEY)
    with patch("app.deps.security.get_settings", return_value=settings):
        yield TestClient(app)

    cron.set_db_pool(None)


def _signed_headers(body: bytes = BODY) -> dict:
    return {SIGNATURE_HEADER: compute_signature(SIGNING_KEY, body)}


# =============================================================================
# Tests
# =============================================================================


class TestProcessQueueAuth:
    def test_missing_signature_returns_401(self, client):
        with patch("app.routers.cron.run_dispatch", new_callable=AsyncMock) as run:
            response = client.post("/cron/process-queue", content=BODY)

        assert response.status_code == 401
        run.assert_not_awaited()

    def test_wrong_signature_returns_401(self, client):
        headers = {SIGNATURE_HEADER: compute_signature("other-key", BODY)}
        with patch("app.routers.cron.run_dispatch", new_callable=AsyncMock) as run:
            response = client.post("/cron/process-queue", content=BODY, headers=headers)

        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized: Invalid signature"
        run.assert_not_awaited()


class TestProcessQueue:
    def test_success_returns_summary(self, client, mock_db_pool):
        summary = DispatchSummary(
            fetched=4, processed=3, succeeded=2, retried=1, failed=0, duration_ms=12.34
        )
        with patch(
            "app.routers.cron.run_dispatch", new_callable=AsyncMock, return_value=summary
        ) as run:
            response = client.post(
                "/cron/process-queue", content=BODY, headers=_signed_headers()
            )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["processed"] == 3
        assert data["published"] == 2
        assert data["retried"] == 1
        assert data["failed"] == 0
        assert data["duration_ms"] == 12.3
        assert "request_id" in data
        assert "timestamp" in data
        run.assert_awaited_once_with(mock_db_pool)

    def test_empty_cycle(self, client):
        with patch(
            "app.routers.cron.run_dispatch",
            new_callable=AsyncMock,
            return_value=DispatchSummary(),
        ):
            response = client.post(
                "/cron/process-queue", content=BODY, headers=_signed_headers()
            )

        assert response.status_code == 200
        assert response.json()["processed"] == 0

    def test_store_failure_returns_500(self, client):
        with patch(
            "app.routers.cron.run_dispatch",
            new_callable=AsyncMock,
            side_effect=ConnectionError("connection refused"),
        ):
            response = client.post(
                "/cron/process-queue", content=BODY, headers=_signed_headers()
            )

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Internal server error"
        assert data["message"] == "connection refused"

    def test_no_pool_returns_503(self, client):
        from app.routers import cron

        cron.set_db_pool(None)
        with patch("app.routers.cron.run_dispatch", new_callable=AsyncMock) as run:
            response = client.post(
                "/cron/process-queue", content=BODY, headers=_signed_headers()
            )

        assert response.status_code == 503
        assert response.json()["error"] == "Database not configured"
        run.assert_not_awaited()
