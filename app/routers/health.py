"""Health check endpoint."""

import time

import structlog
from fastapi import APIRouter

from app import __version__
from app.routers.cron import get_db_pool

router = APIRouter()
logger = structlog.get_logger(__name__)


async def check_database() -> dict:
    """Check job store connectivity."""
    pool = get_db_pool()
    if pool is None:
        return {"status": "unavailable", "error": "Database not configured"}

    start = time.perf_counter()
    try:
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
        return {"status": "ok", "latency_ms": round((time.perf_counter() - start) * 1000, 1)}
    except Exception as e:
        logger.warning("health_db_check_failed", error=str(e))
        return {"status": "error", "error": str(e)[:200]}


@router.get("/health")
async def health() -> dict:
    """Service liveness plus database reachability."""
    database = await check_database()
    return {
        "status": "ok" if database["status"] == "ok" else "degraded",
        "version": __version__,
        "database": database,
    }
