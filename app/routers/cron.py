"""Cron trigger endpoint for the publish dispatcher."""

import time
import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.deps.security import require_qstash_signature
from app.jobs.worker import run_dispatch

router = APIRouter(prefix="/cron", tags=["cron"])
logger = structlog.get_logger(__name__)

_db_pool = None


def set_db_pool(pool) -> None:
    """Set the database pool for this router."""
    global _db_pool
    _db_pool = pool


def get_db_pool() -> Optional[object]:
    return _db_pool


@router.post(
    "/process-queue",
    responses={
        200: {"description": "Cycle completed"},
        401: {"description": "Invalid or missing signature"},
        500: {"description": "Cycle aborted by a job store failure"},
        503: {"description": "Database not configured"},
    },
)
async def process_queue(_: bool = Depends(require_qstash_signature)) -> JSONResponse:
    """
    Run one publish dispatch cycle.

    Invoked every 15 minutes by the external scheduler. Returns the number of
    jobs claimed (``processed``) and how many were published, rescheduled or
    terminally failed.
    """
    request_id = str(uuid.uuid4())
    start = time.perf_counter()
    log = logger.bind(request_id=request_id)

    pool = get_db_pool()
    if pool is None:
        log.warning("cron_db_unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "success": False,
                "error": "Database not configured",
                "request_id": request_id,
            },
        )

    try:
        summary = await run_dispatch(pool)
    except Exception as e:
        log.error("cron_cycle_failed", error=str(e), error_type=type(e).__name__)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "Internal server error",
                "message": str(e),
                "request_id": request_id,
                "duration_ms": round((time.perf_counter() - start) * 1000, 1),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    body = {
        "success": True,
        **summary.to_dict(),
        "request_id": request_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    log.info("cron_cycle_completed", processed=summary.processed)
    return JSONResponse(status_code=status.HTTP_200_OK, content=body)
