"""Post Dispatch - FastAPI Application."""

import logging
import os
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import asyncpg
import sentry_sdk
import structlog
from fastapi import FastAPI

from app import __version__
from app.config import get_settings
from app.jobs.worker import DispatchScheduler
from app.routers import cron, health

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

settings = get_settings()
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

# Initialize Sentry (if configured)
if settings.sentry_dsn:
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration
    from sentry_sdk.integrations.starlette import StarletteIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        release=os.environ.get("GIT_SHA", f"post-dispatch@{__version__}"),
        integrations=[
            # Only ERROR+ logs become Sentry events
            LoggingIntegration(level=None, event_level="ERROR"),
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        traces_sample_rate=settings.sentry_traces_sample_rate,
        send_default_pii=False,
    )
    sentry_sdk.set_tag("service", "post-dispatch")
    logger.info("Sentry initialized", environment=settings.sentry_environment)

# Global clients
_db_pool: Optional[asyncpg.Pool] = None
_scheduler: Optional[DispatchScheduler] = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    global _db_pool, _scheduler

    settings = get_settings()
    logger.info(
        "Starting Post Dispatch Service",
        version=__version__,
        host=settings.service_host,
        port=settings.service_port,
        batch_size=settings.dispatch_batch_size,
    )

    if settings.database_url:
        try:
            _db_pool = await asyncpg.create_pool(
                settings.database_url,
                min_size=settings.db_pool_min_size,
                max_size=settings.db_pool_max_size,
                ssl=None if settings.db_ssl == "disable" else settings.db_ssl,
                timeout=10,  # Short connection timeout to avoid blocking startup
                command_timeout=30,
                statement_cache_size=0,  # Disable for pgbouncer transaction mode
            )
            logger.info(
                "Database pool initialized",
                min_size=settings.db_pool_min_size,
                max_size=settings.db_pool_max_size,
            )
            cron.set_db_pool(_db_pool)
        except Exception as e:
            logger.error(
                "Failed to initialize database pool - dispatch unavailable",
                error=str(e),
                traceback=traceback.format_exc(),
            )
            _db_pool = None
    else:
        logger.warning("Database connection not configured. Set DATABASE_URL in .env")

    if _db_pool is not None and settings.dispatch_scheduler_enabled:
        _scheduler = DispatchScheduler(_db_pool)
        _scheduler.start_background()

    yield

    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None

    if _db_pool is not None:
        await _db_pool.close()
        cron.set_db_pool(None)
        _db_pool = None
        logger.info("Database pool closed")

    logger.info("Post Dispatch Service stopped")


app = FastAPI(
    title="Post Dispatch",
    description="Scheduled post publishing dispatcher",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(cron.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.service_host,
        port=settings.service_port,
    )
