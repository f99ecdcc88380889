"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service Configuration
    service_host: str = Field(default="0.0.0.0", description="Service host")
    service_port: int = Field(default=8000, description="Service port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Database Configuration
    database_url: Optional[str] = Field(
        default=None, description="PostgreSQL connection URL for the job store"
    )
    db_pool_min_size: int = Field(default=0, description="Minimum connection pool size")
    db_pool_max_size: int = Field(default=10, description="Maximum connection pool size")
    db_ssl: Literal["require", "prefer", "disable"] = Field(
        default="require", description="asyncpg ssl mode"
    )

    # Dispatcher
    dispatch_batch_size: int = Field(
        default=20, ge=1, le=500, description="Maximum due jobs fetched per cycle"
    )
    dispatch_interval_minutes: int = Field(
        default=15, ge=1, description="Interval for the in-process scheduler"
    )
    dispatch_scheduler_enabled: bool = Field(
        default=False,
        description="Run the in-process scheduler (external cron is the default trigger)",
    )
    job_default_max_attempts: int = Field(
        default=3, ge=1, description="Attempt budget for newly created jobs"
    )
    backoff_cap_seconds: int = Field(
        default=60, ge=1, description="Upper bound of the exponential retry delay"
    )
    backoff_jitter_ms: int = Field(
        default=1000, ge=0, description="Random jitter added to each retry delay"
    )
    stale_processing_minutes: int = Field(
        default=30,
        ge=1,
        description="Jobs stuck in processing longer than this are returned to pending",
    )

    # Platform adapters
    publisher_timeout_s: float = Field(
        default=15.0, gt=0, description="Per-request timeout for platform API calls"
    )
    bluesky_service_url: str = Field(
        default="https://bsky.social",
        description="Default PDS used when the integration does not set serviceUrl",
    )
    facebook_graph_version: str = Field(
        default="v19.0", description="Facebook Graph API version"
    )

    # Trigger authentication (Upstash QStash)
    qstash_current_signing_key: Optional[str] = Field(
        default=None, description="Current QStash signing key"
    )
    qstash_next_signing_key: Optional[str] = Field(
        default=None, description="Next QStash signing key (key rotation)"
    )
    cron_allow_unsigned: bool = Field(
        default=False,
        description="Accept unsigned trigger calls when no signing key is configured (local dev only)",
    )

    # Notifications
    notifications_enabled: bool = Field(
        default=True, description="Write user notifications for terminal outcomes"
    )

    # Sentry Observability
    sentry_dsn: Optional[str] = Field(
        default=None,
        description="Sentry DSN for error tracking"
    )
    sentry_environment: str = Field(
        default="development",
        description="Sentry environment tag (development, staging, production)"
    )
    sentry_traces_sample_rate: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry performance tracing sample rate (0.0-1.0)"
    )

    @property
    def signing_keys(self) -> list[str]:
        """Configured trigger signing keys, current first."""
        return [
            key
            for key in (self.qstash_current_signing_key, self.qstash_next_signing_key)
            if key
        ]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
