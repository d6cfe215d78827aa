"""
Queue transport configuration settings.

Manages the Celery broker/result backend, the per-job retry policy handed to
every enqueued job, and the retention limits used by the record janitor.

Dependencies: pydantic, pydantic_settings
System role: Async task queue configuration for CV processing
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CelerySettings(BaseSettings):
    """Celery and Redis configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CELERY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    transport: str = Field(
        default="celery",
        description="Queue transport: 'celery' (Redis-backed) or 'inline' (in-process, local dev)",
    )
    redis_url: str = Field(
        default="redis://127.0.0.1:6379/0",
        description="Redis URL used as broker and result backend",
    )
    queue_name: str = Field(default="cv-processing", description="Queue carrying CV jobs")

    task_serializer: str = Field(default="json", description="Task serialization format")
    result_serializer: str = Field(default="json", description="Result serialization format")
    accept_content: list[str] = Field(
        default=["json"],
        description="Accepted content types",
    )
    timezone: str = Field(default="UTC", description="Celery timezone")

    # Retry policy stamped onto every job at enqueue time
    job_attempts: int = Field(default=3, description="Total attempts per job, first run included")
    job_backoff_delay_seconds: float = Field(
        default=2.0,
        description="Exponential backoff base delay in seconds",
    )

    # Record janitor
    cleanup_interval_seconds: float = Field(
        default=30 * 60,
        description="How often finished job records are purged",
    )
    completed_max_age_seconds: int = Field(
        default=3600,
        description="Completed records older than this are purged",
    )
    completed_keep: int = Field(
        default=100,
        description="Most recent completed records always kept",
    )
    failed_max_age_seconds: int = Field(
        default=24 * 3600,
        description="Failed records older than this are purged",
    )
    failed_keep: int = Field(
        default=200,
        description="Most recent failed records always kept",
    )

    @property
    def broker_url(self) -> str:
        """
        Celery broker URL.

        Returns:
            str: Celery-compatible broker URL
        """
        return self.redis_url

    @property
    def result_backend_url(self) -> str:
        """
        Celery result backend URL.

        Returns:
            str: Celery-compatible result backend URL
        """
        return self.redis_url
