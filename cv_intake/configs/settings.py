"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI and the worker.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from cv_intake.configs.api import ApiSettings
from cv_intake.configs.base import BaseSettings
from cv_intake.configs.celery_config import CelerySettings
from cv_intake.configs.pipeline import PipelineSettings
from cv_intake.configs.storage import StorageSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    api: ApiSettings = Field(default_factory=ApiSettings)
    celery: CelerySettings = Field(default_factory=CelerySettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from cv_intake.configs import get_settings
        settings = get_settings()
    """
    return Settings()
