"""
Shared settings for the API and worker processes.

Both processes read the same .env file; the aggregated Settings class builds
on this one.

Dependencies: pydantic, pydantic_settings
System role: Process-wide settings (environment, log level)
"""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict


class BaseSettings(PydanticBaseSettings):
    """Settings shared by the upload API and the CV worker."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Deployment environment name, logged at startup",
    )
    debug: bool = Field(default=False, description="Verbose pipeline logging")
    log_level: str = Field(default="INFO", description="Root log level for API and worker")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def effective_log_level(self) -> str:
        """DEBUG when debug is on, otherwise log_level."""
        return "DEBUG" if self.debug else self.log_level
