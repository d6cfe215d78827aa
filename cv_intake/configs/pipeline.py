"""
Configuration settings for the CV processing pipeline.

Downstream service URLs, per-call timeouts and the pacing delay applied after
each successfully classified CV.

Dependencies: pydantic, pydantic_settings
System role: Centralized pipeline configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """Settings for the CV processing pipeline."""

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    parser_url: str = Field(
        default="http://localhost:8001/api/cv-to-json",
        description="CV-to-JSON parsing service endpoint",
    )
    backend_url: str = Field(
        default="http://localhost:5000",
        description="Application backend base URL",
    )

    parser_timeout_seconds: float = Field(default=120.0, description="Parsing call timeout")
    backend_timeout_seconds: float = Field(default=30.0, description="Apply call timeout")
    report_timeout_seconds: float = Field(default=30.0, description="Batch report call timeout")

    worker_delay_seconds: float = Field(
        default=10.0,
        description="Pause after each classified CV to rate-limit downstream services",
    )
    completed_batch_memory: int = Field(
        default=10_000,
        description="How many completed batch ids are remembered to reject late events",
    )
