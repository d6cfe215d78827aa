"""
Upload storage configuration.

Settings for where uploaded CVs are staged before a worker picks them up:
a local directory shared with the worker, or an S3 bucket.

Dependencies: pydantic_settings
System role: Storage mode and object-store configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Settings for upload staging and S3 object storage."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    mode: str = Field(
        default="local",
        description="Upload storage mode: 'local' (shared directory) or 's3'",
    )
    local_upload_path: str = Field(
        default="uploads",
        description="Directory for locally staged uploads (relative to the working directory)",
    )
    bucket: str = Field(default="", description="S3 bucket for staged uploads")
    region: str = Field(default="us-east-1", description="AWS region for the S3 bucket")
    max_file_size_bytes: int = Field(
        default=50 * 1024 * 1024,
        description="Per-file upload size limit (default 50MB)",
    )
    temp_dir: str | None = Field(
        default=None,
        description="Parent directory for fetched temp files (system temp dir if unset)",
    )
