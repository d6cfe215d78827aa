"""Object storage adapters."""

from .s3_client import S3ObjectStore, S3StorageError

__all__ = ["S3ObjectStore", "S3StorageError"]
