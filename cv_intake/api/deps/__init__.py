"""API dependencies."""

from .dependencies import get_job_producer, get_service_cache, get_settings_dependency

__all__ = ["get_job_producer", "get_service_cache", "get_settings_dependency"]
