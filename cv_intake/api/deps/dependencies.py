"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: cv_intake.configs, cv_intake.core.producer, cv_intake.workers
System role: DI container for the upload API
"""

from functools import lru_cache

from cv_intake.configs import Settings, get_settings
from cv_intake.core.janitor import LifecycleJanitor
from cv_intake.core.models import RetryPolicy
from cv_intake.core.producer import FileStager, JobProducer
from cv_intake.core.transport import InlineTransport


class ServiceCache:
    """Container for cached producer-side instances."""

    def __init__(self):
        self._object_store = None
        self._runtime = None
        self._transport = None
        self._job_producer = None

    @property
    def object_store(self):
        """Get cached S3 store (s3 storage mode only)."""
        if self._object_store is None:
            from cv_intake.boundary.storage import S3ObjectStore

            settings = get_settings()
            self._object_store = S3ObjectStore(
                bucket=settings.storage.bucket,
                region=settings.storage.region,
            )
        return self._object_store

    @property
    def transport(self):
        """Get cached queue transport (Celery, or inline with an in-process worker)."""
        if self._transport is None:
            from cv_intake.workers.transport import get_transport

            settings = get_settings()
            if settings.celery.transport.lower() == "inline":
                from cv_intake.workers.runtime import WorkerRuntime

                self._runtime = WorkerRuntime(settings)
            self._transport = get_transport(settings, runtime=self._runtime)
        return self._transport

    @property
    def job_producer(self) -> JobProducer:
        """Get cached job producer."""
        if self._job_producer is None:
            settings = get_settings()
            mode = settings.storage.mode.lower()
            stager = FileStager(
                mode=mode,
                object_store=self.object_store if mode == "s3" else None,
            )
            retry_policy = RetryPolicy(
                attempts=settings.celery.job_attempts,
                delay_seconds=settings.celery.job_backoff_delay_seconds,
            )
            self._job_producer = JobProducer(
                transport=self.transport, stager=stager, retry_policy=retry_policy
            )
        return self._job_producer

    def clear(self) -> None:
        """Stop the in-process worker (if any) and drop cached instances."""
        if isinstance(self._transport, InlineTransport):
            self._transport.close()
        if self._runtime is not None:
            LifecycleJanitor.on_shutdown(self._runtime.stats)
            self._runtime.close()
        self._object_store = None
        self._runtime = None
        self._transport = None
        self._job_producer = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_job_producer() -> JobProducer:
    """Get the shared job producer."""
    return get_service_cache().job_producer
