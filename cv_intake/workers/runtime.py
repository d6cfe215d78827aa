"""
Worker runtime container.

Builds and caches the consumer-side object graph (clients, resolver, executor,
aggregator, statistics) once per worker process. Batch state lives here for
the lifetime of the process.

Dependencies: cv_intake.configs, cv_intake.core, cv_intake.boundary
System role: DI container for the worker
"""

import httpx

from cv_intake.boundary.http import ApplicationBackendClient, ParserClient
from cv_intake.boundary.storage import S3ObjectStore
from cv_intake.configs import Settings, get_settings
from cv_intake.core.aggregator import BatchAggregator
from cv_intake.core.consumer import JobConsumer
from cv_intake.core.janitor import LifecycleJanitor
from cv_intake.core.outcome_channel import OutcomeChannel
from cv_intake.core.pipeline import PipelineExecutor
from cv_intake.core.report_dispatcher import ReportDispatcher
from cv_intake.core.stats import GlobalStats
from cv_intake.core.storage_resolver import StorageResolver


class WorkerRuntime:
    """Container for cached worker components."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._http_client = None
        self._object_store = None
        self._consumer = None
        self._janitor = None
        self.stats = GlobalStats()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def http_client(self) -> httpx.Client:
        """Get shared HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.Client()
        return self._http_client

    @property
    def object_store(self) -> S3ObjectStore | None:
        """Get cached S3 store (None unless storage mode is s3)."""
        if self._object_store is None and self._settings.storage.mode.lower() == "s3":
            self._object_store = S3ObjectStore(
                bucket=self._settings.storage.bucket,
                region=self._settings.storage.region,
            )
        return self._object_store

    @property
    def consumer(self) -> JobConsumer:
        """Get cached job consumer with its pipeline and aggregator."""
        if self._consumer is None:
            pipeline_settings = self._settings.pipeline
            backend = ApplicationBackendClient(
                base_url=pipeline_settings.backend_url,
                timeout=pipeline_settings.backend_timeout_seconds,
                report_timeout=pipeline_settings.report_timeout_seconds,
                client=self.http_client,
            )
            parser = ParserClient(
                url=pipeline_settings.parser_url,
                timeout=pipeline_settings.parser_timeout_seconds,
                client=self.http_client,
            )
            channel = OutcomeChannel()
            executor = PipelineExecutor(
                resolver=StorageResolver(
                    object_store=self.object_store,
                    temp_dir=self._settings.storage.temp_dir,
                ),
                parser=parser,
                backend=backend,
                channel=channel,
                pacing_delay=pipeline_settings.worker_delay_seconds,
            )
            aggregator = BatchAggregator(
                dispatcher=ReportDispatcher(backend),
                stats=self.stats,
                completed_memory=pipeline_settings.completed_batch_memory,
            )
            self._consumer = JobConsumer(executor, aggregator, channel, self.stats)
        return self._consumer

    @property
    def janitor(self) -> LifecycleJanitor:
        """Get cached janitor over the Redis result records."""
        if self._janitor is None:
            from cv_intake.workers.record_store import RedisJobRecordStore

            store = RedisJobRecordStore.from_url(self._settings.celery.result_backend_url)
            self._janitor = LifecycleJanitor.from_settings(store, self._settings.celery)
        return self._janitor

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
        self._http_client = None
        self._consumer = None


_runtime: WorkerRuntime | None = None


def get_worker_runtime() -> WorkerRuntime:
    """Get worker runtime singleton."""
    global _runtime
    if _runtime is None:
        _runtime = WorkerRuntime()
    return _runtime
