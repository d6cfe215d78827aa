"""
Queue transport factory.

'celery' publishes jobs to the Redis-backed Celery queue consumed by the
worker process. 'inline' runs jobs inside the calling process (local dev).

Dependencies: celery, cv_intake.core.transport, cv_intake.configs
System role: Transport instantiation and selection
"""

import logging

from celery import Celery

from cv_intake.core.models import Job, RetryPolicy
from cv_intake.core.transport import InlineTransport

logger = logging.getLogger(__name__)


class CeleryTransport:
    """Enqueue jobs onto the Celery CV queue."""

    def __init__(self, app: Celery, task_name: str, queue: str) -> None:
        """
        Initialize Celery transport.

        Args:
            app: Celery application
            task_name: Registered name of the CV processing task
            queue: Queue to publish to
        """
        self._app = app
        self._task_name = task_name
        self._queue = queue

    def enqueue(self, job: Job, retry_policy: RetryPolicy) -> str:
        """
        Publish one job. The job id doubles as the Celery task id.

        Returns:
            str: Task id
        """
        result = self._app.send_task(
            self._task_name,
            kwargs={"job": job.to_message(), "retry_policy": retry_policy.model_dump(mode="json")},
            task_id=job.job_id,
            queue=self._queue,
        )
        return result.id


def get_transport(settings, runtime=None):
    """
    Factory function to get the queue transport from configuration.

    Args:
        settings: Application settings
        runtime: WorkerRuntime whose consumer runs inline jobs (inline mode)

    Returns:
        CeleryTransport or InlineTransport: Configured transport

    Raises:
        ValueError: If CELERY_TRANSPORT is invalid
    """
    transport_type = settings.celery.transport.lower()

    if transport_type == "celery":
        from cv_intake.workers import PROCESS_CV_TASK, celery_app

        logger.info(f"{__name__}:get_transport - Using Celery transport (production mode)")
        return CeleryTransport(celery_app, PROCESS_CV_TASK, settings.celery.queue_name)

    elif transport_type == "inline":
        from cv_intake.workers.runtime import WorkerRuntime

        logger.info(f"{__name__}:get_transport - Using inline transport (local dev mode)")
        runtime = runtime or WorkerRuntime(settings)
        transport = InlineTransport(handler=runtime.consumer)
        return transport

    else:
        raise ValueError(
            f"Invalid CELERY_TRANSPORT: {transport_type}. "
            f"Must be 'celery' (production) or 'inline' (local dev)."
        )
