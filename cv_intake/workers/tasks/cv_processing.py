"""
CV processing Celery tasks.

process_cv(job, retry_policy): one pipeline attempt per delivery. Retries use
the policy carried in the message; once it is exhausted the job is accounted
as FAILED exactly once and the task fails.

purge_job_records(): periodic retention pass over finished job records.

Dependencies: celery, cv_intake.workers.runtime
System role: Async CV processing tasks
"""

import logging

from celery import Task, states
from celery.signals import worker_shutdown

from cv_intake.core.models import Job, OutcomeClassification, RetryPolicy
from cv_intake.workers import PROCESS_CV_TASK, PURGE_RECORDS_TASK, celery_app
from cv_intake.workers.runtime import get_worker_runtime

logger = logging.getLogger(__name__)


class JobRecordTask(Task):
    """Drops a job's result record once the job is terminal."""

    def after_return(self, status, retval, task_id, args, kwargs, einfo):
        if status not in (states.SUCCESS, states.FAILURE):
            return
        try:
            self.backend.forget(task_id)
        except Exception as e:
            logger.warning(
                "%s:after_return - Could not remove job record %s: %s", __name__, task_id, e
            )


class RetryRequested(Exception):
    """Signals that a failed attempt should be re-queued after `countdown` seconds."""

    def __init__(self, exc: Exception, countdown: float) -> None:
        self.exc = exc
        self.countdown = countdown
        super().__init__(str(exc))


def run_attempt(consumer, job: Job, policy: RetryPolicy, retries_done: int) -> dict:
    """
    Run one attempt and decide what the transport does next.

    Args:
        consumer: JobConsumer
        job: Job to process
        policy: Retry policy carried with the job
        retries_done: Retries already performed for this job

    Returns:
        dict: Task result on success

    Raises:
        RetryRequested: Another attempt is allowed
        Exception: The last error once attempts are exhausted (already accounted)
    """
    try:
        event = consumer.process(job)
    except Exception as exc:
        if policy.allows_retry(retries_done + 1):
            raise RetryRequested(exc, policy.delay_for(retries_done)) from exc
        consumer.on_terminal_failure(job, exc)
        raise
    return {
        "ok": True,
        "alreadyApplied": event.classification is OutcomeClassification.ALREADY_PROCESSED,
    }


@celery_app.task(bind=True, base=JobRecordTask, name=PROCESS_CV_TASK)
def process_cv(self, job: dict, retry_policy: dict) -> dict:
    """
    Process one CV job.

    Args:
        job: Serialized Job
        retry_policy: Serialized RetryPolicy

    Returns:
        dict: {"ok": True, "alreadyApplied": bool}
    """
    job_model = Job.model_validate(job)
    policy = RetryPolicy.model_validate(retry_policy)
    consumer = get_worker_runtime().consumer

    try:
        return run_attempt(consumer, job_model, policy, self.request.retries)
    except RetryRequested as retry:
        logger.info(
            "%s:process_cv - Retrying %s in %.1fs (attempt %d/%d)",
            __name__,
            job_model.original_name,
            retry.countdown,
            self.request.retries + 2,
            policy.attempts,
        )
        raise self.retry(
            exc=retry.exc,
            countdown=retry.countdown,
            max_retries=policy.attempts - 1,
        )


@celery_app.task(name=PURGE_RECORDS_TASK)
def purge_job_records() -> dict:
    """Purge finished job records past their retention."""
    try:
        return get_worker_runtime().janitor.purge()
    except Exception as e:
        logger.error("%s:purge_job_records - Cleanup error: %s: %s", __name__, type(e).__name__, e)
        return {}


@worker_shutdown.connect
def _on_worker_shutdown(sender=None, **kwargs) -> None:
    """Called when the Celery worker shuts down, after the in-flight job."""
    runtime = get_worker_runtime()
    runtime.janitor.on_shutdown(runtime.stats)
    runtime.close()
