"""
Pipeline executor.

Drives one job attempt through resolve -> parse -> submit -> classify ->
cleanup -> pace, and publishes the job's outcome event.

Retry is owned by the queue transport: any error raised before classification
propagates so the transport can re-run the whole attempt from resolution.
When the transport gives up it calls fail(), which publishes the FAILED event.

Dependencies: cv_intake.core.storage_resolver, cv_intake.boundary.http
System role: Per-job state machine (coordinates only)
"""

import logging
import time
from collections.abc import Callable
from enum import Enum

from cv_intake.core.exceptions import UpstreamError
from cv_intake.core.models import Job, OutcomeClassification, OutcomeEvent, RemoteFileRef
from cv_intake.core.outcome_channel import OutcomeChannel
from cv_intake.core.storage_resolver import StorageResolver
from cv_intake.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)

ALREADY_APPLIED_STATUS = 403


class PipelineStage(str, Enum):
    """States of one job attempt, in execution order."""

    RESOLVING = "resolving"
    PARSING = "parsing"
    SUBMITTING = "submitting"
    CLASSIFYING = "classifying"
    CLEANING_UP = "cleaning_up"
    PACING = "pacing"
    DONE = "done"


class PipelineExecutor:
    """Run CV jobs through the parse/apply pipeline."""

    def __init__(
        self,
        resolver: StorageResolver,
        parser,
        backend,
        channel: OutcomeChannel,
        pacing_delay: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize executor.

        Args:
            resolver: Storage resolver for job file references
            parser: Client exposing parse(local_path, file_name, location)
            backend: Client exposing apply(target_id, local_path, file_name, candidate_data, auth_token)
            channel: Outcome channel receiving one event per terminal outcome
            pacing_delay: Seconds to hold after each classified job
            sleep: Sleep function (injectable for tests)
        """
        self._resolver = resolver
        self._parser = parser
        self._backend = backend
        self._channel = channel
        self._pacing_delay = pacing_delay
        self._sleep = sleep

    def run(self, job: Job) -> OutcomeEvent:
        """
        Run one attempt of a job.

        Args:
            job: Job to process

        Returns:
            OutcomeEvent: SUCCESS or ALREADY_PROCESSED event (already published)

        Raises:
            ResolutionError: File could not be made available
            UpstreamError: Parsing or apply failed (UpstreamTimeout on timeouts)
            Exception: Anything else raised mid-attempt; all are retryable
        """
        local_path: str | None = None
        start_time = time.perf_counter()
        stage = self._enter(job, PipelineStage.RESOLVING)

        try:
            local_path = self._resolver.resolve(job.file_ref)

            stage = self._enter(job, PipelineStage.PARSING)
            candidate_data = self._parser.parse(local_path, job.original_name, job.location)
            if job.location is not None:
                candidate_data = {**candidate_data, "location": job.location}

            stage = self._enter(job, PipelineStage.SUBMITTING)
            classification = self._submit(job, local_path, candidate_data)

        except Exception as e:
            log_with_context(
                logger,
                logging.ERROR,
                f"{__name__}:run - Job failed while {stage.value}: {type(e).__name__}: {e}",
                job=job,
                stage=stage.value,
            )
            # Local uploads are kept for the next attempt; fail() removes them.
            if isinstance(job.file_ref, RemoteFileRef):
                self._resolver.cleanup(local_path)
            raise

        self._enter(job, PipelineStage.CLEANING_UP)
        self._resolver.cleanup(local_path)

        self._enter(job, PipelineStage.PACING)
        if self._pacing_delay > 0:
            self._sleep(self._pacing_delay)

        event = OutcomeEvent.for_job(job, classification)
        self._channel.publish(event)
        self._enter(job, PipelineStage.DONE)

        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:run - Job {classification.value}",
            job=job,
            processing_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return event

    @staticmethod
    def _enter(job: Job, stage: PipelineStage) -> PipelineStage:
        logger.debug("%s:run - %s %s", __name__, job.job_id, stage.value)
        return stage

    def _submit(self, job: Job, local_path: str, candidate_data: dict) -> OutcomeClassification:
        """Submit to the backend and classify the response."""
        try:
            response = self._backend.apply(
                job.target_id,
                local_path,
                job.original_name,
                candidate_data,
                job.auth_token,
            )
        except UpstreamError as e:
            self._enter(job, PipelineStage.CLASSIFYING)
            if e.status_code == ALREADY_APPLIED_STATUS:
                logger.warning(
                    "%s:_submit - CV %s already applied (403)",
                    __name__,
                    job.original_name,
                    extra={"job_id": job.job_id, "target_id": job.target_id},
                )
                return OutcomeClassification.ALREADY_PROCESSED
            raise

        self._enter(job, PipelineStage.CLASSIFYING)
        if not response.get("status"):
            raise UpstreamError(
                "Backend did not confirm the application",
                service="backend",
                details={"job_id": job.job_id, "response": response},
            )
        return OutcomeClassification.SUCCESS

    def fail(self, job: Job, exc: BaseException | None = None) -> OutcomeEvent:
        """
        Record a job's terminal failure after retries are exhausted.

        Deletes the job's local upload (best-effort) and publishes a FAILED event.

        Args:
            job: Job that exhausted its attempts
            exc: Last error raised

        Returns:
            OutcomeEvent: The FAILED event (already published)
        """
        if not isinstance(job.file_ref, RemoteFileRef):
            self._resolver.cleanup(job.file_ref.path)

        error = f"{type(exc).__name__}: {exc}" if exc is not None else None
        event = OutcomeEvent.for_job(job, OutcomeClassification.FAILED, error=error)
        self._channel.publish(event)

        log_with_context(
            logger,
            logging.ERROR,
            f"{__name__}:fail - CV {job.original_name} failed permanently",
            job=job,
            error=error,
        )
        return event
