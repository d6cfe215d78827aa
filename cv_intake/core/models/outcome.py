"""
Outcome models for CV processing.

An OutcomeEvent is published once per job that reaches a terminal decision
and consumed by the batch aggregator.

Dependencies: pydantic
System role: Event contract between pipeline executor and batch aggregator
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from .job import Job


class OutcomeClassification(str, Enum):
    """Terminal result of processing one job."""

    SUCCESS = "success"
    ALREADY_PROCESSED = "already_processed"
    FAILED = "failed"


class OutcomeEvent(BaseModel):
    """Terminal outcome of one job."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    batch_id: str
    file_name: str
    classification: OutcomeClassification
    total_in_batch: int
    auth_token: str | None = None
    user_id: str | None = None
    error: str | None = None

    @classmethod
    def for_job(
        cls,
        job: Job,
        classification: OutcomeClassification,
        error: str | None = None,
    ) -> "OutcomeEvent":
        """Build the event for a job's terminal classification."""
        return cls(
            job_id=job.job_id,
            batch_id=job.batch_id,
            file_name=job.original_name,
            classification=classification,
            total_in_batch=job.total_in_batch,
            auth_token=job.auth_token,
            user_id=job.user_id,
            error=error,
        )
