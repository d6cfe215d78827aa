"""
Batch tracking state.

Mutable counters for one upload batch, owned by the batch aggregator.
"""

from dataclasses import dataclass, field

from .outcome import OutcomeClassification


@dataclass
class BatchState:
    """Aggregate counters for one batch.

    Invariant: success + failed + already_processed <= total_files.
    """

    batch_id: str
    total_files: int
    auth_token: str | None = None
    user_id: str | None = None
    success_count: int = 0
    failed_count: int = 0
    already_processed_count: int = 0
    failed_files: list[str] = field(default_factory=list)
    already_processed_files: list[str] = field(default_factory=list)
    settled_jobs: set[str] = field(default_factory=set)

    @property
    def settled_count(self) -> int:
        return self.success_count + self.failed_count + self.already_processed_count

    @property
    def is_complete(self) -> bool:
        return self.settled_count == self.total_files

    def record(self, job_id: str, file_name: str, classification: OutcomeClassification) -> bool:
        """
        Count one job outcome.

        Args:
            job_id: Job the outcome belongs to
            file_name: Original file name
            classification: Terminal classification

        Returns:
            bool: False when the job was already counted or the batch is full
        """
        if job_id in self.settled_jobs or self.settled_count >= self.total_files:
            return False

        self.settled_jobs.add(job_id)
        if classification is OutcomeClassification.SUCCESS:
            self.success_count += 1
        elif classification is OutcomeClassification.ALREADY_PROCESSED:
            self.already_processed_count += 1
            self.already_processed_files.append(file_name)
        else:
            self.failed_count += 1
            self.failed_files.append(file_name)
        return True

    def to_report(self) -> dict:
        """Payload for the backend's bulk upload report endpoint."""
        return {
            "totalUploaded": self.total_files,
            "successCount": self.success_count,
            "failedCount": self.failed_count,
            "alreadyAppliedCount": self.already_processed_count,
            "failedFiles": list(self.failed_files),
            "alreadyAppliedFiles": list(self.already_processed_files),
        }
