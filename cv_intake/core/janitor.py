"""
Lifecycle janitor.

Bounds the queue's storage by purging old finished job records, and logs the
final statistics when the worker shuts down. Failures are logged and ignored;
nothing here affects pipeline correctness.

Dependencies: logging (stdlib)
System role: Queue record retention and shutdown reporting
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Protocol

from cv_intake.core.stats import GlobalStats

logger = logging.getLogger(__name__)


class RecordState(str, Enum):
    """Terminal state of a queue record."""

    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class JobRecord:
    """A finished job as stored by the transport."""

    job_id: str
    state: RecordState
    finished_at: datetime


@dataclass(frozen=True)
class RetentionRule:
    """Records older than max_age are purged, except the newest `keep`."""

    state: RecordState
    max_age: timedelta
    keep: int


class JobRecordStore(Protocol):
    """Finished-record access a transport exposes to the janitor."""

    def finished_records(self, state: RecordState) -> list[JobRecord]: ...

    def delete(self, job_ids: Iterable[str]) -> int: ...


class InMemoryJobRecordStore:
    """Record store backing the inline transport."""

    def __init__(self) -> None:
        self._records: dict[str, JobRecord] = {}

    def add(self, job_id: str, state: RecordState, finished_at: datetime) -> None:
        self._records[job_id] = JobRecord(job_id, state, finished_at)

    def finished_records(self, state: RecordState) -> list[JobRecord]:
        return [r for r in self._records.values() if r.state is state]

    def delete(self, job_ids: Iterable[str]) -> int:
        removed = 0
        for job_id in job_ids:
            if self._records.pop(job_id, None) is not None:
                removed += 1
        return removed

    def __len__(self) -> int:
        return len(self._records)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleJanitor:
    """Purge finished queue records and report on shutdown."""

    def __init__(
        self,
        store: JobRecordStore,
        rules: list[RetentionRule],
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._rules = rules
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        store: JobRecordStore,
        settings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> "LifecycleJanitor":
        """
        Build a janitor from CelerySettings retention values.

        Args:
            store: Record store to purge
            settings: CelerySettings instance
            clock: Current-time source
        """
        return cls(
            store,
            [
                RetentionRule(
                    RecordState.COMPLETED,
                    timedelta(seconds=settings.completed_max_age_seconds),
                    settings.completed_keep,
                ),
                RetentionRule(
                    RecordState.FAILED,
                    timedelta(seconds=settings.failed_max_age_seconds),
                    settings.failed_keep,
                ),
            ],
            clock=clock,
        )

    def purge(self) -> dict[str, int]:
        """
        Apply every retention rule once.

        Returns:
            dict[str, int]: Records removed per state (-1 when a rule errored)
        """
        removed: dict[str, int] = {}
        now = self._clock()

        for rule in self._rules:
            try:
                records = sorted(
                    self._store.finished_records(rule.state),
                    key=lambda r: r.finished_at,
                    reverse=True,
                )
                cutoff = now - rule.max_age
                expired = [r.job_id for r in records[rule.keep:] if r.finished_at < cutoff]
                removed[rule.state.value] = self._store.delete(expired) if expired else 0
            except Exception as e:
                logger.error(
                    "%s:purge - Cleanup of %s records failed: %s: %s",
                    __name__,
                    rule.state.value,
                    type(e).__name__,
                    e,
                )
                removed[rule.state.value] = -1

        logger.info("%s:purge - Job record cleanup completed", __name__, extra={"removed": removed})
        return removed

    @staticmethod
    def on_shutdown(stats: GlobalStats) -> None:
        """Log the final statistics."""
        logger.info("%s:on_shutdown - Worker shutting down", __name__)
        stats.log_summary(logger, title="Final Upload Statistics")
