"""
Queue transport capability.

The core depends only on these interfaces:
- QueueTransport.enqueue(job, retry_policy) on the producer side
- JobHandler.process(job) / on_terminal_failure(job, exc) on the consumer side

A transport delivers each job at least once, re-runs process() after a
failure until the job's retry policy is exhausted, then calls
on_terminal_failure() exactly once.

InlineTransport is the in-process implementation used for local development
and tests; the Celery implementation lives in cv_intake.workers.

Dependencies: cv_intake.core.models
System role: Abstract queue boundary
"""

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Protocol

from cv_intake.core.janitor import InMemoryJobRecordStore, RecordState
from cv_intake.core.models import Job, RetryPolicy

logger = logging.getLogger(__name__)


class JobHandler(Protocol):
    """Consumer-side hooks invoked by a transport."""

    def process(self, job: Job) -> object: ...

    def on_terminal_failure(self, job: Job, exc: BaseException) -> object: ...


class QueueTransport(Protocol):
    """Producer-side enqueue capability."""

    def enqueue(self, job: Job, retry_policy: RetryPolicy) -> str: ...


class InlineTransport:
    """In-process FIFO transport with per-job retry and backoff.

    Jobs run one at a time when run_pending() is called; concurrent callers
    never run two jobs at once.
    """

    def __init__(
        self,
        handler: JobHandler | None = None,
        sleep: Callable[[float], None] = time.sleep,
        record_store: InMemoryJobRecordStore | None = None,
        keep_records: bool = False,
    ) -> None:
        """
        Initialize inline transport.

        Args:
            handler: Consumer hooks (may be bound later)
            sleep: Sleep used for retry backoff
            record_store: Where finished job records are written
            keep_records: Keep finished records instead of removing them at once
        """
        self._handler = handler
        self._sleep = sleep
        self._pending: deque[tuple[Job, RetryPolicy]] = deque()
        self._lock = threading.Lock()
        self._draining = threading.Lock()
        self._closed = False
        self.record_store = record_store or InMemoryJobRecordStore()
        self._keep_records = keep_records
        self.attempts: dict[str, int] = {}

    def bind(self, handler: JobHandler) -> None:
        self._handler = handler

    def enqueue(self, job: Job, retry_policy: RetryPolicy) -> str:
        with self._lock:
            if self._closed:
                raise RuntimeError("Transport is closed")
            self._pending.append((job, retry_policy))
        return job.job_id

    def pending(self) -> int:
        return len(self._pending)

    def close(self) -> None:
        """Stop taking new work; a job already running finishes."""
        self._closed = True

    def run_pending(self) -> int:
        """
        Run queued jobs until the queue is empty or the transport is closed.

        Returns:
            int: Jobs that reached a terminal state
        """
        if self._handler is None:
            raise RuntimeError("No job handler bound to transport")

        finished = 0
        while self._pending and not self._closed:
            if not self._draining.acquire(blocking=False):
                return finished
            try:
                finished += self._drain()
            finally:
                self._draining.release()
        return finished

    def _drain(self) -> int:
        finished = 0
        while not self._closed:
            with self._lock:
                if not self._pending:
                    break
                job, policy = self._pending.popleft()
            self._run(job, policy)
            finished += 1
        return finished

    def _run(self, job: Job, policy: RetryPolicy) -> None:
        attempts_made = 0
        while True:
            attempts_made += 1
            self.attempts[job.job_id] = attempts_made
            try:
                self._handler.process(job)
            except Exception as exc:
                if policy.allows_retry(attempts_made):
                    delay = policy.delay_for(attempts_made - 1)
                    logger.info(
                        "%s:_run - Retrying job %s in %.1fs (attempt %d/%d)",
                        __name__,
                        job.job_id,
                        delay,
                        attempts_made + 1,
                        policy.attempts,
                    )
                    self._sleep(delay)
                    continue
                self._handler.on_terminal_failure(job, exc)
                self._finish(job, RecordState.FAILED)
                return
            self._finish(job, RecordState.COMPLETED)
            return

    def _finish(self, job: Job, state: RecordState) -> None:
        self.record_store.add(job.job_id, state, datetime.now(timezone.utc))
        if not self._keep_records:
            self.record_store.delete([job.job_id])
