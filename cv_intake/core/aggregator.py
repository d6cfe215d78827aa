"""
Batch aggregator.

Owns the per-batch state store. Counts one outcome event per job, detects
when a batch is fully accounted for, hands the batch to the report dispatcher
and forgets it.

Completed batch ids are remembered (bounded) so a late or redelivered event
cannot recreate a phantom batch or trigger a second report.

Dependencies: cv_intake.core.models, cv_intake.core.report_dispatcher
System role: Batch completion detection
"""

import logging
import threading
from collections import OrderedDict

from cv_intake.core.models import BatchState, OutcomeEvent
from cv_intake.core.outcome_channel import OutcomeChannel
from cv_intake.core.report_dispatcher import ReportDispatcher
from cv_intake.core.stats import GlobalStats

logger = logging.getLogger(__name__)


class BatchAggregator:
    """Track batch progress from outcome events."""

    def __init__(
        self,
        dispatcher: ReportDispatcher,
        stats: GlobalStats | None = None,
        completed_memory: int = 10_000,
    ) -> None:
        """
        Initialize aggregator.

        Args:
            dispatcher: Receives each batch exactly once on completion
            stats: Global counters updated for every accepted event
            completed_memory: Completed batch ids remembered to reject late events
        """
        self._dispatcher = dispatcher
        self._stats = stats
        self._completed_memory = completed_memory
        self._batches: dict[str, BatchState] = {}
        self._completed: OrderedDict[str, None] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, batch_id: str) -> BatchState | None:
        return self._batches.get(batch_id)

    def __contains__(self, batch_id: str) -> bool:
        return batch_id in self._batches

    def __len__(self) -> int:
        return len(self._batches)

    def is_completed(self, batch_id: str) -> bool:
        return batch_id in self._completed

    def on_outcome(self, event: OutcomeEvent) -> bool:
        """
        Count one job outcome.

        Args:
            event: Terminal outcome of one job

        Returns:
            bool: True if the event completed its batch
        """
        with self._lock:
            if event.batch_id in self._completed:
                logger.warning(
                    "%s:on_outcome - Ignoring late event for completed batch %s",
                    __name__,
                    event.batch_id,
                    extra={"job_id": event.job_id, "file_name": event.file_name},
                )
                return False

            batch = self._batches.get(event.batch_id)
            if batch is None:
                batch = BatchState(
                    batch_id=event.batch_id,
                    total_files=event.total_in_batch,
                    auth_token=event.auth_token,
                    user_id=event.user_id,
                )
                self._batches[event.batch_id] = batch

            if not batch.record(event.job_id, event.file_name, event.classification):
                logger.warning(
                    "%s:on_outcome - Ignoring duplicate event for job %s",
                    __name__,
                    event.job_id,
                    extra={"batch_id": event.batch_id, "file_name": event.file_name},
                )
                return False

            if self._stats is not None:
                self._stats.record(event)

            if not batch.is_complete:
                return False

            del self._batches[event.batch_id]
            self._remember_completed(event.batch_id)

        logger.info(
            "%s:on_outcome - Batch %s completed: %d success, %d already applied, %d failed",
            __name__,
            batch.batch_id,
            batch.success_count,
            batch.already_processed_count,
            batch.failed_count,
        )
        self._dispatcher.dispatch(batch)
        return True

    def consume(self, channel: OutcomeChannel) -> int:
        """
        Apply every pending event on the channel, in order.

        Returns:
            int: Number of batches completed
        """
        return sum(1 for event in channel.drain() if self.on_outcome(event))

    def _remember_completed(self, batch_id: str) -> None:
        self._completed[batch_id] = None
        while len(self._completed) > self._completed_memory:
            self._completed.popitem(last=False)
