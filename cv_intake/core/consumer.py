"""
Job consumer.

Worker-side handler a transport calls for each delivery. Wires the pipeline
executor to the outcome channel, batch aggregator and global statistics.

Dependencies: cv_intake.core.pipeline, cv_intake.core.aggregator
System role: Consumer entry point (coordinates only)
"""

import logging

from cv_intake.core.aggregator import BatchAggregator
from cv_intake.core.models import Job, OutcomeEvent
from cv_intake.core.outcome_channel import OutcomeChannel
from cv_intake.core.pipeline import PipelineExecutor
from cv_intake.core.stats import GlobalStats

logger = logging.getLogger(__name__)


class JobConsumer:
    """Process deliveries and account for their outcomes."""

    def __init__(
        self,
        executor: PipelineExecutor,
        aggregator: BatchAggregator,
        channel: OutcomeChannel,
        stats: GlobalStats,
    ) -> None:
        self.executor = executor
        self.aggregator = aggregator
        self.channel = channel
        self.stats = stats

    def process(self, job: Job) -> OutcomeEvent:
        """
        Run one attempt. Errors propagate to the transport for retry.

        Returns:
            OutcomeEvent: SUCCESS or ALREADY_PROCESSED event
        """
        event = self.executor.run(job)
        self._settle()
        return event

    def on_terminal_failure(self, job: Job, exc: BaseException) -> OutcomeEvent:
        """Account for a job whose attempts are exhausted."""
        event = self.executor.fail(job, exc)
        self._settle()
        return event

    def _settle(self) -> None:
        self.aggregator.consume(self.channel)
        self.stats.log_summary(logger)
