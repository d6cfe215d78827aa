"""
Outcome event channel.

FIFO hand-off between the pipeline executor (producer of outcome events) and
the batch aggregator (sole consumer). Events are consumed in publish order.

Dependencies: queue (stdlib)
System role: Decouples job execution from batch state mutation
"""

import queue
from collections.abc import Iterator

from cv_intake.core.models import OutcomeEvent


class OutcomeChannel:
    """Thread-safe FIFO of outcome events."""

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[OutcomeEvent] = queue.SimpleQueue()

    def publish(self, event: OutcomeEvent) -> None:
        self._queue.put(event)

    def drain(self) -> Iterator[OutcomeEvent]:
        """Yield pending events until the channel is empty."""
        while True:
            try:
                yield self._queue.get_nowait()
            except queue.Empty:
                return

    def __len__(self) -> int:
        return self._queue.qsize()
