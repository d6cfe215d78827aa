"""
Unit tests for BatchAggregator.

Dependencies: pytest, unittest.mock, cv_intake.core.aggregator
System role: Batch completion detection validation
"""

import threading
from unittest.mock import MagicMock

from cv_intake.core.aggregator import BatchAggregator
from cv_intake.core.models import OutcomeClassification, OutcomeEvent
from cv_intake.core.outcome_channel import OutcomeChannel
from cv_intake.core.stats import GlobalStats


def _event(job_id, classification=OutcomeClassification.SUCCESS, batch_id="batch_1", total=3, name=None):
    return OutcomeEvent(
        job_id=job_id,
        batch_id=batch_id,
        file_name=name or f"{job_id}.pdf",
        classification=classification,
        total_in_batch=total,
        auth_token="tok",
        user_id="u1",
    )


class TestOnOutcome:
    """Test suite for BatchAggregator.on_outcome."""

    def test_creates_state_on_first_event(self):
        """Should create batch state from the first event."""
        aggregator = BatchAggregator(MagicMock())

        aggregator.on_outcome(_event("j1"))

        batch = aggregator.get("batch_1")
        assert batch.total_files == 3
        assert batch.auth_token == "tok"
        assert batch.user_id == "u1"
        assert batch.success_count == 1

    def test_dispatches_once_on_completion(self):
        """Should dispatch the batch exactly once and discard its state."""
        dispatcher = MagicMock()
        aggregator = BatchAggregator(dispatcher)

        results = [aggregator.on_outcome(_event(f"j{i}")) for i in range(3)]

        assert results == [False, False, True]
        dispatcher.dispatch.assert_called_once()
        batch = dispatcher.dispatch.call_args.args[0]
        assert batch.to_report()["successCount"] == 3
        assert "batch_1" not in aggregator
        assert aggregator.is_completed("batch_1")

    def test_completion_is_order_independent(self):
        """Should complete regardless of the classification order."""
        dispatcher = MagicMock()
        aggregator = BatchAggregator(dispatcher)

        aggregator.on_outcome(_event("j1", OutcomeClassification.FAILED, name="a.pdf"))
        aggregator.on_outcome(_event("j2", OutcomeClassification.SUCCESS))
        aggregator.on_outcome(_event("j3", OutcomeClassification.ALREADY_PROCESSED, name="c.pdf"))

        report = dispatcher.dispatch.call_args.args[0].to_report()
        assert report["failedFiles"] == ["a.pdf"]
        assert report["alreadyAppliedFiles"] == ["c.pdf"]

    def test_late_event_after_completion(self):
        """Should ignore events for a completed batch without a second report."""
        dispatcher = MagicMock()
        aggregator = BatchAggregator(dispatcher)
        aggregator.on_outcome(_event("j1", total=1))

        assert aggregator.on_outcome(_event("j2", total=1)) is False

        dispatcher.dispatch.assert_called_once()
        assert len(aggregator) == 0

    def test_duplicate_event_counted_once(self):
        """Should ignore a second event for the same job."""
        stats = GlobalStats()
        aggregator = BatchAggregator(MagicMock(), stats=stats)

        aggregator.on_outcome(_event("j1"))
        aggregator.on_outcome(_event("j1", OutcomeClassification.FAILED))

        assert aggregator.get("batch_1").settled_count == 1
        assert stats.snapshot().total == 1

    def test_batches_are_independent(self):
        """Should track interleaved batches separately."""
        dispatcher = MagicMock()
        aggregator = BatchAggregator(dispatcher)

        aggregator.on_outcome(_event("a1", batch_id="A", total=2))
        aggregator.on_outcome(_event("b1", batch_id="B", total=1))
        aggregator.on_outcome(_event("a2", batch_id="A", total=2))

        dispatched = [call.args[0].batch_id for call in dispatcher.dispatch.call_args_list]
        assert dispatched == ["B", "A"]

    def test_completed_memory_is_bounded(self):
        """Should forget the oldest completed batch ids beyond the limit."""
        aggregator = BatchAggregator(MagicMock(), completed_memory=2)

        for batch_id in ("A", "B", "C"):
            aggregator.on_outcome(_event(f"{batch_id}1", batch_id=batch_id, total=1))

        assert not aggregator.is_completed("A")
        assert aggregator.is_completed("B")
        assert aggregator.is_completed("C")

    def test_concurrent_events(self):
        """Should dispatch once when events arrive from several threads."""
        dispatcher = MagicMock()
        aggregator = BatchAggregator(dispatcher)
        events = [_event(f"j{i}", total=50) for i in range(50)]

        threads = [threading.Thread(target=aggregator.on_outcome, args=(e,)) for e in events]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        dispatcher.dispatch.assert_called_once()


class TestConsume:
    def test_drains_channel_in_order(self):
        """Should apply all pending events and report completed batches."""
        dispatcher = MagicMock()
        aggregator = BatchAggregator(dispatcher)
        channel = OutcomeChannel()
        for i in range(3):
            channel.publish(_event(f"j{i}", name=f"f{i}.pdf", classification=OutcomeClassification.FAILED))

        assert aggregator.consume(channel) == 1
        assert len(channel) == 0
        batch = dispatcher.dispatch.call_args.args[0]
        assert batch.failed_files == ["f0.pdf", "f1.pdf", "f2.pdf"]
