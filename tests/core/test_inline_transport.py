"""
Tests for InlineTransport and the job consumer end to end.

Runs whole batches through producer -> transport -> executor -> aggregator ->
report with fake downstream services.

Dependencies: pytest, unittest.mock, cv_intake.core
System role: Retry and exactly-once accounting validation
"""

from unittest.mock import MagicMock

import pytest

from conftest import FakeBackend, FakeParser, already_applied, server_error
from cv_intake.core.aggregator import BatchAggregator
from cv_intake.core.consumer import JobConsumer
from cv_intake.core.exceptions import UpstreamTimeout
from cv_intake.core.janitor import RecordState
from cv_intake.core.models import RetryPolicy
from cv_intake.core.outcome_channel import OutcomeChannel
from cv_intake.core.pipeline import PipelineExecutor
from cv_intake.core.producer import FileStager, JobProducer, UploadedFile
from cv_intake.core.report_dispatcher import ReportDispatcher
from cv_intake.core.stats import GlobalStats
from cv_intake.core.storage_resolver import StorageResolver
from cv_intake.core.transport import InlineTransport


def _build(parser, backend, sleep):
    channel = OutcomeChannel()
    stats = GlobalStats()
    executor = PipelineExecutor(StorageResolver(), parser, backend, channel, sleep=sleep)
    aggregator = BatchAggregator(ReportDispatcher(backend), stats=stats)
    consumer = JobConsumer(executor, aggregator, channel, stats)
    transport = InlineTransport(handler=consumer, sleep=sleep, keep_records=True)
    return transport, aggregator, stats


def _submit(transport, make_cv, names, target_id="job-123"):
    uploads = [UploadedFile(name, str(make_cv(name))) for name in names]
    return JobProducer(transport, FileStager()).submit_batch(
        uploads, target_id=target_id, auth_token="tok", user_id="u1"
    )


class TestBatchScenarios:
    """End-to-end batch scenarios."""

    def test_three_successes(self, make_cv, sleep):
        """Should send one report with three successes."""
        backend = FakeBackend()
        transport, aggregator, stats = _build(FakeParser(), backend, sleep)

        batch_id = _submit(transport, make_cv, ["a.pdf", "b.pdf", "c.pdf"])
        assert transport.run_pending() == 3

        assert len(backend.reports) == 1
        payload, token = backend.reports[0]
        assert token == "tok"
        assert payload == {
            "totalUploaded": 3,
            "successCount": 3,
            "failedCount": 0,
            "alreadyAppliedCount": 0,
            "failedFiles": [],
            "alreadyAppliedFiles": [],
        }
        assert aggregator.get(batch_id) is None
        assert stats.snapshot().success == 3

    def test_already_applied_and_exhausted_failure(self, make_cv, sleep):
        """Should count a 403 once without retry and a persistent failure once as failed."""
        backend = FakeBackend(
            outcomes={
                "dup.pdf": [already_applied()],
                "bad.pdf": [server_error(), server_error(), server_error()],
            }
        )
        transport, _, stats = _build(FakeParser(), backend, sleep)

        _submit(transport, make_cv, ["dup.pdf", "bad.pdf"])
        transport.run_pending()

        applied = [call["file_name"] for call in backend.apply_calls]
        assert applied.count("dup.pdf") == 1
        assert applied.count("bad.pdf") == 3
        assert backend.reports[0][0] == {
            "totalUploaded": 2,
            "successCount": 0,
            "failedCount": 1,
            "alreadyAppliedCount": 1,
            "failedFiles": ["bad.pdf"],
            "alreadyAppliedFiles": ["dup.pdf"],
        }
        assert stats.snapshot().failed == 1

    def test_transient_failure_then_success(self, make_cv, sleep):
        """Should retry a parse timeout with backoff and count the job once."""
        parser = FakeParser(errors=[UpstreamTimeout("parser call timed out", service="parser")])
        backend = FakeBackend()
        transport, _, _ = _build(parser, backend, sleep)

        _submit(transport, make_cv, ["slow.pdf"])
        transport.run_pending()

        assert len(parser.calls) == 2
        # 2s retry backoff, then the 10s pacing delay
        assert [call.args[0] for call in sleep.call_args_list] == [2.0, 10.0]
        assert backend.reports[0][0]["successCount"] == 1

    def test_temp_files_removed_on_every_terminal_path(self, make_cv, cv_dir, sleep):
        """Should leave no uploads on disk once the batch is done."""
        backend = FakeBackend(outcomes={"b.pdf": [already_applied()], "c.pdf": [server_error()] * 3})
        transport, _, _ = _build(FakeParser(), backend, sleep)

        _submit(transport, make_cv, ["a.pdf", "b.pdf", "c.pdf"])
        transport.run_pending()

        assert list(cv_dir.iterdir()) == []

    def test_backoff_is_exponential(self, make_cv, sleep):
        """Should wait 2s then 4s between the three attempts."""
        parser = FakeParser(errors=[KeyError("x")] * 3)
        transport, _, _ = _build(parser, FakeBackend(), sleep)

        _submit(transport, make_cv, ["x.pdf"])
        transport.run_pending()

        assert [call.args[0] for call in sleep.call_args_list] == [2.0, 4.0]


class TestInlineTransport:
    """Test suite for InlineTransport mechanics."""

    def test_records_terminal_state(self, make_job):
        """Should record COMPLETED and FAILED jobs when records are kept."""
        handler = MagicMock()
        handler.process.side_effect = [None, RuntimeError("x")]
        transport = InlineTransport(handler=handler, sleep=MagicMock(), keep_records=True)
        ok = make_job("ok.pdf")
        bad = make_job("bad.pdf")

        transport.enqueue(ok, RetryPolicy())
        transport.enqueue(bad, RetryPolicy(attempts=1))
        transport.run_pending()

        store = transport.record_store
        assert [r.job_id for r in store.finished_records(RecordState.COMPLETED)] == [ok.job_id]
        assert [r.job_id for r in store.finished_records(RecordState.FAILED)] == [bad.job_id]
        handler.on_terminal_failure.assert_called_once()
        assert handler.on_terminal_failure.call_args.args[0] == bad

    def test_removes_records_by_default(self, make_job):
        """Should drop a job's record once it is terminal."""
        transport = InlineTransport(handler=MagicMock())
        transport.enqueue(make_job(), RetryPolicy())

        transport.run_pending()

        assert len(transport.record_store) == 0

    def test_attempt_count(self, make_job):
        """Should stop after the policy's attempts."""
        handler = MagicMock()
        handler.process.side_effect = RuntimeError("always")
        transport = InlineTransport(handler=handler, sleep=MagicMock())
        job = make_job()

        transport.enqueue(job, RetryPolicy(attempts=3))
        transport.run_pending()

        assert handler.process.call_count == 3
        assert transport.attempts[job.job_id] == 3

    def test_requires_handler(self, make_job):
        transport = InlineTransport()
        transport.enqueue(make_job(), RetryPolicy())

        with pytest.raises(RuntimeError, match="No job handler"):
            transport.run_pending()

    def test_closed_transport(self, make_job):
        """Should refuse new jobs and leave queued jobs unrun after close."""
        handler = MagicMock()
        transport = InlineTransport(handler=handler)
        transport.enqueue(make_job("a.pdf"), RetryPolicy())

        transport.close()

        assert transport.run_pending() == 0
        handler.process.assert_not_called()
        with pytest.raises(RuntimeError, match="closed"):
            transport.enqueue(make_job("b.pdf"), RetryPolicy())

    def test_bind_later(self, make_job):
        handler = MagicMock()
        transport = InlineTransport()
        transport.enqueue(make_job(), RetryPolicy())

        transport.bind(handler)

        assert transport.run_pending() == 1
        assert transport.pending() == 0
