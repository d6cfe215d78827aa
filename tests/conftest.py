"""
Shared test fixtures and configuration for entire test suite.

Provides: CV temp files, job factory, fake parser/backend clients, outcome
channel and aggregator wiring
Dependencies: pytest, cv_intake
System role: Test infrastructure and fixture management
"""

from unittest.mock import MagicMock

import pytest

from cv_intake.core.aggregator import BatchAggregator
from cv_intake.core.consumer import JobConsumer
from cv_intake.core.exceptions import UpstreamError
from cv_intake.core.models import Job, LocalFileRef
from cv_intake.core.outcome_channel import OutcomeChannel
from cv_intake.core.pipeline import PipelineExecutor
from cv_intake.core.report_dispatcher import ReportDispatcher
from cv_intake.core.stats import GlobalStats
from cv_intake.core.storage_resolver import StorageResolver


class FakeParser:
    """Parser double: returns canned data, or raises queued errors first."""

    def __init__(self, data=None, errors=None):
        self.data = data if data is not None else {"name": "Jane Doe", "email": "jane@example.com"}
        self.errors = list(errors or [])
        self.calls = []

    def parse(self, local_path, file_name, location=None):
        self.calls.append((local_path, file_name, location))
        if self.errors:
            raise self.errors.pop(0)
        return dict(self.data)


class FakeBackend:
    """Backend double for apply and report calls.

    `outcomes` maps a file name to a list of results consumed per call: a dict
    is returned, an exception is raised. Files without an entry succeed.
    """

    def __init__(self, outcomes=None, report_response=None):
        self.outcomes = {name: list(results) for name, results in (outcomes or {}).items()}
        self.report_response = {"success": True} if report_response is None else report_response
        self.apply_calls = []
        self.reports = []

    def apply(self, target_id, local_path, file_name, candidate_data, auth_token=None):
        self.apply_calls.append(
            {
                "target_id": target_id,
                "local_path": local_path,
                "file_name": file_name,
                "candidate_data": candidate_data,
                "auth_token": auth_token,
            }
        )
        results = self.outcomes.get(file_name)
        result = results.pop(0) if results else {"status": True}
        if isinstance(result, Exception):
            raise result
        return result

    def send_report(self, payload, auth_token=None):
        self.reports.append((payload, auth_token))
        if isinstance(self.report_response, Exception):
            raise self.report_response
        return self.report_response


def already_applied():
    return UpstreamError("backend returned HTTP 403", service="backend", status_code=403)


def server_error():
    return UpstreamError("backend returned HTTP 500", service="backend", status_code=500)


@pytest.fixture
def cv_dir(tmp_path):
    """Directory holding uploaded CVs."""
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def make_cv(cv_dir):
    """Create a CV file on disk and return its path."""

    def _make(name="resume.pdf", content=b"%PDF-1.4 test cv"):
        path = cv_dir / name
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture
def make_job(make_cv):
    """Build a Job for a local CV file created on disk."""

    def _make(name="resume.pdf", batch_id="batch_1_1", total=1, **overrides):
        path = make_cv(name)
        fields = {
            "batch_id": batch_id,
            "target_id": "job-123",
            "original_name": name,
            "file_ref": LocalFileRef(path=str(path)),
            "total_in_batch": total,
            "auth_token": "token-abc",
            "user_id": "user-1",
            "location": "Berlin",
        }
        fields.update(overrides)
        return Job(**fields)

    return _make


@pytest.fixture
def channel():
    return OutcomeChannel()


@pytest.fixture
def stats():
    return GlobalStats()


@pytest.fixture
def parser():
    return FakeParser()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def sleep():
    """Recording sleep replacement."""
    return MagicMock()


@pytest.fixture
def executor(parser, backend, channel, sleep):
    return PipelineExecutor(
        resolver=StorageResolver(),
        parser=parser,
        backend=backend,
        channel=channel,
        pacing_delay=10.0,
        sleep=sleep,
    )


@pytest.fixture
def aggregator(backend, stats):
    return BatchAggregator(ReportDispatcher(backend), stats=stats)


@pytest.fixture
def consumer(executor, aggregator, channel, stats):
    return JobConsumer(executor, aggregator, channel, stats)
