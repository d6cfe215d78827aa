"""
Tests for the upload and health endpoints.

Dependencies: pytest, fastapi.testclient, cv_intake.api
System role: HTTP contract validation
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from cv_intake.api.deps import get_job_producer, get_settings_dependency
from cv_intake.api.main import create_app
from cv_intake.configs import Settings
from cv_intake.configs.storage import StorageSettings
from cv_intake.core.exceptions import EnqueueError
from cv_intake.core.producer import FileStager, JobProducer
from cv_intake.core.transport import InlineTransport


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir):
    return Settings(storage=StorageSettings(local_upload_path=str(upload_dir), max_file_size_bytes=64))


@pytest.fixture
def transport():
    mock = MagicMock()
    mock.enqueue.side_effect = lambda job, policy: job.job_id
    return mock


@pytest.fixture
def app(settings):
    app = create_app()
    app.dependency_overrides[get_settings_dependency] = lambda: settings
    yield app
    app.dependency_overrides.clear()


def _client(app, producer):
    app.dependency_overrides[get_job_producer] = lambda: producer
    return TestClient(app)


def _files(*names, content=b"%PDF cv"):
    return [("files", (name, content, "application/pdf")) for name in names]


class TestHealth:
    def test_health(self, app):
        response = TestClient(app).get("/health")

        assert response.status_code == 200
        assert response.json() == {"ok": True}


class TestUpload:
    """Test suite for POST /api/upload."""

    def test_accepts_batch(self, app, transport, upload_dir):
        """Should store files locally and enqueue one job per file."""
        client = _client(app, JobProducer(transport, FileStager()))

        response = client.post(
            "/api/upload",
            files=_files("a.pdf", "b.pdf"),
            data={"jobId": "job-1", "userId": "u1", "location": "Berlin", "sessionToken": "tok"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "2 files accepted"
        assert body["batchId"].startswith("batch_")

        jobs = [call.args[0] for call in transport.enqueue.call_args_list]
        assert [job.original_name for job in jobs] == ["a.pdf", "b.pdf"]
        assert {job.batch_id for job in jobs} == {body["batchId"]}
        assert jobs[0].auth_token == "tok"
        assert jobs[0].user_id == "u1"
        assert jobs[0].location == "Berlin"

        stored = sorted(p.name for p in upload_dir.iterdir())
        assert len(stored) == 2
        assert all("__" in name for name in stored)
        assert {name.split("__", 1)[1] for name in stored} == {"a.pdf", "b.pdf"}

    def test_same_name_files_kept_apart(self, app, transport, upload_dir):
        """Should store two same-named files of one batch as separate files."""
        client = _client(app, JobProducer(transport, FileStager()))

        response = client.post(
            "/api/upload",
            files=_files("cv.pdf", content=b"first") + _files("cv.pdf", content=b"second"),
            data={"jobId": "job-1"},
        )

        assert response.status_code == 200
        stored = list(upload_dir.iterdir())
        assert len(stored) == 2
        assert sorted(p.read_bytes() for p in stored) == [b"first", b"second"]
        paths = {call.args[0].file_ref.path for call in transport.enqueue.call_args_list}
        assert len(paths) == 2

    def test_no_files(self, app, transport):
        client = _client(app, JobProducer(transport, FileStager()))

        response = client.post("/api/upload", data={"jobId": "job-1"})

        assert response.status_code == 400
        assert response.json() == {"error": "No files uploaded"}

    def test_missing_job_id(self, app, transport):
        client = _client(app, JobProducer(transport, FileStager()))

        response = client.post("/api/upload", files=_files("a.pdf"))

        assert response.status_code == 400
        assert response.json() == {"error": "jobId is required in the request body"}
        transport.enqueue.assert_not_called()

    def test_file_too_large(self, app, transport, upload_dir):
        """Should reject oversized files and keep nothing on disk."""
        client = _client(app, JobProducer(transport, FileStager()))

        response = client.post(
            "/api/upload",
            files=_files("small.pdf") + _files("big.pdf", content=b"x" * 100),
            data={"jobId": "job-1"},
        )

        assert response.status_code == 413
        assert "big.pdf" in response.json()["error"]
        assert list(upload_dir.iterdir()) == []
        transport.enqueue.assert_not_called()

    def test_enqueue_failure(self, app):
        producer = MagicMock()
        producer.submit_batch.side_effect = EnqueueError("Failed to enqueue a.pdf", "batch_1", 0, 1)

        response = _client(app, producer).post(
            "/api/upload", files=_files("a.pdf"), data={"jobId": "job-1"}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Upload failed"}

    def test_inline_transport_runs_after_response(self, app, consumer, backend, sleep):
        """Should process the batch in the background with the inline transport."""
        transport = InlineTransport(handler=consumer, sleep=sleep)
        client = _client(app, JobProducer(transport, FileStager()))

        response = client.post(
            "/api/upload",
            files=_files("a.pdf", "b.pdf"),
            data={"jobId": "job-1", "sessionToken": "tok"},
        )

        assert response.status_code == 200
        assert transport.pending() == 0
        assert len(backend.apply_calls) == 2
        assert len(backend.reports) == 1
        assert backend.reports[0][0]["successCount"] == 2

    def test_correlation_id_echoed(self, app):
        response = TestClient(app).get("/health", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"
