"""
Bulk CV upload API endpoint.

Routes: POST /api/upload

Multipart fields: files (one or more), jobId (required), userId, location,
sessionToken. Each file is written to disk, staged per the storage mode and
enqueued as one job of a new batch.

Dependencies: cv_intake.core.producer, cv_intake.api.deps
System role: Upload HTTP API
"""

import logging
import os
import shutil
import tempfile
import time
import uuid
from pathlib import Path

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel

from cv_intake.api.deps import get_job_producer, get_settings_dependency
from cv_intake.configs import Settings
from cv_intake.core.exceptions import EnqueueError, ValidationError
from cv_intake.core.producer import STORAGE_S3, JobProducer, UploadedFile
from cv_intake.core.transport import InlineTransport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["upload"])

CHUNK_SIZE = 1024 * 1024
UPLOAD_TEMP_PREFIX = "cv_upload_"


class UploadResponse(BaseModel):
    """Accepted batch response."""

    success: bool
    message: str
    batchId: str


class FileTooLargeError(Exception):
    def __init__(self, file_name: str, limit: int):
        self.file_name = file_name
        self.limit = limit
        super().__init__(f"{file_name} exceeds the {limit} byte upload limit")


def _safe_name(file_name: str | None) -> str:
    return os.path.basename(file_name or "") or "upload"


def save_upload(upload: UploadFile, directory: str, max_bytes: int) -> UploadedFile:
    """
    Write one uploaded file to `directory` as <epoch ms>_<random>__<original name>.

    Args:
        upload: Incoming multipart file
        directory: Destination directory
        max_bytes: Size limit

    Returns:
        UploadedFile: Original name and path on disk

    Raises:
        FileTooLargeError: File exceeds max_bytes (partial file removed)
    """
    original_name = _safe_name(upload.filename)
    dest = Path(directory) / f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}__{original_name}"

    written = 0
    with open(dest, "wb") as out:
        while chunk := upload.file.read(CHUNK_SIZE):
            written += len(chunk)
            if written > max_bytes:
                break
            out.write(chunk)

    if written > max_bytes:
        dest.unlink(missing_ok=True)
        raise FileTooLargeError(original_name, max_bytes)
    return UploadedFile(original_name=original_name, local_path=str(dest))


def _discard(saved: list[UploadedFile]) -> None:
    for item in saved:
        try:
            os.remove(item.local_path)
        except OSError:
            logger.debug("%s:_discard - Already gone: %s", __name__, item.local_path)


@router.post("/upload", response_model=UploadResponse)
def upload_cvs(
    background_tasks: BackgroundTasks,
    files: list[UploadFile] | None = File(default=None),
    job_id: str | None = Form(default=None, alias="jobId"),
    user_id: str | None = Form(default=None, alias="userId"),
    location: str | None = Form(default=None),
    session_token: str | None = Form(default=None, alias="sessionToken"),
    producer: JobProducer = Depends(get_job_producer),
    settings: Settings = Depends(get_settings_dependency),
) -> UploadResponse:
    """
    Accept a batch of CVs for one job posting.

    Returns:
        UploadResponse: Accepted batch id

    Raises:
        HTTPException: 400 no files / missing jobId, 413 file too large,
            500 enqueue failure
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if not job_id or not job_id.strip():
        raise HTTPException(status_code=400, detail="jobId is required in the request body")

    storage = settings.storage
    temp_dir = None
    if storage.mode.lower() == STORAGE_S3:
        temp_dir = tempfile.mkdtemp(prefix=UPLOAD_TEMP_PREFIX)
        directory = temp_dir
    else:
        directory = storage.local_upload_path
        os.makedirs(directory, exist_ok=True)

    saved: list[UploadedFile] = []
    try:
        for upload in files:
            saved.append(save_upload(upload, directory, storage.max_file_size_bytes))

        batch_id = producer.submit_batch(
            saved,
            target_id=job_id,
            auth_token=session_token,
            user_id=user_id,
            location=location,
        )
    except FileTooLargeError as e:
        _discard(saved)
        logger.warning("%s:upload_cvs - Rejected upload: %s", __name__, e)
        raise HTTPException(status_code=413, detail=str(e))
    except ValidationError as e:
        _discard(saved)
        raise HTTPException(status_code=400, detail=e.message)
    except EnqueueError as e:
        _discard(saved[e.enqueued:])
        logger.error(
            "%s:upload_cvs - Upload failed: %s",
            __name__,
            e,
            extra={"batch_id": e.batch_id, "enqueued": e.enqueued, "total": e.total},
        )
        raise HTTPException(status_code=500, detail="Upload failed")
    finally:
        if temp_dir is not None:
            shutil.rmtree(temp_dir, ignore_errors=True)

    transport = producer.transport
    if isinstance(transport, InlineTransport):
        background_tasks.add_task(transport.run_pending)

    return UploadResponse(
        success=True,
        message=f"{len(saved)} files accepted",
        batchId=batch_id,
    )
