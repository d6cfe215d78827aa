"""
Job producer.

Turns one validated upload batch into one queued Job per file. Every job
carries the batch size and the fixed retry policy.

A failure part-way through a batch is surfaced as EnqueueError; jobs already
enqueued for that batch are not withdrawn, so the batch can end up with fewer
jobs than total_in_batch and will then never report.

Dependencies: cv_intake.core.transport, cv_intake.boundary.storage
System role: Producer side of the CV queue
"""

import logging
import os
import random
import time
from dataclasses import dataclass

from cv_intake.core.exceptions import EnqueueError, ValidationError
from cv_intake.core.models import Job, LocalFileRef, RemoteFileRef, RetryPolicy
from cv_intake.core.transport import QueueTransport

logger = logging.getLogger(__name__)

STORAGE_LOCAL = "local"
STORAGE_S3 = "s3"


@dataclass(frozen=True)
class UploadedFile:
    """An uploaded file already written to local disk."""

    original_name: str
    local_path: str


class FileStager:
    """Move an uploaded file to where the worker will read it from."""

    def __init__(self, mode: str = STORAGE_LOCAL, object_store=None) -> None:
        """
        Initialize stager.

        Args:
            mode: 'local' (worker reads the upload path) or 's3'
            object_store: Store exposing put_file(local_path, key) and bucket (s3 mode)

        Raises:
            ValueError: Unknown mode, or s3 mode without an object store
        """
        mode = mode.lower()
        if mode not in (STORAGE_LOCAL, STORAGE_S3):
            raise ValueError(f"Invalid storage mode: {mode}. Must be 'local' or 's3'.")
        if mode == STORAGE_S3 and object_store is None:
            raise ValueError("s3 storage mode requires an object store")
        self._mode = mode
        self._object_store = object_store

    @property
    def mode(self) -> str:
        return self._mode

    def stage(
        self, upload: UploadedFile, batch_id: str, index: int = 0
    ) -> LocalFileRef | RemoteFileRef:
        """
        Stage one file for a batch.

        Args:
            upload: File on local disk
            batch_id: Owning batch (prefixes the S3 key)
            index: Position of the file in the batch; keeps same-named files apart

        Returns:
            LocalFileRef | RemoteFileRef: Reference the worker resolves
        """
        if self._mode == STORAGE_LOCAL:
            return LocalFileRef(path=upload.local_path)

        key = f"{batch_id}/{index}__{upload.original_name}"
        self._object_store.put_file(upload.local_path, key)
        try:
            os.remove(upload.local_path)
        except OSError as e:
            logger.warning("%s:stage - Could not remove staged temp file: %s", __name__, e)
        return RemoteFileRef(bucket=self._object_store.bucket, key=key)


def new_batch_id() -> str:
    """Batch ids look like batch_<epoch ms>_<0-9999>."""
    return f"batch_{int(time.time() * 1000)}_{random.randint(0, 9999)}"


class JobProducer:
    """Validate upload batches and enqueue one job per file."""

    def __init__(
        self,
        transport: QueueTransport,
        stager: FileStager,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._transport = transport
        self._stager = stager
        self._retry_policy = retry_policy or RetryPolicy()

    @property
    def transport(self) -> QueueTransport:
        return self._transport

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    def submit_batch(
        self,
        files: list[UploadedFile],
        target_id: str | None,
        auth_token: str | None = None,
        user_id: str | None = None,
        location: str | None = None,
    ) -> str:
        """
        Enqueue a batch.

        Args:
            files: Uploaded files, already on local disk
            target_id: Destination application record (required)
            auth_token: Uploader's session token, forwarded to the backend
            user_id: Uploader id
            location: Location hint for the parser

        Returns:
            str: The new batch id

        Raises:
            ValidationError: No files or missing target id
            EnqueueError: Staging or enqueue failed part-way (no rollback)
        """
        if not files:
            raise ValidationError("No files uploaded", field="files")
        if not target_id or not target_id.strip():
            raise ValidationError("jobId is required in the request body", field="jobId")

        batch_id = new_batch_id()
        total = len(files)
        enqueued = 0

        for index, upload in enumerate(files):
            try:
                file_ref = self._stager.stage(upload, batch_id, index)
                job = Job(
                    batch_id=batch_id,
                    target_id=target_id,
                    original_name=upload.original_name,
                    file_ref=file_ref,
                    total_in_batch=total,
                    location=location,
                    auth_token=auth_token,
                    user_id=user_id,
                )
                self._transport.enqueue(job, self._retry_policy)
                enqueued += 1
            except Exception as e:
                logger.error(
                    "%s:submit_batch - Enqueue failed after %d/%d jobs: %s: %s",
                    __name__,
                    enqueued,
                    total,
                    type(e).__name__,
                    e,
                    extra={"batch_id": batch_id, "file_name": upload.original_name},
                )
                raise EnqueueError(
                    f"Failed to enqueue {upload.original_name}", batch_id, enqueued, total
                ) from e

        logger.info(
            "%s:submit_batch - Batch enqueued",
            __name__,
            extra={"batch_id": batch_id, "file_count": total, "target_id": target_id},
        )
        return batch_id
