"""
Storage resolver.

Guarantees a job's CV is available as a readable local file before the
pipeline continues. Remote (S3) references are fetched into a private temp
directory; local references are passed through.

Dependencies: cv_intake.boundary.storage
System role: First stage of the CV pipeline
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path

from cv_intake.boundary.storage import S3StorageError
from cv_intake.core.exceptions import ResolutionError
from cv_intake.core.models import LocalFileRef, RemoteFileRef

logger = logging.getLogger(__name__)

TEMP_PREFIX = "cv_pipeline_"


class StorageResolver:
    """Resolve file references to local paths."""

    def __init__(self, object_store=None, temp_dir: str | None = None) -> None:
        """
        Initialize storage resolver.

        Args:
            object_store: Store exposing get_file(bucket, key, local_path); required for S3 refs
            temp_dir: Parent for fetched temp files (system default if None)
        """
        self._object_store = object_store
        self._temp_dir = temp_dir

    def resolve(self, file_ref: LocalFileRef | RemoteFileRef) -> str:
        """
        Make the referenced file available locally.

        Every call for a remote reference produces a new temp file.

        Args:
            file_ref: Job file reference

        Returns:
            str: Local path to a readable file

        Raises:
            ResolutionError: Fetch failed or file missing
        """
        if isinstance(file_ref, RemoteFileRef):
            local_path = self._fetch(file_ref)
        else:
            local_path = file_ref.path

        if not os.path.isfile(local_path):
            if isinstance(file_ref, RemoteFileRef):
                shutil.rmtree(os.path.dirname(local_path), ignore_errors=True)
            raise ResolutionError(f"File not found: {local_path}", str(file_ref))
        return local_path

    def _fetch(self, file_ref: RemoteFileRef) -> str:
        if self._object_store is None:
            raise ResolutionError("No object store configured for remote files", str(file_ref))

        filename = Path(file_ref.key).name
        if not filename:
            raise ResolutionError(f"Invalid S3 key: {file_ref.key}", str(file_ref))

        temp_dir = tempfile.mkdtemp(prefix=TEMP_PREFIX, dir=self._temp_dir)
        local_path = os.path.join(temp_dir, filename)

        try:
            self._object_store.get_file(file_ref.bucket, file_ref.key, local_path)
        except S3StorageError as e:
            shutil.rmtree(temp_dir, ignore_errors=True)
            raise ResolutionError(str(e), str(file_ref)) from e
        except Exception as e:
            shutil.rmtree(temp_dir, ignore_errors=True)
            raise ResolutionError(
                f"Unexpected error fetching file: {type(e).__name__}: {e}", str(file_ref)
            ) from e

        logger.info(
            "%s:_fetch - Fetched remote file",
            __name__,
            extra={"file_ref": str(file_ref), "local_path": local_path},
        )
        return local_path

    def cleanup(self, local_path: str | None) -> bool:
        """
        Delete a resolved file. Best-effort: failures are logged, never raised.

        Also removes the private temp directory created for fetched files.

        Args:
            local_path: Path returned by resolve() (or the job's local path)

        Returns:
            bool: True when nothing is left on disk
        """
        if not local_path:
            return True

        try:
            if os.path.exists(local_path):
                os.remove(local_path)
            parent = os.path.dirname(local_path)
            if os.path.basename(parent).startswith(TEMP_PREFIX):
                shutil.rmtree(parent, ignore_errors=True)
            return True
        except OSError as e:
            logger.warning(
                "%s:cleanup - Could not delete local file: %s",
                __name__,
                e,
                extra={"local_path": local_path},
            )
            return False
