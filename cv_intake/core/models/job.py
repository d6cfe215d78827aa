"""
Job schema for CV processing.

One Job per uploaded file. Serialized into the queue message by the producer
and validated again by the worker before the pipeline runs.

Dependencies: pydantic
System role: Data validation and contract definition for queued work
"""

import uuid
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

S3_SCHEME = "s3://"


class LocalFileRef(BaseModel):
    """File already present on the worker's filesystem."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["local"] = "local"
    path: str = Field(min_length=1, description="Absolute or working-directory-relative path")

    def __str__(self) -> str:
        return self.path


class RemoteFileRef(BaseModel):
    """File stored as an S3 object."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["s3"] = "s3"
    bucket: str = Field(min_length=1)
    key: str = Field(min_length=1)

    def __str__(self) -> str:
        return f"{S3_SCHEME}{self.bucket}/{self.key}"


FileRef = Annotated[Union[LocalFileRef, RemoteFileRef], Field(discriminator="kind")]


def parse_file_ref(value: str) -> LocalFileRef | RemoteFileRef:
    """
    Parse the string form of a file reference.

    Args:
        value: Local path, or "s3://bucket/key"

    Returns:
        LocalFileRef | RemoteFileRef: Typed reference

    Raises:
        ValueError: Empty value or malformed S3 locator
    """
    if not value:
        raise ValueError("File reference is empty")
    if not value.startswith(S3_SCHEME):
        return LocalFileRef(path=value)

    bucket, _, key = value[len(S3_SCHEME):].partition("/")
    if not bucket or not key:
        raise ValueError(f"Invalid S3 locator: {value}")
    return RemoteFileRef(bucket=bucket, key=key)


class RetryPolicy(BaseModel):
    """Retry policy stamped onto a job when it is enqueued."""

    model_config = ConfigDict(frozen=True)

    attempts: int = Field(default=3, ge=1, description="Total attempts, first run included")
    backoff: Literal["exponential", "fixed"] = "exponential"
    delay_seconds: float = Field(default=2.0, ge=0)

    def delay_for(self, retries_done: int) -> float:
        """
        Delay before the next attempt.

        Args:
            retries_done: Retries already performed (0 before the first retry)

        Returns:
            float: Seconds to wait
        """
        if self.backoff == "fixed":
            return self.delay_seconds
        return self.delay_seconds * (2 ** retries_done)

    def allows_retry(self, attempts_made: int) -> bool:
        """Whether another attempt is allowed after `attempts_made` attempts."""
        return attempts_made < self.attempts


class Job(BaseModel):
    """Queue message body for one CV within one batch."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "job_id": "550e8400-e29b-41d4-a716-446655440000",
                "batch_id": "batch_1718000000000_4821",
                "jobId": "665f1c2e9b1d",
                "original_name": "resume.pdf",
                "file_ref": {"kind": "s3", "bucket": "cv-uploads", "key": "batch_1718000000000_4821/resume.pdf"},
                "total_in_batch": 3,
                "location": "Berlin",
            }
        },
    )

    job_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    batch_id: str = Field(min_length=1)
    target_id: str = Field(min_length=1, alias="jobId", description="Destination application record")
    original_name: str
    file_ref: FileRef
    total_in_batch: int = Field(ge=1)
    location: str | None = None
    auth_token: str | None = None
    user_id: str | None = None

    @field_validator("file_ref", mode="before")
    @classmethod
    def _coerce_string_ref(cls, value):
        if isinstance(value, str):
            return parse_file_ref(value)
        return value

    @property
    def is_remote(self) -> bool:
        return isinstance(self.file_ref, RemoteFileRef)

    def to_message(self) -> dict:
        """Serialize to a JSON-safe queue payload (wire field names)."""
        return self.model_dump(mode="json", by_alias=True)
