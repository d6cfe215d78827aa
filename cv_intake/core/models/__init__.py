"""
Models for the CV processing pipeline.

Exports: Job, FileRef, LocalFileRef, RemoteFileRef, RetryPolicy, OutcomeEvent,
OutcomeClassification, BatchState, parse_file_ref
"""

from .batch import BatchState
from .job import FileRef, Job, LocalFileRef, RemoteFileRef, RetryPolicy, parse_file_ref
from .outcome import OutcomeClassification, OutcomeEvent

__all__ = [
    "BatchState",
    "FileRef",
    "Job",
    "LocalFileRef",
    "RemoteFileRef",
    "RetryPolicy",
    "parse_file_ref",
    "OutcomeClassification",
    "OutcomeEvent",
]
