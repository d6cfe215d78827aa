"""
Job and batch aware logging helpers.

Every pipeline log line carries the same context keys (job_id, batch_id,
file_name) in `extra`, so one CV or one batch can be followed across the API
and the worker.

Dependencies: logging (stdlib)
System role: Structured logging for the CV pipeline
"""

import logging
from typing import Any

MAX_VALUE_LENGTH = 300


def job_context(job) -> dict[str, Any]:
    """
    Standard log context for one job.

    Args:
        job: Job (or anything with job_id, batch_id and original_name)

    Returns:
        dict: job_id, batch_id and file_name
    """
    return {
        "job_id": job.job_id,
        "batch_id": job.batch_id,
        "file_name": job.original_name,
    }


def batch_context(batch) -> dict[str, Any]:
    """Standard log context for one batch state."""
    return {
        "batch_id": batch.batch_id,
        "total_files": batch.total_files,
        "settled": batch.settled_count,
    }


def _clip(value: Any) -> Any:
    if isinstance(value, (int, float, bool)) or value is None:
        return value
    text = str(value)
    if len(text) > MAX_VALUE_LENGTH:
        return text[:MAX_VALUE_LENGTH] + "..."
    return text


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    job=None,
    **context,
) -> None:
    """
    Log a pipeline message with job context merged into `extra`.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        job: Job whose standard context is attached
        **context: Additional fields; long values such as error bodies are clipped
    """
    extra = job_context(job) if job is not None else {}
    extra.update({key: _clip(val) for key, val in context.items()})
    logger.log(level, message, extra=extra)


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    batch=None,
    **context,
) -> None:
    """
    Log an error with its traceback and batch context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        batch: BatchState whose standard context is attached
        **context: Additional fields
    """
    extra = batch_context(batch) if batch is not None else {}
    extra.update({key: _clip(val) for key, val in context.items()})
    extra.update({"error_type": type(exc).__name__, "error_msg": _clip(exc)})
    logger.error(message, exc_info=exc, extra=extra)
