"""
Redis job record store.

Finished Celery jobs leave a result record (celery-task-meta-<task id>) in the
Redis result backend. This store lists and deletes those records for the
lifecycle janitor.

Dependencies: redis
System role: Queue record retention backend
"""

import json
import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from redis import Redis

from cv_intake.core.janitor import JobRecord, RecordState

logger = logging.getLogger(__name__)

RESULT_KEY_PREFIX = "celery-task-meta-"

_STATUS_TO_STATE = {
    "SUCCESS": RecordState.COMPLETED,
    "FAILURE": RecordState.FAILED,
}


def _parse_date_done(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RedisJobRecordStore:
    """Celery result records in Redis."""

    def __init__(self, client: Redis, scan_batch: int = 500) -> None:
        """
        Initialize record store.

        Args:
            client: Redis client for the Celery result backend
            scan_batch: SCAN count hint
        """
        self._client = client
        self._scan_batch = scan_batch

    @classmethod
    def from_url(cls, url: str) -> "RedisJobRecordStore":
        return cls(Redis.from_url(url))

    def finished_records(self, state: RecordState) -> list[JobRecord]:
        """
        List finished records in one state.

        Args:
            state: COMPLETED or FAILED

        Returns:
            list[JobRecord]: Records with a parsable completion time
        """
        keys = list(self._client.scan_iter(match=f"{RESULT_KEY_PREFIX}*", count=self._scan_batch))
        if not keys:
            return []

        records: list[JobRecord] = []
        for key, raw in zip(keys, self._client.mget(keys)):
            if raw is None:
                continue
            try:
                meta = json.loads(raw)
            except (TypeError, ValueError):
                logger.debug("%s:finished_records - Skipping unreadable record %r", __name__, key)
                continue

            if _STATUS_TO_STATE.get(meta.get("status")) is not state:
                continue
            finished_at = _parse_date_done(meta.get("date_done"))
            if finished_at is None:
                continue

            key_str = key.decode() if isinstance(key, bytes) else key
            records.append(JobRecord(key_str[len(RESULT_KEY_PREFIX):], state, finished_at))
        return records

    def delete(self, job_ids: Iterable[str]) -> int:
        keys = [f"{RESULT_KEY_PREFIX}{job_id}" for job_id in job_ids]
        if not keys:
            return 0
        return int(self._client.delete(*keys))
