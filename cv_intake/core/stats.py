"""
Process-lifetime upload statistics.

Counters across every batch the worker has seen since it started. Logged after
each outcome and on shutdown; nothing depends on them for correctness.

Dependencies: logging (stdlib)
System role: Worker observability
"""

import logging
import threading
from dataclasses import asdict, dataclass, field

from cv_intake.core.models import OutcomeClassification, OutcomeEvent


@dataclass
class StatsSnapshot:
    """Point-in-time copy of the global counters."""

    total: int = 0
    success: int = 0
    failed: int = 0
    already_processed: int = 0
    failed_files: list[str] = field(default_factory=list)
    already_processed_files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class GlobalStats:
    """Global upload counters."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stats = StatsSnapshot()

    def record(self, event: OutcomeEvent) -> None:
        with self._lock:
            self._stats.total += 1
            if event.classification is OutcomeClassification.SUCCESS:
                self._stats.success += 1
            elif event.classification is OutcomeClassification.ALREADY_PROCESSED:
                self._stats.already_processed += 1
                self._stats.already_processed_files.append(event.file_name)
            else:
                self._stats.failed += 1
                self._stats.failed_files.append(event.file_name)

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(
                total=self._stats.total,
                success=self._stats.success,
                failed=self._stats.failed,
                already_processed=self._stats.already_processed,
                failed_files=list(self._stats.failed_files),
                already_processed_files=list(self._stats.already_processed_files),
            )

    def reset(self) -> None:
        with self._lock:
            self._stats = StatsSnapshot()

    def log_summary(self, logger: logging.Logger, title: str = "Upload Statistics") -> None:
        """Log counters and the names of failed / already-applied files."""
        stats = self.snapshot()
        lines = [
            f"{title}:",
            f"   Total Uploads: {stats.total}",
            f"   Successful: {stats.success}",
            f"   Already Applied (403): {stats.already_processed}",
            f"   Failed: {stats.failed}",
        ]
        if stats.already_processed_files:
            lines.append("   Already Applied Files:")
            lines.extend(f"     {i}. {name}" for i, name in enumerate(stats.already_processed_files, 1))
        if stats.failed_files:
            lines.append("   Failed Files:")
            lines.extend(f"     {i}. {name}" for i, name in enumerate(stats.failed_files, 1))
        logger.info("\n".join(lines), extra={"stats": stats.to_dict()})
