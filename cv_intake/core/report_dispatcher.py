"""
Batch report dispatcher.

Sends one bulk upload report to the application backend when a batch has
fully settled. Delivery failures are logged and swallowed: the batch's jobs
are already terminal and nothing can be retried.

Dependencies: cv_intake.boundary.http
System role: Final stage of batch processing
"""

import logging

from cv_intake.core.exceptions import ReportDeliveryError, UpstreamError
from cv_intake.core.models import BatchState
from cv_intake.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


class ReportDispatcher:
    """Deliver batch summary reports."""

    def __init__(self, backend) -> None:
        """
        Initialize dispatcher.

        Args:
            backend: Client exposing send_report(payload, auth_token)
        """
        self._backend = backend

    def dispatch(self, batch: BatchState) -> bool:
        """
        Send the batch report. Never raises.

        Args:
            batch: Completed batch state

        Returns:
            bool: True when the backend acknowledged the report
        """
        logger.info(
            "%s:dispatch - Sending bulk upload report for batch %s",
            __name__,
            batch.batch_id,
            extra={"batch_id": batch.batch_id, "total_files": batch.total_files},
        )
        try:
            self._deliver(batch)
        except ReportDeliveryError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:dispatch - Failed to send report for batch {batch.batch_id}",
                e,
                batch=batch,
            )
            return False

        logger.info("%s:dispatch - Report sent for batch %s", __name__, batch.batch_id)
        return True

    def _deliver(self, batch: BatchState) -> None:
        try:
            response = self._backend.send_report(batch.to_report(), batch.auth_token)
        except UpstreamError as e:
            raise ReportDeliveryError(str(e), batch.batch_id, details=dict(e.details)) from e
        except Exception as e:
            raise ReportDeliveryError(
                f"Unexpected error sending report: {type(e).__name__}: {e}", batch.batch_id
            ) from e

        if not response:
            raise ReportDeliveryError("Backend returned an empty acknowledgement", batch.batch_id)
