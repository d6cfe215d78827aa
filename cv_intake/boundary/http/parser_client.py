"""
CV-to-JSON parsing service client.

Posts a CV file as multipart form data and returns the structured candidate
data unmodified.

Dependencies: httpx
System role: Parsing stage of the CV pipeline
"""

import logging
from pathlib import Path

import httpx

from ._errors import json_body, upstream_call

logger = logging.getLogger(__name__)

SERVICE_NAME = "parser"


class ParserClient:
    """Client for the external CV parsing service."""

    def __init__(
        self,
        url: str,
        timeout: float = 120.0,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize parser client.

        Args:
            url: Full parse endpoint URL
            timeout: Per-call timeout in seconds
            client: Shared httpx client (a private one is created if None)
        """
        self._url = url.rstrip("/")
        self._timeout = timeout
        self._client = client or httpx.Client()

    def parse(self, local_path: str, file_name: str, location: str | None = None) -> dict:
        """
        Parse a CV file.

        Args:
            local_path: File on local disk
            file_name: Original upload name sent as the part filename
            location: Optional location hint

        Returns:
            dict: Candidate data as returned by the service

        Raises:
            UpstreamTimeout: Service did not answer in time
            UpstreamError: Non-2xx response or unreadable body
        """
        data = {"location": location} if location else None

        with upstream_call(SERVICE_NAME, self._url):
            with Path(local_path).open("rb") as fh:
                response = self._client.post(
                    self._url,
                    files={"file": (file_name, fh)},
                    data=data,
                    timeout=self._timeout,
                )
            response.raise_for_status()

        logger.debug(
            "%s:parse - Parsed CV",
            __name__,
            extra={"file_name": file_name, "status_code": response.status_code},
        )
        return json_body(response, SERVICE_NAME)

    def close(self) -> None:
        self._client.close()
