"""
Application backend client.

Two contracts:
- apply: POST /api/candidate/apply/{target_id} with the CV and candidate data
- report: POST /api/report/send-bulk-upload-report with batch counters

The session token is sent verbatim in the Authorization header.

Dependencies: httpx
System role: Submission and reporting stages of the CV pipeline
"""

import json
from pathlib import Path
from typing import Any

import httpx

from ._errors import json_body, upstream_call

SERVICE_NAME = "backend"
APPLY_PATH = "/api/candidate/apply/{target_id}"
REPORT_PATH = "/api/report/send-bulk-upload-report"


class ApplicationBackendClient:
    """Client for the application backend."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        report_timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize backend client.

        Args:
            base_url: Backend base URL (trailing slash ignored)
            timeout: Apply call timeout in seconds
            report_timeout: Report call timeout in seconds
            client: Shared httpx client (a private one is created if None)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._report_timeout = report_timeout
        self._client = client or httpx.Client()

    @staticmethod
    def _auth_headers(auth_token: str | None) -> dict[str, str]:
        return {"Authorization": auth_token or ""}

    def apply(
        self,
        target_id: str,
        local_path: str,
        file_name: str,
        candidate_data: dict[str, Any],
        auth_token: str | None = None,
    ) -> dict:
        """
        Submit a CV and its parsed data to a target record.

        Args:
            target_id: Destination application record
            local_path: Original CV file on local disk
            file_name: Original upload name
            candidate_data: Parsed data (location already merged)
            auth_token: Session token of the uploader

        Returns:
            dict: Response body

        Raises:
            UpstreamTimeout: Backend did not answer in time
            UpstreamError: Non-2xx response (status_code set) or transport failure
        """
        url = self._base_url + APPLY_PATH.format(target_id=target_id)

        with upstream_call(SERVICE_NAME, url):
            with Path(local_path).open("rb") as fh:
                response = self._client.post(
                    url,
                    files={"file": (file_name, fh)},
                    data={"candidateData": json.dumps(candidate_data)},
                    headers=self._auth_headers(auth_token),
                    timeout=self._timeout,
                )
            response.raise_for_status()

        return json_body(response, SERVICE_NAME)

    def send_report(self, payload: dict[str, Any], auth_token: str | None = None) -> Any:
        """
        Send a bulk upload report.

        Args:
            payload: Report body
            auth_token: Session token stored with the batch

        Returns:
            Any: Decoded response body (None when empty)

        Raises:
            UpstreamTimeout: Backend did not answer in time
            UpstreamError: Non-2xx response or transport failure
        """
        url = self._base_url + REPORT_PATH

        with upstream_call(SERVICE_NAME, url):
            response = self._client.post(
                url,
                json=payload,
                headers=self._auth_headers(auth_token),
                timeout=self._report_timeout,
            )
            response.raise_for_status()

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def close(self) -> None:
        self._client.close()
