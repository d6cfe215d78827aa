"""
httpx error translation.

Dependencies: httpx
System role: Map transport failures onto the upstream error taxonomy
"""

from contextlib import contextmanager

import httpx

from cv_intake.core.exceptions import UpstreamError, UpstreamTimeout


@contextmanager
def upstream_call(service: str, url: str):
    """
    Translate httpx failures raised inside the block.

    Args:
        service: Service name recorded on the error
        url: Target URL recorded on the error

    Raises:
        UpstreamTimeout: The call timed out
        UpstreamError: Non-2xx response or transport failure
    """
    try:
        yield
    except httpx.TimeoutException as e:
        raise UpstreamTimeout(
            f"{service} call timed out", service=service, details={"url": url}
        ) from e
    except httpx.HTTPStatusError as e:
        raise UpstreamError(
            f"{service} returned HTTP {e.response.status_code}",
            service=service,
            status_code=e.response.status_code,
            details={"url": url},
        ) from e
    except httpx.HTTPError as e:
        raise UpstreamError(
            f"{service} call failed: {type(e).__name__}: {e}",
            service=service,
            details={"url": url},
        ) from e


def json_body(response: httpx.Response, service: str) -> dict:
    """
    Decode a JSON object body.

    Raises:
        UpstreamError: Body is not a JSON object
    """
    try:
        data = response.json()
    except ValueError as e:
        raise UpstreamError(
            f"{service} returned invalid JSON",
            service=service,
            status_code=response.status_code,
        ) from e
    if not isinstance(data, dict):
        raise UpstreamError(
            f"{service} returned {type(data).__name__}, expected an object",
            service=service,
            status_code=response.status_code,
        )
    return data
