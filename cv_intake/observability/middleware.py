"""
FastAPI middleware for observability.

Correlation ID and request logging middleware.

Dependencies: fastapi, starlette
System role: Request/response observability injection
"""

import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses."""

    async def dispatch(self, request: Request, call_next):
        """
        Log HTTP request and response with timing.

        Args:
            request: FastAPI request
            call_next: Next middleware in chain

        Returns:
            Response: Response object
        """
        start_time = time.time()

        method = request.method
        path = request.url.path

        try:
            response: Response = await call_next(request)
            process_time = time.time() - start_time

            logger.info(
                f"{method} {path} - {response.status_code}",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "process_time_ms": round(process_time * 1000, 2),
                },
            )
            return response
        except Exception as e:
            process_time = time.time() - start_time
            logger.exception(
                f"{method} {path} - Exception",
                extra={
                    "method": method,
                    "path": path,
                    "process_time_ms": round(process_time * 1000, 2),
                    "error_type": type(e).__name__,
                    "error_msg": str(e),
                },
            )
            raise


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Middleware for correlation ID injection."""

    async def dispatch(self, request: Request, call_next):
        """
        Echo or mint a correlation ID on every response.

        Args:
            request: FastAPI request
            call_next: Next middleware in chain

        Returns:
            Response: Response with correlation ID header
        """
        correlation_id = request.headers.get(CORRELATION_HEADER, str(uuid.uuid4()))
        response: Response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
