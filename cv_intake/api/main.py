"""
FastAPI application with assembled routers.

Initializes FastAPI app with the upload and health routers and configures
uvicorn server.

Dependencies: fastapi, cv_intake.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from cv_intake.api.deps.dependencies import get_service_cache
from cv_intake.configs import get_settings
from cv_intake.observability import configure_logging
from cv_intake.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import health_router, upload_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    logger = logging.getLogger("uvicorn")

    # Startup
    logger.info("Starting CV intake API (%s)", get_settings().environment)
    logger.info("Pre-warming service cache...")
    cache = get_service_cache()
    _ = cache.job_producer
    logger.info("Service cache pre-warmed")

    yield

    # Shutdown
    cache.clear()
    logger.info("Service cache cleared")


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render errors as {"error": message}."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    configure_logging(get_settings().effective_log_level)

    app = FastAPI(
        title="CV Intake API",
        description="Bulk CV upload with queued parsing and application submission",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(HTTPException, http_error_handler)

    app.include_router(health_router)
    app.include_router(upload_router)

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "cv_intake.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
    )
