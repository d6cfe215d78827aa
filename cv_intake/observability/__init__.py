"""
Observability module.

Provides logging configuration, structured logging helpers and HTTP request
logging middleware.
"""

from cv_intake.observability.logger import configure_logging

__all__ = ["configure_logging"]
