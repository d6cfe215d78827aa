"""
Logger configuration.

Provides configured logger with ISO timestamps shared by the API and worker.

Dependencies: logging (stdlib)
System role: Centralized logging configuration
"""

import logging
import sys


def configure_logging(level: str | int = logging.INFO) -> None:
    """
    Configure Python logging with ISO timestamp and structured format.

    Args:
        level: Root log level (name or number)
    """
    # Remove any existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Reduce noise from verbose third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
