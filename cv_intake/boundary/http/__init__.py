"""Downstream HTTP service clients."""

from .backend_client import ApplicationBackendClient
from .parser_client import ParserClient

__all__ = ["ApplicationBackendClient", "ParserClient"]
