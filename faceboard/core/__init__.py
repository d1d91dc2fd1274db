"""
Faceboard - Core Infrastructure

Logging, middleware and the error taxonomy shared by every router and service.
"""

from .errors import (
    ConfigurationError,
    FaceboardError,
    FaceStoreError,
    MediaHostError,
    UnauthorizedError,
    UpstreamError,
    setup_error_handlers,
)
from .logging import LogContext, configure_structured_logging, get_logger
from .middleware import RequestLoggingMiddleware, get_request_id

__all__ = [
    "ConfigurationError",
    "FaceboardError",
    "FaceStoreError",
    "LogContext",
    "MediaHostError",
    "RequestLoggingMiddleware",
    "UnauthorizedError",
    "UpstreamError",
    "configure_structured_logging",
    "get_logger",
    "get_request_id",
    "setup_error_handlers",
]
