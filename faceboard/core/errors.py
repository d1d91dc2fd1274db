"""
Faceboard - Error Handling

Error taxonomy for the ingestion pipeline and the FastAPI handlers that
render it. Response bodies stay flat ({"error": ...} / {"ok": false, ...})
because webhook producers and the sync scheduler key off them.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .middleware import get_request_id

logger = logging.getLogger(__name__)


# =============================================================================
# Error Codes
# =============================================================================

ERROR_BAD_REQUEST = "bad_request"
ERROR_UNAUTHORIZED = "unauthorized"
ERROR_VALIDATION = "validation_error"
ERROR_CONFIGURATION = "configuration_error"
ERROR_UPSTREAM = "upstream_error"
ERROR_INTERNAL = "internal_error"


# =============================================================================
# Exceptions
# =============================================================================


class FaceboardError(Exception):
    """Base exception for Faceboard business logic errors."""

    def __init__(
        self,
        message: str,
        error_code: str = ERROR_INTERNAL,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code


class ConfigurationError(FaceboardError):
    """A secret, URL or key required by the invoked operation is missing or invalid."""

    def __init__(self, message: str):
        super().__init__(message, error_code=ERROR_CONFIGURATION, status_code=500)


class UnauthorizedError(FaceboardError):
    """Bad sync token or failed webhook verification."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, error_code=ERROR_UNAUTHORIZED, status_code=401)


class UpstreamError(FaceboardError):
    """An upstream listing or write call failed; message carries upstream text."""

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(message, error_code=ERROR_UPSTREAM, status_code=500)
        self.upstream_status = upstream_status


class MediaHostError(UpstreamError):
    """ImageKit file listing failed."""


class FaceStoreError(UpstreamError):
    """Faces table lookup, insert or update failed."""


# =============================================================================
# Exception Handlers
# =============================================================================


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render FastAPI/Starlette HTTP exceptions (404, 405, ...) as {"error": detail}."""
    if exc.status_code >= 500:
        logger.error(
            f"HTTP {exc.status_code}: {exc.detail}",
            extra={"request_id": get_request_id(), "path": request.url.path},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render query/body validation failures as 400."""
    messages = [
        f"{'.'.join(str(loc) for loc in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "; ".join(messages) or ERROR_VALIDATION},
    )


async def faceboard_exception_handler(request: Request, exc: FaceboardError) -> JSONResponse:
    """Render pipeline errors with their own status code."""
    if isinstance(exc, UnauthorizedError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    logger.error(
        f"{type(exc).__name__}: {exc.message}",
        extra={"request_id": get_request_id(), "path": request.url.path},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.message},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all handler for unhandled exceptions.

    Logs the full traceback but returns a generic error to the client.
    """
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        extra={
            "request_id": get_request_id(),
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"ok": False, "error": ERROR_INTERNAL},
    )


def setup_error_handlers(app: FastAPI) -> None:
    """
    Register all error handlers with the FastAPI app.

    Call this in create_app() after creating the FastAPI instance.
    """
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(FaceboardError, faceboard_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
