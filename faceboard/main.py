"""
Faceboard - FastAPI Application

Creates the FastAPI app and wires up the sync, webhook and health routers.

Run with: uvicorn faceboard.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import configure_logging, get_settings
from .core.errors import setup_error_handlers
from .core.middleware import RequestLoggingMiddleware
from .routers.health import router as health_router
from .routers.sync import router as sync_router
from .routers.webhooks import router as webhooks_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    logger.info(
        "Faceboard %s starting (environment=%s, strategy=%s, signature_check=%s)",
        __version__,
        settings.ENVIRONMENT,
        settings.BIOGRAPHY_STRATEGY,
        settings.IMAGEKIT_VERIFY_SIGNATURE,
    )
    if not settings.IMAGEKIT_VERIFY_SIGNATURE:
        logger.warning("IMAGEKIT_VERIFY_SIGNATURE=false - webhook signatures are NOT checked")
    yield
    logger.info("Faceboard shutting down")


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Faceboard Ingest",
        version=__version__,
        description="ImageKit ingestion and Wikipedia enrichment for the faces table",
        lifespan=lifespan,
    )

    if settings.cors_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allowed_origins,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
    app.add_middleware(RequestLoggingMiddleware)

    setup_error_handlers(app)

    app.include_router(health_router)
    app.include_router(sync_router)
    app.include_router(webhooks_router)

    return app


app = create_app()
