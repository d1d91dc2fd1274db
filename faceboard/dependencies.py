"""
FastAPI dependencies.

Routers receive settings, an outbound HTTP client and a face store factory
through these functions so tests can swap them with
``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import AsyncGenerator, Callable

import httpx

from .config import Settings, get_settings
from .db import get_supabase_client
from .services.faces import FaceStore

FaceStoreFactory = Callable[[], FaceStore]


def settings_dependency() -> Settings:
    return get_settings()


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Outbound client shared by the Wikipedia and ImageKit calls of one request."""
    return httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS, follow_redirects=True)


async def http_client_dependency() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with build_http_client(get_settings()) as client:
        yield client


def face_store_factory_dependency() -> FaceStoreFactory:
    """
    Defer client creation until a write is needed, so ignored webhook
    events do not require Supabase credentials.
    """

    def factory() -> FaceStore:
        return FaceStore(get_supabase_client(), get_settings().FACES_TABLE)

    return factory
