"""
tests/conftest.py

Pytest configuration and shared fixtures for the Faceboard test suite.

Every test starts from a clean configuration: Faceboard environment
variables are removed, the env file is pointed at a path that does not
exist, and cached settings / Supabase clients are dropped. No test talks to
ImageKit, Wikipedia or Supabase; outbound HTTP goes through
httpx.MockTransport and the table store is tests.helpers.FakeSupabase.
"""

from __future__ import annotations

import os
from typing import Any, AsyncGenerator, Callable, Generator

import pytest

from tests.helpers import FakeSupabase, FakeWiki

FACEBOARD_ENV_VARS = (
    "ENVIRONMENT",
    "LOG_LEVEL",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "FACES_TABLE",
    "IMAGEKIT_PRIVATE_KEY",
    "IMAGEKIT_API_BASE",
    "IMAGEKIT_FOLDER",
    "IMAGEKIT_SYNC_LIMIT",
    "IMAGEKIT_SYNC_TOKEN",
    "IMAGEKIT_SYNC_FAIL_FAST",
    "IMAGEKIT_WEBHOOK_SECRET",
    "IMAGEKIT_VERIFY_SIGNATURE",
    "IMAGEKIT_WEBHOOK_TOLERANCE_SECONDS",
    "IMAGEKIT_WEBHOOK_EVENT_TYPES",
    "BIOGRAPHY_STRATEGY",
    "WIKI_LANGUAGES",
    "WIKI_BASE_TEMPLATE",
    "BIOGRAPHY_KEYWORDS_FILE",
    "CORS_ORIGINS",
)


def pytest_configure(config: pytest.Config) -> None:
    """Keep a developer's local .env out of the test run."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as requiring external services (ImageKit, Wikipedia, Supabase)",
    )
    os.environ["ENV_FILE"] = os.path.join(os.path.dirname(__file__), ".env.test-nonexistent")


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate every test from ambient configuration and cached singletons."""
    from faceboard.config import reset_settings
    from faceboard.db import reset_supabase_client

    for key in FACEBOARD_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
        monkeypatch.delenv(key.lower(), raising=False)

    reset_settings()
    reset_supabase_client()
    yield
    reset_settings()
    reset_supabase_client()


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def wiki() -> FakeWiki:
    return FakeWiki()


@pytest.fixture
def configure(monkeypatch: pytest.MonkeyPatch) -> Callable[..., Any]:
    """Set environment variables and reload settings: ``configure(IMAGEKIT_SYNC_TOKEN="t")``."""
    from faceboard.config import get_settings, reset_settings

    def apply(**env: str) -> Any:
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        reset_settings()
        return get_settings()

    return apply


@pytest.fixture
def make_client(fake_supabase: FakeSupabase) -> Generator[Callable[..., Any], None, None]:
    """
    Build a TestClient whose outbound HTTP goes to the given handlers and
    whose face store is backed by ``fake_supabase``.
    """
    from fastapi.testclient import TestClient

    from faceboard.dependencies import face_store_factory_dependency, http_client_dependency
    from faceboard.main import create_app
    from faceboard.services.faces import FaceStore
    from tests.helpers import make_async_client

    apps = []

    def build(*handlers: Any) -> TestClient:
        app = create_app()

        async def http_client_override() -> AsyncGenerator[Any, None]:
            async with make_async_client(*handlers) as client:
                yield client

        app.dependency_overrides[http_client_dependency] = http_client_override
        app.dependency_overrides[face_store_factory_dependency] = lambda: (
            lambda: FaceStore(fake_supabase)
        )
        apps.append(app)
        return TestClient(app, raise_server_exceptions=False)

    yield build

    for app in apps:
        app.dependency_overrides.clear()
