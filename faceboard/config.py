"""
Faceboard - Unified Configuration

Single source of truth for every setting used by the sync poller, the
webhook handler and the CLI.

Environment variables:
---------------------
Table store:
  SUPABASE_URL                  - Supabase project REST URL (https://xxx.supabase.co)
  SUPABASE_SERVICE_ROLE_KEY     - Service role JWT (server-side only)
  FACES_TABLE                   - Target table (default: faces)

Media host:
  IMAGEKIT_PRIVATE_KEY          - Private API key, used for Basic auth
  IMAGEKIT_API_BASE             - API base URL (default: https://api.imagekit.io/v1)
  IMAGEKIT_FOLDER               - Optional folder prefix to list
  IMAGEKIT_SYNC_LIMIT           - Default page size (clamped to 1..1000)
  IMAGEKIT_SYNC_TOKEN           - Sync gate token (gate is open when unset)
  IMAGEKIT_SYNC_FAIL_FAST       - Abort the batch on the first failing asset
  IMAGEKIT_WEBHOOK_SECRET       - Webhook HMAC secret (whsec_ prefix = base64 key)
  IMAGEKIT_VERIFY_SIGNATURE     - Set to false to bypass webhook verification
  IMAGEKIT_WEBHOOK_EVENT_TYPES  - Accepted event types (empty = accept any)

Enrichment:
  BIOGRAPHY_STRATEGY            - ranked | simple (default: ranked)
  WIKI_LANGUAGES                - Backend languages in priority order (default: ko,en)
  BIOGRAPHY_KEYWORDS_FILE       - Override for the occupation keyword table

Missing credentials do not fail at startup. They raise ConfigurationError
when the operation that needs them is invoked.

Usage:
------
    from faceboard.config import get_settings

    settings = get_settings()
    print(settings.supabase_url)
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import __version__

logger = logging.getLogger(__name__)

SYNC_LIMIT_MIN = 1
SYNC_LIMIT_MAX = 1000


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


class Settings(BaseSettings):
    """
    Application settings for the HTTP service and CLI.

    Loads from environment variables with fallback to the env file named by
    ENV_FILE (default: .env).
    """

    model_config = SettingsConfigDict(
        env_file=os.environ.get("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # =========================================================================
    # ENVIRONMENT CONTROL
    # =========================================================================

    ENVIRONMENT: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Deployment environment",
    )
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # =========================================================================
    # TABLE STORE (SUPABASE)
    # =========================================================================

    SUPABASE_URL: str | None = Field(default=None, description="Supabase project REST URL")
    SUPABASE_SERVICE_ROLE_KEY: str | None = Field(
        default=None, description="Supabase service role JWT key"
    )
    FACES_TABLE: str = Field(default="faces", description="Face records table")

    # =========================================================================
    # MEDIA HOST (IMAGEKIT)
    # =========================================================================

    IMAGEKIT_PRIVATE_KEY: str | None = Field(default=None, description="ImageKit private key")
    IMAGEKIT_API_BASE: str = Field(
        default="https://api.imagekit.io/v1", description="ImageKit API base URL"
    )
    IMAGEKIT_FOLDER: str = Field(default="", description="Folder prefix to sync")
    IMAGEKIT_SYNC_LIMIT: int = Field(default=100, description="Default sync page size")
    IMAGEKIT_SYNC_TOKEN: str | None = Field(default=None, description="Sync gate token")
    IMAGEKIT_SYNC_FAIL_FAST: bool = Field(
        default=False, description="Abort the whole batch on the first asset failure"
    )

    # =========================================================================
    # WEBHOOK VERIFICATION
    # =========================================================================

    IMAGEKIT_WEBHOOK_SECRET: str | None = Field(default=None, description="Webhook secret")
    IMAGEKIT_VERIFY_SIGNATURE: bool = Field(
        default=True, description="Verify webhook signatures (operational bypass switch)"
    )
    IMAGEKIT_WEBHOOK_TOLERANCE_SECONDS: int = Field(
        default=300, description="Accepted clock skew for webhook timestamps"
    )
    IMAGEKIT_WEBHOOK_EVENT_TYPES: str = Field(
        default="upload.pre-transform.success",
        description="Comma-separated accepted event types (empty accepts any)",
    )

    # =========================================================================
    # ENRICHMENT (WIKIPEDIA)
    # =========================================================================

    BIOGRAPHY_STRATEGY: Literal["ranked", "simple"] = Field(
        default="ranked", description="Biography resolution strategy"
    )
    WIKI_LANGUAGES: str = Field(default="ko,en", description="Wikipedia languages in order")
    WIKI_BASE_TEMPLATE: str = Field(
        default="https://{lang}.wikipedia.org", description="Wikipedia base URL template"
    )
    WIKI_USER_AGENT: str = Field(
        default=f"faceboard-ingest/{__version__}", description="User-Agent for Wikipedia"
    )
    BIOGRAPHY_KEYWORDS_FILE: str | None = Field(
        default=None, description="Path to an occupation keyword table (JSON)"
    )
    HTTP_TIMEOUT_SECONDS: float = Field(default=10.0, description="Outbound HTTP timeout")

    # =========================================================================
    # SERVER
    # =========================================================================

    CORS_ORIGINS: str | None = Field(default=None, description="Comma-separated CORS origins")

    # =========================================================================
    # VALIDATION & NORMALIZATION
    # =========================================================================

    @model_validator(mode="before")
    @classmethod
    def _normalize_values(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Strip whitespace and quotes, normalise ENVIRONMENT aliases."""
        for key, value in list(values.items()):
            if isinstance(value, str):
                values[key] = value.strip().strip('"').strip("'").strip()

        for key in ("ENVIRONMENT", "environment"):
            if key not in values:
                continue
            raw = str(values[key]).lower()
            if raw == "production":
                logger.warning("ENVIRONMENT='production' is deprecated; use 'prod'. Normalizing.")
                values[key] = "prod"
            elif raw == "development":
                logger.warning("ENVIRONMENT='development' is deprecated; use 'dev'. Normalizing.")
                values[key] = "dev"
            else:
                values[key] = raw

        for key in ("LOG_LEVEL", "log_level"):
            if isinstance(values.get(key), str):
                values[key] = values[key].upper()

        return values

    # =========================================================================
    # PROPERTY ALIASES
    # =========================================================================

    @property
    def supabase_url(self) -> str | None:
        return self.SUPABASE_URL

    @property
    def supabase_service_role_key(self) -> str | None:
        return self.SUPABASE_SERVICE_ROLE_KEY

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "prod"

    @property
    def sync_limit(self) -> int:
        """Configured default page size, clamped to the listing API bounds."""
        return clamp_limit(self.IMAGEKIT_SYNC_LIMIT)

    @property
    def imagekit_folder(self) -> str | None:
        return self.IMAGEKIT_FOLDER or None

    @property
    def webhook_event_types(self) -> list[str]:
        """Accepted webhook event types; an empty list accepts every event."""
        return _split_csv(self.IMAGEKIT_WEBHOOK_EVENT_TYPES)

    @property
    def wiki_languages(self) -> list[str]:
        return _split_csv(self.WIKI_LANGUAGES)

    @property
    def cors_allowed_origins(self) -> list[str]:
        return [o.rstrip("/") for o in _split_csv(self.CORS_ORIGINS) if o.startswith("http")]


def clamp_limit(value: int) -> int:
    """Clamp a requested page size to [1, 1000]."""
    return max(SYNC_LIMIT_MIN, min(int(value), SYNC_LIMIT_MAX))


# =========================================================================
# SINGLETON & FACTORY
# =========================================================================


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


def reset_settings() -> None:
    """Clear the cached settings (for testing)."""
    get_settings.cache_clear()


# =========================================================================
# LOGGING CONFIGURATION
# =========================================================================


def configure_logging(settings: Settings | None = None) -> None:
    """
    Configure application logging based on settings.

    In production, uses structured JSON logging for observability.
    In development, uses colored console output.
    """
    if settings is None:
        settings = get_settings()

    from .core.logging import configure_structured_logging

    configure_structured_logging(
        level=settings.LOG_LEVEL,
        json_output=settings.is_production,
        service_name="faceboard",
    )

    # Quiet noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)
