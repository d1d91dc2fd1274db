"""
ImageKit Media Library client.

Only the file listing endpoint is used:

    GET {IMAGEKIT_API_BASE}/files?limit=&path=

Authentication is HTTP Basic with the private key as username and an
empty password.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings, clamp_limit
from ..core.errors import ConfigurationError, MediaHostError

logger = logging.getLogger(__name__)


class ImageKitClient:
    """Lists assets from an ImageKit media library."""

    DEFAULT_API_BASE = "https://api.imagekit.io/v1"

    def __init__(
        self,
        client: httpx.AsyncClient,
        private_key: str | None,
        *,
        api_base: str | None = None,
        folder: str | None = None,
    ):
        self.client = client
        self.private_key = private_key
        self.api_base = (api_base or self.DEFAULT_API_BASE).rstrip("/")
        self.folder = folder or None

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient) -> "ImageKitClient":
        return cls(
            client,
            settings.IMAGEKIT_PRIVATE_KEY,
            api_base=settings.IMAGEKIT_API_BASE,
            folder=settings.imagekit_folder,
        )

    async def list_files(self, limit: int) -> list[dict[str, Any]]:
        """
        List up to ``limit`` files (clamped to 1..1000) under the configured folder.

        Raises:
            ConfigurationError: If IMAGEKIT_PRIVATE_KEY is not configured
            MediaHostError: On transport failure or a non-2xx response
        """
        if not self.private_key:
            raise ConfigurationError("IMAGEKIT_PRIVATE_KEY is required.")

        params = {"limit": str(clamp_limit(limit))}
        if self.folder:
            params["path"] = self.folder

        try:
            response = await self.client.get(
                f"{self.api_base}/files",
                params=params,
                auth=httpx.BasicAuth(self.private_key, ""),
            )
        except httpx.HTTPError as e:
            raise MediaHostError(f"ImageKit files API failed: {type(e).__name__} {e}") from e

        if not response.is_success:
            raise MediaHostError(
                f"ImageKit files API failed: {response.status_code} {response.text}",
                upstream_status=response.status_code,
            )

        try:
            files = response.json()
        except ValueError as e:
            raise MediaHostError("ImageKit files API returned invalid JSON") from e
        if not isinstance(files, list):
            raise MediaHostError("ImageKit files API returned an unexpected payload")

        logger.info("Listed %d ImageKit files", len(files), extra={"count": len(files)})
        return [f for f in files if isinstance(f, dict)]
