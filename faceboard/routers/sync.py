"""
Faceboard - ImageKit Sync Router

Batch mode: list the media library and ingest every image.

    GET|POST /functions/v1/imagekit-sync?limit=100&token=...&dry_run=false

The gate token may be sent as the ``x-sync-token`` header or the ``token``
query parameter. When IMAGEKIT_SYNC_TOKEN is unset the gate is open.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any

import httpx
from fastapi import APIRouter, Depends, Header, Query

from ..config import Settings, clamp_limit
from ..core.errors import UnauthorizedError
from ..dependencies import (
    FaceStoreFactory,
    face_store_factory_dependency,
    http_client_dependency,
    settings_dependency,
)
from ..services.biography import BiographyResolver
from ..services.imagekit import ImageKitClient
from ..services.pipeline import IngestionPipeline, run_sync

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["ImageKit"])


def has_valid_sync_token(settings: Settings, supplied: str | None) -> bool:
    """Constant-time comparison against IMAGEKIT_SYNC_TOKEN; open gate when unset."""
    expected = settings.IMAGEKIT_SYNC_TOKEN
    if not expected:
        return True
    if not supplied:
        return False
    return secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def parse_limit(raw: str | None, default: int) -> int:
    """Requested page size clamped to 1..1000; unparseable values use the default."""
    if raw is None or not raw.strip():
        return default
    try:
        return clamp_limit(int(float(raw)))
    except (ValueError, OverflowError):
        return default


@router.api_route("/imagekit-sync", methods=["GET", "POST"])
async def imagekit_sync(
    limit: str | None = Query(None, description="Page size (1-1000)"),
    token: str | None = Query(None, description="Sync gate token"),
    dry_run: bool = Query(False, description="Resolve names and titles without writing"),
    x_sync_token: str | None = Header(None, alias="x-sync-token"),
    settings: Settings = Depends(settings_dependency),
    client: httpx.AsyncClient = Depends(http_client_dependency),
    store_factory: FaceStoreFactory = Depends(face_store_factory_dependency),
) -> dict[str, Any]:
    """
    Sync ImageKit images into the faces table.

    Returns counters for scanned, processed, inserted, updated, skipped
    (dry run) and failed assets.
    """
    if not has_valid_sync_token(settings, x_sync_token or token):
        logger.warning("Sync rejected: invalid token")
        raise UnauthorizedError("Invalid sync token")

    media = ImageKitClient.from_settings(settings, client)
    pipeline = IngestionPipeline(
        BiographyResolver.from_settings(settings, client),
        None if dry_run else store_factory(),
    )

    summary = await run_sync(
        media,
        pipeline,
        parse_limit(limit, settings.sync_limit),
        fail_fast=settings.IMAGEKIT_SYNC_FAIL_FAST,
        dry_run=dry_run,
    )
    return summary.to_dict()
