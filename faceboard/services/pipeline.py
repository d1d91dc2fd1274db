"""
Ingestion pipeline shared by the sync poller and the webhook handler.

    AssetDescriptor -> normalize_name -> BiographyResolver -> FaceStore.upsert

Assets are processed one at a time. With duplicate names the last
processed asset wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..core.errors import FaceboardError
from ..core.logging import LogContext
from .biography import BiographyResolver
from .faces import FaceDraft, FaceStore, UpsertResult
from .imagekit import ImageKitClient
from .names import normalize_name
from .payloads import AssetDescriptor, descriptor_from_listing, is_image_kind, listing_file_kind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestResult:
    """What one asset turned into. ``result`` is None on dry runs."""

    name: str
    title: str
    image_url: str
    result: UpsertResult | None


@dataclass
class SyncSummary:
    """Counters reported by one batch sync."""

    scanned: int = 0
    processed: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)
    folder: str | None = None

    def record(self, outcome: IngestResult) -> None:
        if outcome.result is None:
            self.skipped += 1
        elif outcome.result.action == "inserted":
            self.inserted += 1
        elif outcome.result.action == "updated":
            self.updated += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": True,
            "scanned": self.scanned,
            "processed": self.processed,
            "inserted": self.inserted,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": self.errors,
            "folder": self.folder,
        }


class IngestionPipeline:
    """
    Drives assets through name normalization, enrichment and the upsert.

    Args:
        resolver: Biography resolver used for the title
        store: Faces table accessor; may be None only for dry runs
        strip_hash_suffix: Drop ImageKit duplicate-upload tokens from names
        accept_untagged_summary: Use a clamped summary when no occupation matches
    """

    def __init__(
        self,
        resolver: BiographyResolver,
        store: FaceStore | None,
        *,
        strip_hash_suffix: bool = False,
        accept_untagged_summary: bool = False,
    ):
        self.resolver = resolver
        self.store = store
        self.strip_hash_suffix = strip_hash_suffix
        self.accept_untagged_summary = accept_untagged_summary

    async def ingest(self, asset: AssetDescriptor, dry_run: bool = False) -> IngestResult:
        name = normalize_name(asset.raw_name, strip_hash_suffix=self.strip_hash_suffix)
        title = await self.resolver.resolve(
            name, accept_untagged_summary=self.accept_untagged_summary
        )

        if dry_run:
            logger.info("Dry run: %s -> %r (%s)", asset.url, name, title)
            return IngestResult(name=name, title=title, image_url=asset.url, result=None)

        if self.store is None:
            raise RuntimeError("IngestionPipeline needs a FaceStore to write")

        result = self.store.upsert(FaceDraft(name=name, title=title, image_url=asset.url))
        return IngestResult(name=name, title=title, image_url=asset.url, result=result)


async def run_sync(
    media: ImageKitClient,
    pipeline: IngestionPipeline,
    limit: int,
    *,
    fail_fast: bool = False,
    dry_run: bool = False,
) -> SyncSummary:
    """
    List assets and ingest every image among them.

    By default a failing asset is counted and reported in ``errors`` while the
    rest of the batch continues; with ``fail_fast`` the first failure aborts
    the whole call.

    Raises:
        ConfigurationError / MediaHostError: If the listing cannot be fetched
        FaceboardError: First asset failure when ``fail_fast`` is set
    """
    files = await media.list_files(limit)
    summary = SyncSummary(scanned=len(files), folder=media.folder)

    assets = []
    for entry in files:
        if not is_image_kind(listing_file_kind(entry)):
            continue
        summary.processed += 1
        asset = descriptor_from_listing(entry)
        if asset is None:
            logger.debug("Skipping listing entry without URL: %r", entry.get("name"))
            continue
        assets.append(asset)

    for asset in assets:
        with LogContext(asset_url=asset.url):
            try:
                outcome = await pipeline.ingest(asset, dry_run=dry_run)
            except FaceboardError as e:
                if fail_fast:
                    raise
                logger.error("Asset ingestion failed: %s", e.message)
                summary.failed += 1
                summary.errors.append({"url": asset.url, "error": e.message})
                continue
        summary.record(outcome)

    logger.info(
        "Sync finished: %d scanned, %d inserted, %d updated, %d failed",
        summary.scanned,
        summary.inserted,
        summary.updated,
        summary.failed,
    )
    return summary
