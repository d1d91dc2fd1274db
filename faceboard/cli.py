"""
Faceboard operator console.

    faceboard sync --limit 50 --dry-run
    faceboard resolve "Jane Doe" --webhook
    faceboard normalize jane_doe_9f3a2b1c.png --strip-hash
"""

from __future__ import annotations

import asyncio
import json
from typing import Optional

import typer

from .config import configure_logging, get_settings
from .core.errors import FaceboardError
from .db import get_supabase_client
from .dependencies import build_http_client
from .services.biography import BiographyResolver
from .services.faces import FaceStore
from .services.imagekit import ImageKitClient
from .services.names import normalize_name
from .services.pipeline import IngestionPipeline, SyncSummary, run_sync

app = typer.Typer(help="Faceboard ImageKit ingestion console.")


async def _sync(limit: int | None, dry_run: bool) -> SyncSummary:
    settings = get_settings()
    async with build_http_client(settings) as client:
        store = None if dry_run else FaceStore(get_supabase_client(), settings.FACES_TABLE)
        pipeline = IngestionPipeline(BiographyResolver.from_settings(settings, client), store)
        return await run_sync(
            ImageKitClient.from_settings(settings, client),
            pipeline,
            limit if limit is not None else settings.sync_limit,
            fail_fast=settings.IMAGEKIT_SYNC_FAIL_FAST,
            dry_run=dry_run,
        )


async def _resolve(name: str, webhook: bool) -> str:
    settings = get_settings()
    async with build_http_client(settings) as client:
        resolver = BiographyResolver.from_settings(settings, client)
        return await resolver.resolve(name, accept_untagged_summary=webhook)


@app.command()
def sync(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Files to list (1-1000)."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Resolve without writing."),
) -> None:
    """List ImageKit files and upsert every image into the faces table."""
    configure_logging()
    try:
        summary = asyncio.run(_sync(limit, dry_run))
    except FaceboardError as e:
        typer.secho(f"Sync failed: {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))
    if summary.failed:
        raise typer.Exit(code=2)


@app.command()
def resolve(
    name: str = typer.Argument(..., help="Display name to look up."),
    webhook: bool = typer.Option(
        False, "--webhook", help="Accept an untagged summary like the webhook path does."
    ),
) -> None:
    """Print the title the resolver would store for NAME."""
    configure_logging()
    typer.echo(asyncio.run(_resolve(name, webhook)))


@app.command()
def normalize(
    raw: str = typer.Argument(..., help="File name or path segment."),
    strip_hash: bool = typer.Option(False, "--strip-hash", help="Drop upload hash suffixes."),
) -> None:
    """Print the display name derived from RAW."""
    typer.echo(normalize_name(raw, strip_hash_suffix=strip_hash))


if __name__ == "__main__":
    app()
