"""
Tests for the operator console (faceboard.cli).
"""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

import faceboard.cli as cli
from tests.helpers import FakeSupabase, FakeWiki, imagekit_files, make_async_client, wiki_only

runner = CliRunner()

FILES = [
    {"name": "jane_doe.jpg", "url": "https://ik.imagekit.io/demo/jane_doe.jpg", "fileType": "image"},
    {"name": "song.mp3", "url": "https://ik.imagekit.io/demo/song.mp3", "fileType": "non-image"},
]


@pytest.fixture
def outbound(monkeypatch: pytest.MonkeyPatch, wiki: FakeWiki):
    """Route the console's HTTP client to ImageKit and Wikipedia fakes."""

    def install(files=FILES, status_code: int = 200) -> None:
        monkeypatch.setattr(
            cli,
            "build_http_client",
            lambda settings: make_async_client(imagekit_files(files, status_code), wiki_only(wiki)),
        )

    return install


def test_normalize() -> None:
    result = runner.invoke(cli.app, ["normalize", "jane_doe_9f3a2b1c.png", "--strip-hash"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "jane doe"


def test_normalize_keeps_suffix_by_default() -> None:
    result = runner.invoke(cli.app, ["normalize", "jane_doe_9f3a2b1c.png"])
    assert result.stdout.strip() == "jane doe 9f3a2b1c"


def test_resolve(configure, outbound, wiki: FakeWiki) -> None:
    configure(LOG_LEVEL="ERROR")
    wiki.summaries["ko"] = {"Jane Doe": {"extract": "대한민국의 배우이다."}}
    outbound()

    result = runner.invoke(cli.app, ["resolve", "Jane Doe"])

    assert result.exit_code == 0
    assert result.stdout.strip() == "Actor"


def test_sync_dry_run(configure, outbound) -> None:
    configure(IMAGEKIT_PRIVATE_KEY="k", LOG_LEVEL="ERROR")
    outbound()

    result = runner.invoke(cli.app, ["sync", "--dry-run", "-n", "10"])

    assert result.exit_code == 0
    summary = json.loads(result.stdout)
    assert summary["scanned"] == 2
    assert summary["processed"] == 1
    assert summary["skipped"] == 1


def test_sync_writes(configure, outbound, monkeypatch: pytest.MonkeyPatch, fake_supabase: FakeSupabase) -> None:
    configure(IMAGEKIT_PRIVATE_KEY="k", LOG_LEVEL="ERROR")
    monkeypatch.setattr(cli, "get_supabase_client", lambda: fake_supabase)
    outbound()

    result = runner.invoke(cli.app, ["sync"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["inserted"] == 1
    assert fake_supabase.rows()[0]["name"] == "jane doe"


def test_sync_exit_code_on_asset_failure(
    configure, outbound, monkeypatch: pytest.MonkeyPatch, fake_supabase: FakeSupabase
) -> None:
    configure(IMAGEKIT_PRIVATE_KEY="k", LOG_LEVEL="ERROR")
    fake_supabase.failures["insert"] = "permission denied"
    monkeypatch.setattr(cli, "get_supabase_client", lambda: fake_supabase)
    outbound()

    result = runner.invoke(cli.app, ["sync"])

    assert result.exit_code == 2


def test_sync_configuration_failure(configure, outbound) -> None:
    configure(LOG_LEVEL="ERROR")
    outbound()

    result = runner.invoke(cli.app, ["sync", "--dry-run"])

    assert result.exit_code == 1
