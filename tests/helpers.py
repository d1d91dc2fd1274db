"""
tests/helpers.py

Test doubles for the external collaborators:

- FakeSupabase: in-memory stand-in for the PostgREST table builder chain
  used by FaceStore (select/eq/limit, update/eq, insert).
- FakeWiki, wiki_only, imagekit_files: httpx.MockTransport routes for the
  Wikipedia opensearch/summary calls and the ImageKit files listing.
- sign_webhook: builds valid Standard Webhooks headers for a body.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, Callable
from urllib.parse import unquote

import httpx
from postgrest.exceptions import APIError

# =============================================================================
# Supabase
# =============================================================================


class _Query:
    def __init__(self, store: "FakeSupabase", table: str):
        self.store = store
        self.table = table
        self.op = "select"
        self.payload: dict[str, Any] | None = None
        self.filters: list[tuple[str, Any]] = []
        self.max_rows: int | None = None

    def select(self, columns: str) -> "_Query":
        self.op = "select"
        self.columns = [c.strip() for c in columns.split(",")]
        return self

    def insert(self, row: dict[str, Any]) -> "_Query":
        self.op = "insert"
        self.payload = dict(row)
        return self

    def update(self, row: dict[str, Any]) -> "_Query":
        self.op = "update"
        self.payload = dict(row)
        return self

    def eq(self, column: str, value: Any) -> "_Query":
        self.filters.append((column, value))
        return self

    def limit(self, count: int) -> "_Query":
        self.max_rows = count
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(row.get(col) == val for col, val in self.filters)

    def execute(self) -> SimpleNamespace:
        self.store.calls.append((self.op, self.table, list(self.filters), self.payload))
        if self.store.raise_for is not None:
            error = self.store.raise_for(self.op, self.filters)
            if error is not None:
                raise error
        failure = self.store.failures.get(self.op)
        if failure:
            raise APIError({"message": failure, "code": "PGRST000"})

        rows = self.store.tables.setdefault(self.table, [])
        if self.op == "select":
            found = [r for r in rows if self._matches(r)]
            if self.max_rows is not None:
                found = found[: self.max_rows]
            return SimpleNamespace(data=[{c: r.get(c) for c in self.columns} for r in found])
        if self.op == "insert":
            self.store.next_id += 1
            row = {"id": self.store.next_id, **(self.payload or {})}
            rows.append(row)
            return SimpleNamespace(data=[dict(row)])
        updated = []
        for row in rows:
            if self._matches(row):
                row.update(self.payload or {})
                updated.append(dict(row))
        return SimpleNamespace(data=updated)


class FakeSupabase:
    """
    Minimal in-memory Supabase client.

    Set ``failures[op] = message`` to inject PostgREST errors.
    ``raise_for(op, filters)`` may return an exception to raise from one
    specific call, e.g. an httpx transport error for a single lookup.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, str, list[tuple[str, Any]], dict[str, Any] | None]] = []
        self.failures: dict[str, str] = {}
        self.raise_for: Callable[[str, list[tuple[str, Any]]], Exception | None] | None = None
        self.next_id = 0

    def table(self, name: str) -> _Query:
        return _Query(self, name)

    def rows(self, table: str = "faces") -> list[dict[str, Any]]:
        return self.tables.get(table, [])

    def writes(self) -> list[str]:
        return [op for op, *_ in self.calls if op in ("insert", "update")]


# =============================================================================
# Wikipedia / ImageKit over httpx.MockTransport
# =============================================================================


@dataclass
class FakeWiki:
    """
    Scripted Wikipedia backends keyed by language.

    ``search[lang][query]`` -> list of titles
    ``summaries[lang][title]`` -> summary dict (extract/description)
    ``down`` -> languages whose every call returns 503
    """

    search: dict[str, dict[str, list[str]]] = field(default_factory=dict)
    summaries: dict[str, dict[str, dict[str, Any]]] = field(default_factory=dict)
    down: set[str] = field(default_factory=set)
    requests: list[httpx.Request] = field(default_factory=list)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        lang = request.url.host.split(".")[0]
        if lang in self.down:
            return httpx.Response(503, text="unavailable")

        if request.url.path == "/w/api.php":
            query = request.url.params.get("search", "")
            limit = int(request.url.params.get("limit", "10"))
            titles = self.search.get(lang, {}).get(query, [])[:limit]
            return httpx.Response(200, json=[query, titles, [], []])

        prefix = "/api/rest_v1/page/summary/"
        if request.url.path.startswith(prefix):
            title = unquote(request.url.raw_path.decode("ascii").split(prefix, 1)[1])
            summary = self.summaries.get(lang, {}).get(title)
            if summary is None:
                return httpx.Response(404, json={"title": "Not found."})
            return httpx.Response(200, json=summary)

        return httpx.Response(404)

    def summary_titles(self) -> list[str]:
        prefix = "/api/rest_v1/page/summary/"
        return [
            unquote(r.url.raw_path.decode("ascii").split(prefix, 1)[1])
            for r in self.requests
            if r.url.path.startswith(prefix)
        ]


def make_async_client(*handlers: Any) -> httpx.AsyncClient:
    """
    AsyncClient whose transport tries each handler in turn; a handler
    returns None to pass the request on.
    """

    def route(request: httpx.Request) -> httpx.Response:
        for handler in handlers:
            response = handler(request)
            if response is not None:
                return response
        return httpx.Response(404, text="no route")

    return httpx.AsyncClient(transport=httpx.MockTransport(route))


def wiki_only(wiki: FakeWiki):
    def handler(request: httpx.Request) -> httpx.Response | None:
        if request.url.host.endswith("wikipedia.org"):
            return wiki.handle(request)
        return None

    return handler


def imagekit_files(files: list[dict[str, Any]], status_code: int = 200, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response | None:
        if request.url.host != "api.imagekit.io":
            return None
        if seen is not None:
            seen.append(request)
        if status_code != 200:
            return httpx.Response(status_code, text="forbidden by imagekit")
        return httpx.Response(200, json=files)

    return handler


# =============================================================================
# Webhook signing
# =============================================================================

WEBHOOK_SECRET = "whsec_dGVzdC13ZWJob29rLXNlY3JldC1rZXk="


def sign_webhook(secret: str, webhook_id: str, timestamp: int | str, body: bytes) -> dict[str, str]:
    """Headers ImageKit would send for ``body``."""
    key = (
        base64.b64decode(secret[len("whsec_") :])
        if secret.startswith("whsec_")
        else secret.encode("utf-8")
    )
    signed = f"{webhook_id}.{timestamp}.".encode("utf-8") + body
    digest = base64.b64encode(hmac.new(key, signed, hashlib.sha256).digest()).decode("ascii")
    return {
        "webhook-id": webhook_id,
        "webhook-timestamp": str(timestamp),
        "webhook-signature": f"v1,{digest}",
        "content-type": "application/json",
    }


def json_body(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")
