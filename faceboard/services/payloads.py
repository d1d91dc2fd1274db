"""
Asset descriptors from ImageKit listings and webhook payloads.

Webhook producers have placed the asset at different paths over time, so
each field is read through an ordered list of location accessors and the
first non-empty value wins:

    data -> data.asset -> data.file -> file -> payload -> (root)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from .names import last_path_segment, strip_query

IMAGE_KIND = "image"
FALLBACK_RAW_NAME = "unknown"

Accessor = Callable[[Mapping[str, Any]], Optional[Mapping[str, Any]]]


@dataclass(frozen=True)
class AssetDescriptor:
    """One image to ingest. ``url`` has no query string and is the dedup key."""

    raw_name: str
    url: str
    file_kind: str | None = None

    @property
    def is_image(self) -> bool:
        return is_image_kind(self.file_kind)


def is_image_kind(kind: str | None) -> bool:
    """Assets without a kind are assumed to be images."""
    return not kind or kind == IMAGE_KIND


def _at(*path: str) -> Accessor:
    def accessor(payload: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
        node: Any = payload
        for key in path:
            if not isinstance(node, Mapping):
                return None
            node = node.get(key)
        return node if isinstance(node, Mapping) else None

    accessor.__name__ = ".".join(path) or "root"
    return accessor


WEBHOOK_LOCATIONS: tuple[Accessor, ...] = (
    _at("data"),
    _at("data", "asset"),
    _at("data", "file"),
    _at("file"),
    _at("payload"),
    _at(),
)


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def probe(
    payload: Mapping[str, Any],
    read: Callable[[Mapping[str, Any]], Any],
    locations: tuple[Accessor, ...] = WEBHOOK_LOCATIONS,
) -> str | None:
    """First non-empty string produced by ``read`` across ``locations``."""
    for locate in locations:
        node = locate(payload)
        if node is None:
            continue
        value = _text(read(node))
        if value is not None:
            return value
    return None


def probe_field(payload: Mapping[str, Any], key: str) -> str | None:
    return probe(payload, lambda node: node.get(key))


def event_type(payload: Mapping[str, Any]) -> str | None:
    return _text(payload.get("type"))


def webhook_file_kind(payload: Mapping[str, Any]) -> str | None:
    kind = probe_field(payload, "fileType")
    return kind.strip().lower() if kind else None


def extract_webhook_asset(payload: Mapping[str, Any]) -> AssetDescriptor | None:
    """
    Build the descriptor for a webhook delivery, or None when no image URL
    can be found anywhere in the payload.

    The raw name is the first location's ``name`` or the last segment of
    its ``filePath``, then the last segment of the URL.
    """
    url = strip_query(probe_field(payload, "url"))
    if not url:
        return None

    raw_name = (
        probe(payload, lambda node: _text(node.get("name")) or last_path_segment(_text(node.get("filePath"))))
        or last_path_segment(url)
        or FALLBACK_RAW_NAME
    )
    return AssetDescriptor(raw_name=raw_name, url=url, file_kind=webhook_file_kind(payload))


def listing_file_kind(entry: Mapping[str, Any]) -> str | None:
    kind = _text(entry.get("fileType")) or _text(entry.get("type"))
    return kind.strip().lower() if kind else None


def descriptor_from_listing(entry: Mapping[str, Any]) -> AssetDescriptor | None:
    """Descriptor for one entry of the files listing, or None without a URL."""
    url = strip_query(_text(entry.get("url")))
    if not url:
        return None

    raw_name = (
        _text(entry.get("name"))
        or last_path_segment(_text(entry.get("filePath")))
        or last_path_segment(url)
        or FALLBACK_RAW_NAME
    )
    return AssetDescriptor(raw_name=raw_name, url=url, file_kind=listing_file_kind(entry))
