"""
Tests for structured logging: redaction, JSON output, context and stream split.
"""

from __future__ import annotations

import json
import logging

import pytest

from faceboard.core.logging import (
    LogContext,
    StructuredJsonFormatter,
    _MaxLevelFilter,
    clear_context,
    get_current_context,
    redact_sensitive,
)


@pytest.fixture(autouse=True)
def empty_context():
    clear_context()
    yield
    clear_context()


def make_record(message: str, level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("faceboard.test", level, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRedaction:
    def test_sensitive_keys(self) -> None:
        data = {
            "IMAGEKIT_PRIVATE_KEY": "private_abc",
            "x-sync-token": "s3cret",
            "webhook-signature": "v1,abc",
            "name": "jane doe",
        }
        assert redact_sensitive(data) == {
            "IMAGEKIT_PRIVATE_KEY": "[REDACTED]",
            "x-sync-token": "[REDACTED]",
            "webhook-signature": "[REDACTED]",
            "name": "jane doe",
        }

    def test_nested_structures(self) -> None:
        data = {"headers": [{"Authorization": "Basic x"}], "face": {"title": "Singer"}}
        assert redact_sensitive(data) == {
            "headers": [{"Authorization": "[REDACTED]"}],
            "face": {"title": "Singer"},
        }


class TestJsonFormatter:
    def test_fields_and_context(self) -> None:
        formatter = StructuredJsonFormatter()
        with LogContext(request_id="req-1", asset_url="https://ik.imagekit.io/a.jpg"):
            line = formatter.format(make_record("Inserted face 7", face_id=7, action="inserted"))

        payload = json.loads(line)
        assert payload["level"] == "INFO"
        assert payload["logger"] == "faceboard.test"
        assert payload["message"] == "Inserted face 7"
        assert payload["request_id"] == "req-1"
        assert payload["asset_url"] == "https://ik.imagekit.io/a.jpg"
        assert payload["face_id"] == 7
        assert payload["action"] == "inserted"

    def test_context_values_redacted(self) -> None:
        formatter = StructuredJsonFormatter()
        with LogContext(token="s3cret"):
            payload = json.loads(formatter.format(make_record("hello")))
        assert payload["token"] == "[REDACTED]"

    def test_non_ascii_kept(self) -> None:
        line = StructuredJsonFormatter().format(make_record("가수"))
        assert "가수" in line


class TestLogContext:
    def test_restored_on_exit(self) -> None:
        with LogContext(event_id="evt_1"):
            with LogContext(asset_url="u"):
                assert get_current_context() == {"event_id": "evt_1", "asset_url": "u"}
            assert get_current_context() == {"event_id": "evt_1"}
        assert get_current_context() == {}


def test_stdout_filter_passes_info_and_below() -> None:
    info_only = _MaxLevelFilter(logging.INFO)
    assert info_only.filter(make_record("x", logging.DEBUG))
    assert info_only.filter(make_record("x", logging.INFO))
    assert not info_only.filter(make_record("x", logging.WARNING))
