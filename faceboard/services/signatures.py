"""
Webhook Signature Verification (Standard Webhooks scheme).

ImageKit signs each delivery with HMAC-SHA256 over
``{webhook-id}.{webhook-timestamp}.{raw body}`` and sends the base64 digest
in ``webhook-signature`` as space-separated ``v1,<digest>`` pairs.

Configuration:
  IMAGEKIT_WEBHOOK_SECRET    - Shared secret; ``whsec_`` prefix means the
                               remainder is base64 key material
  IMAGEKIT_VERIFY_SIGNATURE  - Operational bypass switch (true by default).
                               When false every delivery is accepted.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import time

from ..config import Settings
from ..core.errors import ConfigurationError

logger = logging.getLogger(__name__)

SECRET_PREFIX = "whsec_"
SIGNATURE_VERSION = "v1"
DEFAULT_TOLERANCE_SECONDS = 300


def decode_secret(secret: str) -> bytes:
    """Key bytes for the HMAC: base64-decoded for ``whsec_`` secrets, else UTF-8."""
    if secret.startswith(SECRET_PREFIX):
        try:
            return base64.b64decode(secret[len(SECRET_PREFIX) :], validate=True)
        except (binascii.Error, ValueError) as e:
            raise ConfigurationError("IMAGEKIT_WEBHOOK_SECRET is not valid base64.") from e
    return secret.encode("utf-8")


def sign(key: bytes, webhook_id: str, timestamp: str, body: bytes) -> str:
    """Base64 HMAC-SHA256 of the signed content."""
    signed_content = f"{webhook_id}.{timestamp}.".encode("utf-8") + body
    digest = hmac.new(key, signed_content, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def extract_v1_signatures(header: str) -> list[str]:
    """Values of every ``v1,<value>`` pair in a signature header."""
    values = []
    for segment in header.split(" "):
        segment = segment.strip()
        if not segment:
            continue
        version, _, value = segment.partition(",")
        if version == SIGNATURE_VERSION and value:
            values.append(value)
    return values


class WebhookVerifier:
    """Checks authenticity and freshness of one webhook delivery."""

    def __init__(
        self,
        secret: str | None,
        *,
        enabled: bool = True,
        tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
    ):
        self.secret = secret
        self.enabled = enabled
        self.tolerance_seconds = tolerance_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "WebhookVerifier":
        return cls(
            settings.IMAGEKIT_WEBHOOK_SECRET,
            enabled=settings.IMAGEKIT_VERIFY_SIGNATURE,
            tolerance_seconds=settings.IMAGEKIT_WEBHOOK_TOLERANCE_SECONDS,
        )

    def verify(
        self,
        body: bytes | str,
        webhook_id: str | None,
        timestamp: str | None,
        signature: str | None,
        now: float | None = None,
    ) -> bool:
        """
        Return True when the delivery is authentic and fresh.

        Malformed or missing headers yield False; they never raise.

        Raises:
            ConfigurationError: If verification is enabled but no secret is set
        """
        if not self.enabled:
            return True
        if not self.secret:
            raise ConfigurationError(
                "IMAGEKIT_WEBHOOK_SECRET is required when signature verification is enabled."
            )

        if not webhook_id or not timestamp or not signature:
            logger.warning("Webhook rejected: missing signature headers", extra={"reason": "missing_headers"})
            return False

        if not (timestamp.isascii() and timestamp.isdigit()):
            logger.warning("Webhook rejected: non-numeric timestamp", extra={"reason": "bad_timestamp"})
            return False
        sent_at = int(timestamp)

        current = int(now if now is not None else time.time())
        if abs(current - sent_at) > self.tolerance_seconds:
            logger.warning("Webhook rejected: timestamp outside tolerance", extra={"reason": "stale"})
            return False

        raw = body.encode("utf-8") if isinstance(body, str) else body
        expected = sign(decode_secret(self.secret), webhook_id, timestamp, raw).encode("ascii")

        for candidate in extract_v1_signatures(signature):
            if hmac.compare_digest(candidate.encode("utf-8"), expected):
                return True

        logger.warning("Webhook rejected: signature mismatch", extra={"reason": "mismatch"})
        return False
