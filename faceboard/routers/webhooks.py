"""
Faceboard - Webhooks Router

Handles ImageKit upload webhooks (Standard Webhooks signing):

    POST /functions/v1/imagekit-webhook
    Headers: webhook-id, webhook-timestamp, webhook-signature

Events outside the supported type/shape space are acknowledged with 202
so the producer does not retry them.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from ..config import Settings
from ..core.errors import UnauthorizedError
from ..core.logging import LogContext
from ..dependencies import (
    FaceStoreFactory,
    face_store_factory_dependency,
    http_client_dependency,
    settings_dependency,
)
from ..services.biography import BiographyResolver
from ..services.payloads import event_type, extract_webhook_asset, is_image_kind, webhook_file_kind
from ..services.pipeline import IngestionPipeline
from ..services.signatures import WebhookVerifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["Webhooks"])


def ignored(reason: str, **fields: Any) -> JSONResponse:
    logger.info("Webhook ignored: %s", reason, extra={"reason": reason})
    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content={"ignored": True, "reason": reason, **fields},
    )


@router.post("/imagekit-webhook")
async def imagekit_webhook(
    request: Request,
    webhook_id: str | None = Header(None, alias="webhook-id"),
    webhook_timestamp: str | None = Header(None, alias="webhook-timestamp"),
    webhook_signature: str | None = Header(None, alias="webhook-signature"),
    settings: Settings = Depends(settings_dependency),
    client: httpx.AsyncClient = Depends(http_client_dependency),
    store_factory: FaceStoreFactory = Depends(face_store_factory_dependency),
) -> Any:
    """
    Ingest the asset carried by one ImageKit webhook delivery.

    Responses:
    - 200: {ok, eventType, name, title, imageUrl, result}
    - 202: {ignored: true, reason} for unsupported events, non-images, no URL
    - 401: invalid signature
    """
    # Raw body is verified byte-for-byte before parsing
    body = await request.body()

    verifier = WebhookVerifier.from_settings(settings)
    if not verifier.verify(body, webhook_id, webhook_timestamp, webhook_signature):
        raise UnauthorizedError("Invalid webhook signature")

    try:
        payload = json.loads(body)
    except ValueError:
        logger.error("Invalid JSON in ImageKit webhook")
        raise HTTPException(status_code=400, detail="Invalid JSON payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    event = event_type(payload)
    accepted = settings.webhook_event_types
    if accepted and event not in accepted:
        return ignored("unsupported_event", type=event)

    file_kind = webhook_file_kind(payload)
    if not is_image_kind(file_kind):
        return ignored("non_image", fileType=file_kind)

    asset = extract_webhook_asset(payload)
    if asset is None:
        return ignored("missing_url", type=event)

    with LogContext(event_id=webhook_id, asset_url=asset.url):
        pipeline = IngestionPipeline(
            BiographyResolver.from_settings(settings, client),
            store_factory(),
            strip_hash_suffix=True,
            accept_untagged_summary=True,
        )
        outcome = await pipeline.ingest(asset)
        logger.info(
            "Webhook ingested %r as %r",
            outcome.name,
            outcome.title,
            extra={"event_type": event},
        )

    return {
        "ok": True,
        "eventType": event,
        "name": outcome.name,
        "title": outcome.title,
        "imageUrl": outcome.image_url,
        "result": outcome.result.to_dict() if outcome.result else None,
    }
