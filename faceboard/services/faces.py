"""
Face Record Upserter.

Idempotent create-or-update of `faces` rows keyed by image URL, through
the Supabase PostgREST client:

    GET   /faces?select=id&image_url=eq.{url}&limit=1
    PATCH /faces?id=eq.{id}
    POST  /faces

Lookup-then-write is not atomic; two concurrent ingestions of the same URL
can both miss the lookup and insert twice unless the table has a unique
constraint on image_url (in which case the loser surfaces a FaceStoreError).
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Literal

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from ..core.errors import FaceStoreError

logger = logging.getLogger(__name__)

FACE_STATUS_APPROVED = "approved"

UpsertAction = Literal["inserted", "updated"]


@dataclass(frozen=True)
class FaceDraft:
    """Row written for one ingested image. Pipeline rows are always pre-approved."""

    name: str
    title: str
    image_url: str
    status: str = FACE_STATUS_APPROVED

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of one upsert: which write happened and the row id."""

    action: UpsertAction
    id: Any

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action, "id": self.id}


# Rejected requests raise APIError; connection failures come straight from httpx
StoreFailure = (APIError, httpx.HTTPError)


def _store_error_text(exc: Exception) -> str:
    if isinstance(exc, APIError):
        return exc.message or str(exc)
    return f"{type(exc).__name__} {exc}"


class FaceStore:
    """Faces table accessor bound to one Supabase client."""

    def __init__(self, client: Client, table: str = "faces"):
        self.client = client
        self.table = table

    def find_id_by_image_url(self, image_url: str) -> Any | None:
        """Return the id of the row for ``image_url`` or None."""
        try:
            result = (
                self.client.table(self.table)
                .select("id")
                .eq("image_url", image_url)
                .limit(1)
                .execute()
            )
        except StoreFailure as e:
            raise FaceStoreError(f"{self.table} lookup failed: {_store_error_text(e)}") from e

        rows = result.data or []
        return rows[0]["id"] if rows else None

    def upsert(self, draft: FaceDraft) -> UpsertResult:
        """
        Insert ``draft`` or overwrite the existing row with the same image URL.

        Exactly one write is issued per call; none if the lookup fails.

        Raises:
            FaceStoreError: If the lookup, update or insert is rejected
        """
        row = draft.to_row()
        existing_id = self.find_id_by_image_url(draft.image_url)

        if existing_id is not None:
            try:
                self.client.table(self.table).update(row).eq("id", existing_id).execute()
            except StoreFailure as e:
                raise FaceStoreError(f"{self.table} patch failed: {_store_error_text(e)}") from e
            logger.info(
                "Updated face %s",
                existing_id,
                extra={"action": "updated", "face_id": existing_id},
            )
            return UpsertResult(action="updated", id=existing_id)

        try:
            result = self.client.table(self.table).insert(row).execute()
        except StoreFailure as e:
            raise FaceStoreError(f"{self.table} insert failed: {_store_error_text(e)}") from e

        rows = result.data or []
        new_id = rows[0].get("id") if rows else None
        logger.info("Inserted face %s", new_id, extra={"action": "inserted", "face_id": new_id})
        return UpsertResult(action="inserted", id=new_id)
