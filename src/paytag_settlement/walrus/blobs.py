"""Walrus publisher client - mirrors receipt documents as blobs."""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any

import httpx

from paytag_settlement.errors import BlobStoreError
from paytag_settlement.models.records import BlobRef

log = logging.getLogger(__name__)


def serialize_document(document: dict[str, Any]) -> str:
    """Canonical text form of a receipt document (what gets hashed and stored)."""
    return json.dumps(document, indent=2)


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode()).hexdigest()


class WalrusBlobStore:
    """Stores JSON documents through a Walrus publisher.

    - PUT {publisher}/v1/blobs?epochs=N   store
    - GET {aggregator}/v1/blobs/{blobId}  read back
    """

    def __init__(
        self,
        publisher_url: str,
        aggregator_url: str = "",
        epochs: int = 100,
        timeout: float = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._publisher_url = publisher_url.rstrip("/")
        self._aggregator_url = (aggregator_url or publisher_url).rstrip("/")
        self._epochs = epochs
        self._timeout = timeout
        self._transport = transport

    def blob_url(self, blob_id: str) -> str:
        return f"{self._aggregator_url}/v1/blobs/{blob_id}"

    async def put(self, document: dict[str, Any], epochs: int | None = None) -> BlobRef:
        if not self._publisher_url:
            raise BlobStoreError("Walrus publisher URL not configured")

        body = serialize_document(document)
        digest = content_hash(body)
        url = f"{self._publisher_url}/v1/blobs"
        params = {"epochs": str(epochs if epochs is not None else self._epochs)}

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10),
                transport=self._transport,
            ) as client:
                resp = await client.put(
                    url,
                    params=params,
                    content=body.encode(),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as exc:
            raise BlobStoreError(f"Walrus upload failed: {exc}") from exc

        if resp.status_code >= 400:
            raise BlobStoreError(
                f"Walrus upload failed: HTTP {resp.status_code} {resp.text[:200]}"
            )

        try:
            result = resp.json()
        except ValueError as exc:
            raise BlobStoreError("Walrus returned a non-JSON response") from exc

        if not isinstance(result, dict):
            raise BlobStoreError("Unexpected Walrus response format")
        created = result.get("newlyCreated")
        certified = result.get("alreadyCertified")
        if isinstance(created, dict):
            blob = created.get("blobObject")
            blob = blob if isinstance(blob, dict) else {}
            blob_id, object_id = blob.get("blobId"), blob.get("id")
        elif isinstance(certified, dict):
            blob_id = certified.get("blobId")
            event = certified.get("event")
            blob = event.get("blobObject") if isinstance(event, dict) else None
            object_id = blob.get("id") if isinstance(blob, dict) else None
        else:
            raise BlobStoreError("Unexpected Walrus response format")

        if not isinstance(blob_id, str) or not blob_id:
            raise BlobStoreError("Walrus response has no blobId")

        log.info("Stored blob %s (sha256 %s)", blob_id[:16], digest[:16])
        return BlobRef(blob_id=blob_id, content_hash=digest, object_id=object_id)

    async def get(self, blob_id: str) -> dict[str, Any]:
        """Read a stored document back from the aggregator."""
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10),
                transport=self._transport,
            ) as client:
                resp = await client.get(self.blob_url(blob_id))
                resp.raise_for_status()
                return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise BlobStoreError(f"Walrus read of {blob_id} failed: {exc}") from exc
