"""BlobStore protocol - content-addressed mirror for receipt documents."""

from __future__ import annotations

from typing import Any, Protocol

from paytag_settlement.models.records import BlobRef


class BlobStore(Protocol):
    """Best-effort external storage for receipt documents."""

    async def put(self, document: dict[str, Any], epochs: int | None = None) -> BlobRef:
        """Store a JSON document. Raises BlobStoreError on failure."""
        ...
