"""Read-side snapshots returned by the data API (JSON-serializable)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class PaymentSnapshot:
    id: str
    chain: str
    asset: str
    amount: str
    to_address: str
    tx_hash: str
    status: str
    swap_status: str
    created_at: str
    from_address: str | None = None
    swap_tx_hash: str | None = None
    amount_out_target: str | None = None
    receipt_public_id: str | None = None


@dataclass
class ReceiptSnapshot:
    """Public receipt view; display name falls back to the handle."""

    receipt_public_id: str
    paytag_handle: str
    display_name: str
    receiver_address: str
    chain: str
    asset: str
    amount_in: str
    tx_hash: str
    status: str
    created_at: str
    amount_normalized: str | None = None
    from_address: str | None = None
    explorer_url: str | None = None
    blob_id: str | None = None
    receipt_hash: str | None = None
    swap: dict[str, Any] | None = None

