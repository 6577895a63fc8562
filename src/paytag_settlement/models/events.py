"""Deposit notification models: vendor payload variants and the canonical event."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class InboundTransferNotification:
    """Circle ``transactions.inbound`` notification, validated at the boundary."""

    notification_id: str | None
    transaction_id: str | None
    state: str
    blockchain: str | None
    token_id: str | None
    wallet_id: str | None
    destination_address: str | None
    source_address: str | None
    amount: str | None  # first entry of ``amounts``
    tx_hash: str | None
    create_date: str | None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class OtherNotification:
    """Any notification outside the deposit-inbound family (kept for logging)."""

    notification_type: str
    notification_id: str | None = None


VendorNotification = Union[InboundTransferNotification, OtherNotification]


@dataclass(frozen=True)
class DepositEvent:
    """Canonical deposit, the only shape downstream components see.

    ``external_transaction_id`` is the sole idempotency key for payments.
    """

    source_type: str  # e.g. "transactions.inbound:COMPLETE"
    destination_address: str
    external_transaction_id: str
    amount: str  # decimal string, human units
    asset_id: str | None  # vendor token id
    asset: str  # resolved Asset value
    chain: str
    timestamp: str | None
    tx_hash: str | None = None
    source_address: str | None = None
    wallet_id: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
