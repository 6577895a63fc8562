"""Circle notification parsing and normalization to DepositEvent."""

from __future__ import annotations

import logging
from typing import Any

from paytag_settlement.circle.assets import TokenTable
from paytag_settlement.errors import MalformedInput
from paytag_settlement.models.events import (
    DepositEvent,
    InboundTransferNotification,
    OtherNotification,
    VendorNotification,
)

log = logging.getLogger(__name__)

INBOUND_TYPE = "transactions.inbound"
SUCCESS_STATES = frozenset({"COMPLETE", "COMPLETED"})

_default_tokens = TokenTable()


def parse_notification(payload: Any) -> VendorNotification:
    """Validate a decoded notification body into a typed variant.

    Raises MalformedInput only when the body is not a JSON object or the
    inbound ``notification`` block has the wrong shape. Missing optional
    fields become None.
    """
    if not isinstance(payload, dict):
        raise MalformedInput("notification body must be a JSON object")

    ntype = _str(payload.get("notificationType")) or "unknown"
    notification_id = _str(payload.get("notificationId"))
    if ntype != INBOUND_TYPE:
        return OtherNotification(notification_type=ntype, notification_id=notification_id)

    body = payload.get("notification")
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise MalformedInput("notification block must be a JSON object")

    amounts = body.get("amounts")
    amount: str | None = None
    if isinstance(amounts, list) and amounts:
        amount = _str(amounts[0])
    elif "amount" in body:
        amount = _str(body.get("amount"))

    return InboundTransferNotification(
        notification_id=notification_id,
        transaction_id=_str(body.get("id")),
        state=(_str(body.get("state")) or "").upper(),
        blockchain=_str(body.get("blockchain")),
        token_id=_str(body.get("tokenId")),
        wallet_id=_str(body.get("walletId")),
        destination_address=_str(body.get("destinationAddress")),
        source_address=_str(body.get("sourceAddress")),
        amount=amount,
        tx_hash=_str(body.get("txHash")),
        create_date=_str(body.get("createDate")) or _str(payload.get("timestamp")),
        raw=payload,
    )


def normalize(
    notification: VendorNotification, tokens: TokenTable | None = None
) -> DepositEvent | None:
    """Turn a completed inbound transfer into a DepositEvent.

    Returns None for every other notification type or state.
    """
    if not isinstance(notification, InboundTransferNotification):
        log.debug("Ignoring %s notification", notification.notification_type)
        return None
    if notification.state not in SUCCESS_STATES:
        log.debug(
            "Ignoring inbound transfer %s in state %s",
            notification.transaction_id, notification.state or "(none)",
        )
        return None

    tokens = tokens or _default_tokens
    return DepositEvent(
        source_type=f"{INBOUND_TYPE}:{notification.state}",
        destination_address=notification.destination_address or "",
        external_transaction_id=notification.transaction_id or "",
        amount=notification.amount or "",
        asset_id=notification.token_id,
        asset=tokens.resolve(notification.token_id).value,
        chain=(notification.blockchain or "").upper(),
        timestamp=notification.create_date,
        tx_hash=notification.tx_hash,
        source_address=notification.source_address,
        wallet_id=notification.wallet_id,
        raw=notification.raw,
    )


def _str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
