"""Receipt writer - public receipts for recorded payments."""

from __future__ import annotations

import json
import logging
import re
import secrets
import sqlite3
import string
from typing import Any

from paytag_settlement.errors import BlobStoreError
from paytag_settlement.interfaces.blobs import BlobStore
from paytag_settlement.interfaces.store import StateStore
from paytag_settlement.models.records import (
    Asset,
    Identity,
    Payment,
    Receipt,
    ReceiptStatus,
    SwapOutcome,
)

log = logging.getLogger(__name__)

PUBLIC_ID_ALPHABET = string.ascii_letters + string.digits + "_-"
PUBLIC_ID_LENGTH = 12
PUBLIC_ID_RETRIES = 5

EXPLORERS = {
    "ETH": "https://etherscan.io/tx/",
    "ETH-MAINNET": "https://etherscan.io/tx/",
    "ETH-SEPOLIA": "https://sepolia.etherscan.io/tx/",
    "BASE": "https://basescan.org/tx/",
    "BASE-MAINNET": "https://basescan.org/tx/",
    "BASE-SEPOLIA": "https://sepolia.basescan.org/tx/",
}

_TX_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")

# Assets whose amount is already in the stable denomination
STABLE_ASSETS = {Asset.USDC.value, Asset.EURC.value}


def generate_public_id(length: int = PUBLIC_ID_LENGTH) -> str:
    return "".join(secrets.choice(PUBLIC_ID_ALPHABET) for _ in range(length))


def explorer_url(chain: str, tx_hash: str | None) -> str | None:
    """Block explorer link, or None for unknown chains and non-hash ids."""
    base = EXPLORERS.get(chain.upper())
    if base is None or not tx_hash or not _TX_HASH_RE.match(tx_hash):
        return None
    return base + tx_hash


def build_receipt_document(
    payment: Payment, identity: Identity, url: str | None
) -> dict[str, Any]:
    """The canonical receipt document mirrored to blob storage."""
    return {
        "type": "paytag.receipt",
        "version": 1,
        "paytag": {
            "handle": identity.handle,
            "name": identity.display_name or identity.handle,
            "address": payment.to_address,
        },
        "payment": {
            "id": payment.id,
            "chain": payment.chain,
            "asset": payment.asset,
            "amount": payment.amount,
            "from": payment.from_address,
            "txHash": payment.tx_hash,
            "detectedAt": payment.created_at,
        },
        "circleTransferId": payment.external_transaction_id,
        "explorerUrl": url,
    }


class ReceiptWriter:
    """Issues one public receipt per payment and mirrors it to blob storage.

    Never raises to its caller: every failure is logged and the payment
    stays recorded either way.
    """

    def __init__(
        self,
        store: StateStore,
        blobs: BlobStore | None = None,
        epochs: int | None = None,
    ) -> None:
        self._store = store
        self._blobs = blobs
        self._epochs = epochs

    async def issue_receipt(self, payment: Payment, identity: Identity) -> Receipt | None:
        try:
            return await self._issue(payment, identity)
        except Exception as exc:
            log.error("Receipt for payment %s failed: %s", payment.id, exc, exc_info=True)
            return None

    async def _issue(self, payment: Payment, identity: Identity) -> Receipt | None:
        existing = await self._store.get_receipt_by_payment(payment.id)
        if existing is not None:
            return existing

        url = explorer_url(payment.chain, payment.tx_hash)
        document = build_receipt_document(payment, identity, url)
        blob_id, receipt_hash = await self._mirror(payment.id, document)

        for attempt in range(1, PUBLIC_ID_RETRIES + 1):
            receipt = Receipt(
                id="",
                payment_id=payment.id,
                receipt_public_id=generate_public_id(),
                paytag_handle=identity.handle,
                paytag_name=identity.display_name or identity.handle,
                receiver_address=payment.to_address,
                chain=payment.chain,
                asset_in=payment.asset,
                amount_in=payment.amount,
                amount_normalized=payment.amount if payment.asset in STABLE_ASSETS else None,
                tx_hash=payment.tx_hash,
                status=ReceiptStatus.CONFIRMED.value,
                external_transaction_id=payment.external_transaction_id,
                explorer_url=url,
                blob_id=blob_id,
                receipt_hash=receipt_hash,
            )
            try:
                await self._store.insert_receipt(receipt)
            except sqlite3.IntegrityError:
                # Either another writer issued this payment's receipt, or
                # the public id collided.
                existing = await self._store.get_receipt_by_payment(payment.id)
                if existing is not None:
                    return existing
                log.debug("Receipt public id collision (attempt %d)", attempt)
                continue

            log.info("Receipt %s issued for payment %s", receipt.receipt_public_id, payment.id)
            await self._store.log_activity(
                "receipt_issued",
                f"Receipt {receipt.receipt_public_id} for @{identity.handle}",
                payment_id=payment.id,
            )
            return receipt

        log.error(
            "Gave up issuing receipt for payment %s after %d public id collisions",
            payment.id, PUBLIC_ID_RETRIES,
        )
        return None

    async def _mirror(
        self, payment_id: str, document: dict[str, Any]
    ) -> tuple[str | None, str | None]:
        if self._blobs is None:
            log.debug("Blob mirroring disabled; receipt for %s stays local", payment_id)
            return None, None
        try:
            ref = await self._blobs.put(document, self._epochs)
        except BlobStoreError as exc:
            log.warning("Receipt mirror failed for payment %s: %s", payment_id, exc)
            return None, None
        except Exception as exc:
            log.error(
                "Receipt mirror for payment %s raised %s: %s",
                payment_id, type(exc).__name__, exc, exc_info=True,
            )
            return None, None
        return ref.blob_id, ref.content_hash

    async def apply_swap_details(
        self, payment_id: str, outcome: SwapOutcome, target_asset: str
    ) -> bool:
        """Attach settled swap details and the normalized amount to a receipt."""
        details = {
            "txHash": outcome.tx_hash,
            "executionId": outcome.execution_id,
            "router": outcome.router,
            "amountIn": outcome.amount_in,
            "amountOut": outcome.amount_out,
            "targetAsset": target_asset,
            "slippageBps": outcome.slippage_bps,
            "deadline": outcome.deadline,
        }
        try:
            updated = await self._store.update_receipt_swap_details(
                payment_id, json.dumps(details), amount_normalized=outcome.amount_out,
            )
        except Exception as exc:
            log.error("Swap details for payment %s not saved: %s", payment_id, exc, exc_info=True)
            return False
        if not updated:
            log.warning("No receipt to update for payment %s", payment_id)
        return updated
