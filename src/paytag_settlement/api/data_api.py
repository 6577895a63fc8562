"""Read boundary - payments by handle, public receipts, queue state."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from paytag_settlement.interfaces.store import StateStore
from paytag_settlement.models.records import ActivityRecord, JobSummary, Payment
from paytag_settlement.models.snapshots import PaymentSnapshot, ReceiptSnapshot

log = logging.getLogger(__name__)

DEFAULT_PAGE = 10
MAX_PAGE = 100


def _payment_to_snapshot(payment: Payment, receipt_public_id: str | None) -> PaymentSnapshot:
    return PaymentSnapshot(
        id=payment.id,
        chain=payment.chain,
        asset=payment.asset,
        amount=payment.amount,
        from_address=payment.from_address,
        to_address=payment.to_address,
        tx_hash=payment.tx_hash,
        status=payment.status,
        swap_status=payment.swap_status,
        swap_tx_hash=payment.swap_tx_hash,
        amount_out_target=payment.amount_out_target,
        receipt_public_id=receipt_public_id,
        created_at=payment.created_at,
    )


class LedgerQueries:
    """Builds read-only views of the ledger for the HTTP layer and the CLI."""

    def __init__(self, store: StateStore) -> None:
        self._store = store

    async def get_payments_by_handle(
        self, handle: str, limit: int = DEFAULT_PAGE
    ) -> list[PaymentSnapshot] | None:
        """Newest payments for a handle, or None if the handle is unknown."""
        identity = await self._store.get_identity_by_handle(handle)
        if identity is None:
            return None
        limit = max(1, min(int(limit), MAX_PAGE))
        payments = await self._store.get_payments_by_paytag(identity.identity_id, limit)
        snapshots = []
        for payment in payments:
            receipt = await self._store.get_receipt_by_payment(payment.id)
            snapshots.append(
                _payment_to_snapshot(payment, receipt.receipt_public_id if receipt else None)
            )
        return snapshots

    async def get_receipt_by_public_id(self, public_id: str) -> ReceiptSnapshot | None:
        receipt = await self._store.get_receipt_by_public_id(public_id)
        if receipt is None:
            return None
        payment = await self._store.get_payment(receipt.payment_id)
        identity = (
            await self._store.get_identity(payment.paytag_id) if payment else None
        )

        swap = None
        if receipt.swap_details:
            try:
                swap = json.loads(receipt.swap_details)
            except ValueError:
                log.warning("Receipt %s has unreadable swap details", public_id)

        display_name = receipt.paytag_name or receipt.paytag_handle
        if identity is not None and identity.display_name:
            display_name = identity.display_name

        return ReceiptSnapshot(
            receipt_public_id=receipt.receipt_public_id,
            paytag_handle=receipt.paytag_handle,
            display_name=display_name,
            receiver_address=receipt.receiver_address,
            chain=receipt.chain,
            asset=receipt.asset_in,
            amount_in=receipt.amount_in,
            amount_normalized=receipt.amount_normalized,
            tx_hash=receipt.tx_hash,
            from_address=payment.from_address if payment else None,
            status=payment.status if payment else receipt.status,
            explorer_url=receipt.explorer_url,
            blob_id=receipt.blob_id,
            receipt_hash=receipt.receipt_hash,
            swap=swap,
            created_at=receipt.created_at,
        )

    async def get_job_summary(self) -> JobSummary:
        return await self._store.get_job_summary(datetime.now(timezone.utc))

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        return await self._store.get_recent_activity(limit)
