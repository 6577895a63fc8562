"""Payment ledger - durable, idempotent record of detected deposits."""

from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation

from paytag_settlement.interfaces.identity import IdentityResolver
from paytag_settlement.interfaces.store import StateStore
from paytag_settlement.models.events import DepositEvent
from paytag_settlement.models.records import (
    Payment,
    PaymentStatus,
    RecordResult,
    SwapStatus,
)

log = logging.getLogger(__name__)


def parse_amount(text: str | None) -> Decimal | None:
    """Parse a positive decimal amount; None for missing, zero or junk."""
    if not text:
        return None
    try:
        value = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value


class PaymentLedger:
    """Records each deposit exactly once, keyed by the vendor transaction id."""

    def __init__(
        self,
        store: StateStore,
        identities: IdentityResolver,
        allowed_chains: list[str],
    ) -> None:
        self._store = store
        self._identities = identities
        self._allowed_chains = {c.upper() for c in allowed_chains}

    async def record_payment(self, event: DepositEvent) -> RecordResult:
        if not event.destination_address or not event.external_transaction_id:
            log.warning(
                "Incomplete deposit event (destination=%r, transaction=%r), skipping",
                event.destination_address, event.external_transaction_id,
            )
            return RecordResult("malformed", detail="missing destination or transaction id")

        if parse_amount(event.amount) is None:
            log.warning(
                "Deposit %s has unusable amount %r",
                event.external_transaction_id, event.amount,
            )
            return RecordResult("malformed", detail=f"invalid amount {event.amount!r}")

        if event.chain.upper() not in self._allowed_chains:
            log.warning(
                "Unsupported blockchain %s for deposit %s (supported: %s)",
                event.chain or "(none)", event.external_transaction_id,
                ", ".join(sorted(self._allowed_chains)),
            )
            return RecordResult("unsupported_chain", detail=event.chain)

        existing = await self._store.get_payment_by_external_id(event.external_transaction_id)
        if existing is not None:
            log.info("Payment already recorded: %s", event.external_transaction_id)
            identity = await self._identities.get_identity(existing.paytag_id)
            return RecordResult("already_recorded", payment=existing, identity=identity)

        identity = await self._identities.resolve_by_wallet_address(event.destination_address)
        if identity is None:
            log.warning("No PayTag found for wallet %s", event.destination_address)
            return RecordResult("unknown_wallet", detail=event.destination_address)

        payment = Payment(
            id="",
            paytag_id=identity.identity_id,
            chain=event.chain.upper(),
            asset=event.asset,
            amount=event.amount,
            from_address=event.source_address,
            to_address=event.destination_address,
            tx_hash=event.tx_hash or event.external_transaction_id,
            external_transaction_id=event.external_transaction_id,
            raw_event=json.dumps(event.raw),
            status=PaymentStatus.DETECTED.value,
            swap_status=SwapStatus.NOT_APPLICABLE.value,
        )

        if not await self._store.insert_payment(payment):
            # Lost an insert race, or the tx hash is already on file.
            stored = await self._store.get_payment_by_external_id(
                event.external_transaction_id
            )
            if stored is None:
                stored = await self._store.get_payment_by_tx_hash(payment.tx_hash)
                log.warning(
                    "Transaction %s shares tx hash %s with an existing payment",
                    event.external_transaction_id, payment.tx_hash,
                )
            return RecordResult("already_recorded", payment=stored, identity=identity)

        log.info(
            "Payment recorded: %s (%s %s on %s to @%s)",
            payment.id, payment.amount, payment.asset, payment.chain, identity.handle,
        )
        await self._store.log_activity(
            "payment_recorded",
            f"{payment.amount} {payment.asset} on {payment.chain} to @{identity.handle}",
            payment_id=payment.id,
        )
        return RecordResult("recorded", payment=payment, identity=identity)
