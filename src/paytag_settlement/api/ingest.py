"""Deposit notification ingestion - the synchronous half of the pipeline."""

from __future__ import annotations

import json
import logging

from paytag_settlement.autoswap.scheduler import AutoSwapScheduler
from paytag_settlement.circle.assets import TokenTable
from paytag_settlement.circle.normalizer import normalize, parse_notification
from paytag_settlement.circle.verifier import CircleEventVerifier
from paytag_settlement.errors import AuthenticationFailure, MalformedInput
from paytag_settlement.interfaces.identity import IdentityResolver
from paytag_settlement.ledger.payments import PaymentLedger
from paytag_settlement.ledger.receipts import ReceiptWriter
from paytag_settlement.models.events import VendorNotification
from paytag_settlement.models.records import IngestResult, Identity, Payment

log = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Circle-Signature"
KEY_ID_HEADER = "X-Circle-Key-Id"


class DepositIngestor:
    """Verify -> normalize -> record -> receipt -> enqueue, in one call.

    Only authentication and malformed bodies are rejected. Every other
    outcome (ignored type, unsupported chain, unknown wallet, duplicate) is
    acknowledged so the sender stops redelivering. Receipt and enqueue run
    after the payment commit and never unwind it.
    """

    def __init__(
        self,
        verifier: CircleEventVerifier,
        ledger: PaymentLedger,
        receipts: ReceiptWriter,
        scheduler: AutoSwapScheduler,
        identities: IdentityResolver,
        tokens: TokenTable | None = None,
    ) -> None:
        self._verifier = verifier
        self._ledger = ledger
        self._receipts = receipts
        self._scheduler = scheduler
        self._identities = identities
        self._tokens = tokens or TokenTable()

    async def ingest_from_headers(
        self, raw_body: bytes, headers: dict[str, str]
    ) -> IngestResult:
        """Convenience entry for HTTP layers: pull the signature headers."""
        lowered = {k.lower(): v for k, v in headers.items()}
        return await self.ingest_deposit_notification(
            raw_body,
            lowered.get(SIGNATURE_HEADER.lower()),
            lowered.get(KEY_ID_HEADER.lower()),
        )

    async def ingest_deposit_notification(
        self,
        raw_body: bytes,
        signature_b64: str | None,
        key_id: str | None,
    ) -> IngestResult:
        try:
            notification = await self._authenticate(raw_body, signature_b64, key_id)
        except AuthenticationFailure as exc:
            return IngestResult(False, str(exc), status_code=401)
        except MalformedInput as exc:
            log.warning("Notification rejected: %s", exc)
            return IngestResult(False, str(exc), status_code=400)

        event = normalize(notification, self._tokens)
        if event is None:
            return IngestResult(True, "ignored")

        result = await self._ledger.record_payment(event)
        if result.outcome == "malformed":
            return IngestResult(False, result.detail or "malformed", status_code=400)
        if result.payment is None or result.identity is None:
            # unsupported_chain / unknown_wallet: acknowledged and dropped
            return IngestResult(True, result.outcome)

        receipt_public_id = await self._after_commit(result.payment, result.identity)
        return IngestResult(
            True,
            result.outcome,
            payment_id=result.payment.id,
            receipt_public_id=receipt_public_id,
        )

    async def _authenticate(
        self, raw_body: bytes, signature_b64: str | None, key_id: str | None
    ) -> VendorNotification:
        if not signature_b64 or not key_id:
            raise MalformedInput("missing signature headers")
        if not await self._verifier.verify(raw_body, signature_b64, key_id):
            raise AuthenticationFailure("invalid signature")
        try:
            payload = json.loads(raw_body)
        except ValueError as exc:
            raise MalformedInput(f"malformed notification: {exc}") from exc
        return parse_notification(payload)

    async def _after_commit(self, payment: Payment, identity: Identity) -> str | None:
        """Receipt and swap scheduling; both are idempotent so redeliveries heal gaps."""
        receipt = await self._receipts.issue_receipt(payment, identity)

        try:
            policy = await self._identities.get_autoswap_policy(identity.identity_id)
            enqueue = await self._scheduler.maybe_enqueue(payment, policy)
            log.debug("AutoSwap for payment %s: %s", payment.id, enqueue.reason)
        except Exception as exc:
            log.error("AutoSwap scheduling for %s failed: %s", payment.id, exc, exc_info=True)

        return receipt.receipt_public_id if receipt else None
