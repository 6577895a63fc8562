"""AutoSwap scheduler - decides whether a payment gets a swap job."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import InvalidOperation
from typing import Callable

from paytag_settlement.autoswap.bounds import to_base_units
from paytag_settlement.interfaces.store import StateStore
from paytag_settlement.models.records import (
    ASSET_DECIMALS,
    Asset,
    AutoswapPolicy,
    EnqueueResult,
    Payment,
    SwapStatus,
)

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AutoSwapScheduler:
    """Enqueues swap jobs for eligible payments.

    Checks run in a fixed order and the first failing check names the skip
    reason: unsupported, disabled, below-minimum, already-queued.
    """

    def __init__(
        self,
        store: StateStore,
        eligible: list[tuple[str, str]],
        max_attempts: int = 3,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._eligible = {(a.upper(), c.upper()) for a, c in eligible}
        self._max_attempts = max_attempts
        self._clock = clock

    def is_eligible(self, payment: Payment) -> bool:
        return (payment.asset.upper(), payment.chain.upper()) in self._eligible

    async def maybe_enqueue(self, payment: Payment, policy: AutoswapPolicy) -> EnqueueResult:
        if not self.is_eligible(payment):
            return EnqueueResult(False, "unsupported")

        if not policy.enabled:
            return EnqueueResult(False, "disabled")

        if policy.min_amount_wei:
            try:
                minimum = int(policy.min_amount_wei)
                amount = to_base_units(payment.amount, ASSET_DECIMALS[Asset(payment.asset)])
            except (ValueError, InvalidOperation, KeyError):
                log.warning(
                    "Cannot compare payment %s amount %r with minimum %r",
                    payment.id, payment.amount, policy.min_amount_wei,
                )
                return EnqueueResult(False, "below-minimum")
            if amount < minimum:
                log.info(
                    "Payment %s below autoswap minimum (%d < %d wei)",
                    payment.id, amount, minimum,
                )
                return EnqueueResult(False, "below-minimum")

        existing = await self._store.get_swap_job_by_payment(payment.id)
        if existing is not None:
            return EnqueueResult(False, "already-queued", job=existing)

        job = await self._store.enqueue_swap_job(
            payment.id, self._clock(), max_attempts=self._max_attempts,
        )
        if job is None:
            # Another ingester inserted first.
            existing = await self._store.get_swap_job_by_payment(payment.id)
            return EnqueueResult(False, "already-queued", job=existing)

        payment.swap_status = SwapStatus.QUEUED.value
        log.info("Swap job %s queued for payment %s", job.id, payment.id)
        await self._store.log_activity(
            "swap_enqueued",
            f"AutoSwap queued: {payment.amount} {payment.asset} on {payment.chain}",
            payment_id=payment.id,
            job_id=job.id,
        )
        return EnqueueResult(True, "enqueued", job=job)
