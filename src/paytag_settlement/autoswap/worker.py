"""AutoSwap worker - claims due swap jobs, executes them and settles the result."""

from __future__ import annotations

import asyncio
import logging
import os
import socket
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable

from paytag_settlement.autoswap.bounds import (
    backoff_delay,
    clamp_slippage,
    enforce_notional_cap,
    swap_deadline,
    to_base_units,
)
from paytag_settlement.autoswap.router import build_swap_call
from paytag_settlement.circle.executor import FAILURE_STATES, SUCCESS_STATE
from paytag_settlement.errors import (
    CircleAPIError,
    LeaseLost,
    PolicyViolation,
    TransientExecutionFailure,
    UnsupportedDomain,
)
from paytag_settlement.interfaces.executor import ExecutionService
from paytag_settlement.interfaces.identity import IdentityResolver
from paytag_settlement.interfaces.store import StateStore
from paytag_settlement.ledger.receipts import ReceiptWriter
from paytag_settlement.models.config import SwapConfig, WorkerConfig
from paytag_settlement.models.records import (
    ExecutionStatus,
    SwapJob,
    SwapOutcome,
)

log = logging.getLogger(__name__)

_IDEMPOTENCY_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "paytag-settlement/swap")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_worker_id() -> str:
    return f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"


def idempotency_key(job_id: str, attempt: int) -> str:
    """Stable per (job, attempt): a resubmitted request is deduplicated upstream."""
    return str(uuid.uuid5(_IDEMPOTENCY_NAMESPACE, f"{job_id}:{attempt}"))


class SwapWorker:
    """One polling worker. Several may share a process or a database file.

    Ownership of a job is decided entirely by the conditional updates in the
    state store; every write after the claim is guarded by this worker's id,
    so a worker whose lease was reclaimed cannot settle the job.
    """

    def __init__(
        self,
        store: StateStore,
        identities: IdentityResolver,
        executor: ExecutionService,
        receipts: ReceiptWriter,
        swap: SwapConfig | None = None,
        worker: WorkerConfig | None = None,
        fee_level: str = "MEDIUM",
        worker_id: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._identities = identities
        self._executor = executor
        self._receipts = receipts
        self._swap = swap or SwapConfig()
        self._cfg = worker or WorkerConfig()
        self._fee_level = fee_level
        self._clock = clock
        self.worker_id = worker_id or default_worker_id()
        self._running = False

    # ── Loop ───────────────────────────────────────────────

    async def run(self) -> None:
        """Poll until stopped or cancelled."""
        self._running = True
        log.info("Swap worker %s started", self.worker_id)
        while self._running:
            try:
                await self.run_once()
                await asyncio.sleep(self._cfg.poll_interval)
            except asyncio.CancelledError:
                log.info("Swap worker %s cancelled", self.worker_id)
                break
            except Exception as exc:
                log.error("Swap worker %s error: %s", self.worker_id, exc, exc_info=True)
                await self._store.log_activity("error", f"Worker {self.worker_id}: {exc}")
                await asyncio.sleep(self._cfg.error_backoff)
        log.info("Swap worker %s stopped", self.worker_id)

    def stop(self) -> None:
        self._running = False

    async def run_once(self) -> int:
        """Reclaim stale leases, claim a batch and process it.

        Returns the number of jobs this worker claimed.
        """
        now = self._clock()
        stale_before = now - timedelta(seconds=self._cfg.lease_seconds)
        for job in await self._store.reclaim_stale_jobs(now, stale_before):
            log.warning(
                "Reclaimed stale swap job %s (held by %s since %s)",
                job.id, job.locked_by, job.locked_at,
            )
            await self._store.log_activity(
                "swap_retry",
                f"Lease expired for {job.locked_by}; job requeued",
                payment_id=job.payment_id,
                job_id=job.id,
            )

        jobs = await self._store.claim_swap_jobs(self.worker_id, now, self._cfg.batch_size)
        for job in jobs:
            await self.process(job)
        return len(jobs)

    # ── Job processing ─────────────────────────────────────

    async def process(self, job: SwapJob) -> None:
        log.info(
            "Worker %s claimed swap job %s (attempt %d/%d)",
            self.worker_id, job.id, job.attempts + 1, job.max_attempts,
        )
        await self._store.log_activity(
            "swap_claimed",
            f"Claimed by {self.worker_id}",
            payment_id=job.payment_id,
            job_id=job.id,
        )

        if job.execution_id is None and job.attempts >= job.max_attempts:
            await self._fail(job, job.error or "attempts exhausted", job.attempts)
            return

        try:
            outcome = await self._execute(job)
        except LeaseLost as exc:
            log.warning("Worker %s abandoning swap job %s: %s", self.worker_id, job.id, exc)
        except (PolicyViolation, UnsupportedDomain) as exc:
            await self._fail(job, str(exc), job.attempts + 1)
        except Exception as exc:
            log.warning("Swap job %s attempt failed: %s", job.id, exc)
            await self._retry_or_fail(job, str(exc))
        else:
            await self._settle(job, outcome)

    async def _execute(self, job: SwapJob) -> SwapOutcome:
        payment = await self._store.get_payment(job.payment_id)
        if payment is None:
            raise PolicyViolation(f"payment {job.payment_id} not found")
        identity = await self._identities.get_identity(payment.paytag_id)
        if identity is None:
            raise PolicyViolation(f"PayTag {payment.paytag_id} not found")
        chain = self._swap.routers.get(payment.chain.upper())
        if chain is None:
            raise UnsupportedDomain(f"no router configured for {payment.chain}")
        policy = await self._identities.get_autoswap_policy(identity.identity_id)

        amount_wei = to_base_units(payment.amount, 18)
        enforce_notional_cap(amount_wei, self._swap.max_notional)
        slippage = clamp_slippage(
            policy.slippage_bps, self._swap.min_slippage_bps, self._swap.max_slippage_bps,
        )
        deadline = swap_deadline(self._clock(), self._swap.deadline_seconds)
        call = build_swap_call(
            chain, identity.wallet_address, amount_wei, slippage, deadline,
            self._swap.quote_price,
        )

        if not await self._store.begin_swap_execution(job, self.worker_id, self._clock()):
            raise LeaseLost(f"lease on {job.id} lost before submission")

        execution_id = job.execution_id
        if execution_id:
            log.info("Swap job %s resuming execution %s", job.id, execution_id)
        else:
            handle = await self._executor.submit_contract_call(
                wallet_id=identity.wallet_id,
                contract_address=call.router,
                call_data=call.call_data,
                value_wei=call.value_wei,
                fee_level=self._fee_level,
                idempotency_key=idempotency_key(job.id, job.attempts),
                max_fee_gwei=policy.max_gas_gwei,
            )
            execution_id = handle.execution_id
            if not await self._store.set_job_execution(job.id, self.worker_id, execution_id):
                log.error(
                    "Swap job %s lease lost while submitting; execution %s is untracked",
                    job.id, execution_id,
                )
                await self._store.log_activity(
                    "error",
                    f"Execution {execution_id} submitted after lease was lost",
                    payment_id=job.payment_id,
                    job_id=job.id,
                )
                raise LeaseLost(f"lease on {job.id} lost after submitting {execution_id}")
            log.info(
                "Swap job %s submitted: execution=%s amountIn=%d minOut=%d slippage=%dbps",
                job.id, execution_id, amount_wei, call.amount_out_minimum, slippage,
            )

        status = await self._confirm(execution_id)
        return SwapOutcome(
            tx_hash=status.tx_hash or "",
            amount_out=status.amount_out or call.expected_out,
            router=call.router,
            execution_id=execution_id,
            amount_in=payment.amount,
            slippage_bps=slippage,
            deadline=deadline,
        )

    async def _confirm(self, execution_id: str) -> ExecutionStatus:
        """Poll the executor until the execution is terminal or the budget runs out."""
        attempts = self._cfg.confirm_attempts
        for poll in range(1, attempts + 1):
            try:
                status = await self._executor.get_execution_status(execution_id)
            except CircleAPIError as exc:
                log.warning("Status poll %d for %s failed: %s", poll, execution_id, exc)
            else:
                if status.state == SUCCESS_STATE:
                    if not status.tx_hash:
                        raise TransientExecutionFailure(
                            f"execution {execution_id} complete without a tx hash"
                        )
                    return status
                if status.state in FAILURE_STATES:
                    raise TransientExecutionFailure(
                        f"execution {execution_id} {status.state}: {status.error or 'no reason'}"
                    )
                log.debug("Execution %s is %s (poll %d)", execution_id, status.state, poll)
            if poll < attempts:
                await asyncio.sleep(self._cfg.confirm_interval)
        raise TransientExecutionFailure(
            f"execution {execution_id} not confirmed after {attempts} polls"
        )

    # ── Transitions ────────────────────────────────────────

    async def _settle(self, job: SwapJob, outcome: SwapOutcome) -> None:
        settled = await self._store.complete_swap_job(
            job, self.worker_id, self._clock(), outcome,
        )
        if not settled:
            log.warning("Swap job %s completed but lock was lost; not settling", job.id)
            return
        await self._receipts.apply_swap_details(
            job.payment_id, outcome, self._swap.target_asset,
        )
        log.info(
            "Swap job %s completed: tx=%s out=%s %s",
            job.id, outcome.tx_hash, outcome.amount_out, self._swap.target_asset,
        )
        await self._store.log_activity(
            "swap_completed",
            f"Swapped {outcome.amount_in} -> {outcome.amount_out} {self._swap.target_asset}",
            payment_id=job.payment_id,
            job_id=job.id,
        )

    async def _retry_or_fail(self, job: SwapJob, error: str) -> None:
        attempts = job.attempts + 1
        if attempts >= job.max_attempts:
            await self._fail(job, error, attempts)
            return

        delay = backoff_delay(job.attempts, self._cfg.backoff_base, self._cfg.backoff_cap)
        now = self._clock()
        requeued = await self._store.retry_swap_job(
            job, self.worker_id, now, attempts, now + timedelta(seconds=delay), error,
        )
        if not requeued:
            log.warning("Swap job %s lock lost before retry could be recorded", job.id)
            return
        log.info("Swap job %s retry %d in %ds: %s", job.id, attempts, delay, error)
        await self._store.log_activity(
            "swap_retry",
            f"Attempt {attempts} failed, retry in {delay}s: {error}",
            payment_id=job.payment_id,
            job_id=job.id,
        )

    async def _fail(self, job: SwapJob, error: str, attempts: int) -> None:
        failed = await self._store.fail_swap_job(
            job, self.worker_id, self._clock(), attempts, error,
        )
        if not failed:
            log.warning("Swap job %s lock lost before failure could be recorded", job.id)
            return
        log.error("Swap job %s failed permanently: %s", job.id, error)
        await self._store.log_activity(
            "swap_failed",
            f"AutoSwap failed: {error}",
            payment_id=job.payment_id,
            job_id=job.id,
        )
