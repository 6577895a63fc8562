"""StateStore protocol - persists payments, receipts and the swap job queue."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from paytag_settlement.models.records import (
    ActivityRecord,
    AutoswapPolicy,
    Identity,
    JobSummary,
    Payment,
    Receipt,
    SwapJob,
    SwapOutcome,
)


class StateStore(Protocol):
    """Durable state shared by ingestion, the workers and the read API."""

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        """Close the database connection."""
        ...

    # ── PayTags ────────────────────────────────────────────

    async def save_identity(
        self, identity: Identity, policy: AutoswapPolicy | None = None
    ) -> None:
        ...

    async def get_identity(self, identity_id: str) -> Identity | None:
        ...

    async def get_identity_by_wallet(self, address: str) -> Identity | None:
        ...

    async def get_identity_by_handle(self, handle: str) -> Identity | None:
        ...

    async def get_autoswap_policy(self, identity_id: str) -> AutoswapPolicy:
        ...

    # ── Payments ───────────────────────────────────────────

    async def insert_payment(self, payment: Payment) -> bool:
        """Insert-if-absent. Returns True when a row was created."""
        ...

    async def get_payment(self, payment_id: str) -> Payment | None:
        ...

    async def get_payment_by_external_id(self, external_id: str) -> Payment | None:
        ...

    async def get_payment_by_tx_hash(self, tx_hash: str) -> Payment | None:
        ...

    async def get_payments_by_paytag(
        self, paytag_id: str, limit: int = 10
    ) -> list[Payment]:
        """Newest first."""
        ...

    async def count_payments(self) -> int:
        ...

    # ── Receipts ───────────────────────────────────────────

    async def insert_receipt(self, receipt: Receipt) -> None:
        """Raises sqlite3.IntegrityError when a unique column clashes."""
        ...

    async def get_receipt_by_payment(self, payment_id: str) -> Receipt | None:
        ...

    async def get_receipt_by_public_id(self, public_id: str) -> Receipt | None:
        ...

    async def update_receipt_swap_details(
        self,
        payment_id: str,
        swap_details: str,
        amount_normalized: str | None = None,
    ) -> bool:
        ...

    # ── Swap jobs ──────────────────────────────────────────

    async def enqueue_swap_job(
        self, payment_id: str, now: datetime, max_attempts: int = 3
    ) -> SwapJob | None:
        """Create the job and mark the payment queued atomically.

        Returns None when the payment already has a job.
        """
        ...

    async def get_swap_job(self, job_id: str) -> SwapJob | None:
        ...

    async def get_swap_job_by_payment(self, payment_id: str) -> SwapJob | None:
        ...

    async def count_swap_jobs(self) -> int:
        ...

    async def claim_swap_jobs(
        self, worker_id: str, now: datetime, batch_size: int = 10
    ) -> list[SwapJob]:
        """Atomically move due jobs from queued to locked for one worker."""
        ...

    async def reclaim_stale_jobs(
        self, now: datetime, stale_before: datetime
    ) -> list[SwapJob]:
        """Return jobs locked before ``stale_before`` to the queue."""
        ...

    async def begin_swap_execution(
        self, job: SwapJob, worker_id: str, now: datetime
    ) -> bool:
        """Guarded on lock owner and ``execution_id``; marks the payment swapping."""
        ...

    async def set_job_execution(
        self, job_id: str, worker_id: str, execution_id: str | None
    ) -> bool:
        ...

    async def complete_swap_job(
        self, job: SwapJob, worker_id: str, now: datetime, outcome: SwapOutcome
    ) -> bool:
        """Only succeeds while ``worker_id`` still holds the lock."""
        ...

    async def retry_swap_job(
        self,
        job: SwapJob,
        worker_id: str,
        now: datetime,
        attempts: int,
        next_run_at: datetime,
        error: str,
    ) -> bool:
        ...

    async def fail_swap_job(
        self,
        job: SwapJob,
        worker_id: str,
        now: datetime,
        attempts: int,
        error: str,
    ) -> bool:
        ...

    async def get_job_summary(self, now: datetime) -> JobSummary:
        ...

    async def get_jobs_by_status(self, status: str, limit: int = 50) -> list[SwapJob]:
        ...

    # ── Activity log ───────────────────────────────────────

    async def log_activity(
        self,
        event_type: str,
        message: str,
        payment_id: str | None = None,
        job_id: str | None = None,
    ) -> None:
        ...

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        ...
