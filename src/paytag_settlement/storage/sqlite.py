"""SQLite implementation of the StateStore protocol."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from paytag_settlement.models.records import (
    ActivityRecord,
    AutoswapPolicy,
    Identity,
    JobStatus,
    JobSummary,
    Payment,
    Receipt,
    SwapJob,
    SwapOutcome,
    SwapStatus,
)

SCHEMA = """
-- PayTags: handle -> custodial wallet, with the owner's autoswap policy
CREATE TABLE IF NOT EXISTS paytags (
    id TEXT PRIMARY KEY,
    handle TEXT NOT NULL UNIQUE,
    display_name TEXT,
    wallet_id TEXT NOT NULL,
    wallet_address TEXT NOT NULL,
    autoswap_enabled INTEGER NOT NULL DEFAULT 0,
    autoswap_slippage_bps INTEGER NOT NULL DEFAULT 50,
    autoswap_max_gas_gwei INTEGER,
    autoswap_min_amount_wei TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_paytags_wallet ON paytags(wallet_address);

-- Detected payments (never deleted)
CREATE TABLE IF NOT EXISTS payments (
    id TEXT PRIMARY KEY,
    paytag_id TEXT NOT NULL REFERENCES paytags(id),
    chain TEXT NOT NULL,
    asset TEXT NOT NULL DEFAULT 'UNKNOWN',
    amount TEXT NOT NULL,
    from_address TEXT,
    to_address TEXT NOT NULL,
    tx_hash TEXT NOT NULL UNIQUE,
    external_transaction_id TEXT NOT NULL UNIQUE,
    raw_event TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'detected',
    swap_status TEXT NOT NULL DEFAULT 'not_applicable',
    swap_tx_hash TEXT,
    swap_error TEXT,
    amount_out_target TEXT,
    router_used TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_payments_paytag ON payments(paytag_id, created_at);
CREATE INDEX IF NOT EXISTS idx_payments_swap_status ON payments(swap_status);

-- Public receipts, one per payment
CREATE TABLE IF NOT EXISTS receipts (
    id TEXT PRIMARY KEY,
    payment_id TEXT NOT NULL UNIQUE REFERENCES payments(id),
    receipt_public_id TEXT NOT NULL UNIQUE,
    paytag_handle TEXT NOT NULL,
    paytag_name TEXT NOT NULL,
    receiver_address TEXT NOT NULL,
    chain TEXT NOT NULL,
    asset_in TEXT NOT NULL,
    amount_in TEXT NOT NULL,
    amount_normalized TEXT,
    tx_hash TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'confirmed',
    external_transaction_id TEXT,
    explorer_url TEXT,
    blob_id TEXT,
    receipt_hash TEXT,
    swap_details TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- AutoSwap job queue, one job per payment
CREATE TABLE IF NOT EXISTS swap_jobs (
    id TEXT PRIMARY KEY,
    payment_id TEXT NOT NULL UNIQUE REFERENCES payments(id),
    status TEXT NOT NULL DEFAULT 'queued',
    attempts INTEGER NOT NULL DEFAULT 0,
    max_attempts INTEGER NOT NULL DEFAULT 3,
    next_run_at TEXT NOT NULL,
    locked_at TEXT,
    locked_by TEXT,
    completed_at TEXT,
    error TEXT,
    execution_id TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_swap_jobs_status ON swap_jobs(status);
CREATE INDEX IF NOT EXISTS idx_swap_jobs_next_run ON swap_jobs(next_run_at);

-- Activity log
CREATE TABLE IF NOT EXISTS activity_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_type TEXT NOT NULL,
    payment_id TEXT,
    job_id TEXT,
    message TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_activity_created ON activity_log(created_at);
"""


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _now() -> str:
    return _iso(datetime.now(timezone.utc))


def _new_id() -> str:
    return uuid.uuid4().hex


class SQLiteStateStore:
    """SQLite-backed implementation of the StateStore protocol.

    Every swap-job transition is a single conditional UPDATE whose WHERE
    clause carries the expected status (and lock owner), so concurrent
    workers sharing one database file can never both own a job.
    """

    def __init__(self, db_path: str, busy_timeout: float = 10.0) -> None:
        self._db_path = db_path
        self._busy_timeout = busy_timeout
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path, timeout=self._busy_timeout)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA foreign_keys = ON")
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── PayTags ────────────────────────────────────────────

    async def save_identity(
        self, identity: Identity, policy: AutoswapPolicy | None = None
    ) -> None:
        policy = policy or AutoswapPolicy()
        await self.db.execute(
            "INSERT INTO paytags"
            " (id, handle, display_name, wallet_id, wallet_address,"
            "  autoswap_enabled, autoswap_slippage_bps, autoswap_max_gas_gwei,"
            "  autoswap_min_amount_wei, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
            " ON CONFLICT(id) DO UPDATE SET"
            "  handle=excluded.handle, display_name=excluded.display_name,"
            "  wallet_id=excluded.wallet_id, wallet_address=excluded.wallet_address,"
            "  autoswap_enabled=excluded.autoswap_enabled,"
            "  autoswap_slippage_bps=excluded.autoswap_slippage_bps,"
            "  autoswap_max_gas_gwei=excluded.autoswap_max_gas_gwei,"
            "  autoswap_min_amount_wei=excluded.autoswap_min_amount_wei",
            (
                identity.identity_id, identity.handle.strip().lower(), identity.display_name,
                identity.wallet_id, identity.wallet_address.lower(),
                int(policy.enabled), policy.slippage_bps, policy.max_gas_gwei,
                policy.min_amount_wei, _now(),
            ),
        )
        await self.db.commit()

    async def get_identity(self, identity_id: str) -> Identity | None:
        async with self.db.execute(
            "SELECT * FROM paytags WHERE id=?", (identity_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_identity(row) if row else None

    async def get_identity_by_wallet(self, address: str) -> Identity | None:
        async with self.db.execute(
            "SELECT * FROM paytags WHERE wallet_address=?", (address.lower(),)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_identity(row) if row else None

    async def get_identity_by_handle(self, handle: str) -> Identity | None:
        async with self.db.execute(
            "SELECT * FROM paytags WHERE handle=?", (handle.strip().lstrip("@").lower(),)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_identity(row) if row else None

    async def get_autoswap_policy(self, identity_id: str) -> AutoswapPolicy:
        async with self.db.execute(
            "SELECT autoswap_enabled, autoswap_slippage_bps, autoswap_max_gas_gwei,"
            " autoswap_min_amount_wei FROM paytags WHERE id=?",
            (identity_id,),
        ) as cur:
            row = await cur.fetchone()
            if row:
                return AutoswapPolicy(
                    enabled=bool(row["autoswap_enabled"]),
                    slippage_bps=row["autoswap_slippage_bps"],
                    max_gas_gwei=row["autoswap_max_gas_gwei"],
                    min_amount_wei=row["autoswap_min_amount_wei"],
                )
        return AutoswapPolicy()

    # ── Payments ───────────────────────────────────────────

    async def insert_payment(self, payment: Payment) -> bool:
        """Insert unless the transaction id or tx hash is already known.

        Returns True when a new row was written.
        """
        payment.id = payment.id or _new_id()
        payment.created_at = payment.created_at or _now()
        cur = await self.db.execute(
            "INSERT OR IGNORE INTO payments"
            " (id, paytag_id, chain, asset, amount, from_address, to_address,"
            "  tx_hash, external_transaction_id, raw_event, status, swap_status,"
            "  created_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                payment.id, payment.paytag_id, payment.chain, payment.asset,
                payment.amount, payment.from_address, payment.to_address,
                payment.tx_hash, payment.external_transaction_id,
                payment.raw_event, payment.status, payment.swap_status,
                payment.created_at,
            ),
        )
        await self.db.commit()
        return cur.rowcount == 1

    async def get_payment(self, payment_id: str) -> Payment | None:
        async with self.db.execute(
            "SELECT * FROM payments WHERE id=?", (payment_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_payment(row) if row else None

    async def get_payment_by_external_id(self, external_id: str) -> Payment | None:
        async with self.db.execute(
            "SELECT * FROM payments WHERE external_transaction_id=?", (external_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_payment(row) if row else None

    async def get_payment_by_tx_hash(self, tx_hash: str) -> Payment | None:
        async with self.db.execute(
            "SELECT * FROM payments WHERE tx_hash=?", (tx_hash,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_payment(row) if row else None

    async def get_payments_by_paytag(
        self, paytag_id: str, limit: int = 10
    ) -> list[Payment]:
        async with self.db.execute(
            "SELECT * FROM payments WHERE paytag_id=?"
            " ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (paytag_id, limit),
        ) as cur:
            return [_row_to_payment(row) async for row in cur]

    async def count_payments(self) -> int:
        async with self.db.execute("SELECT COUNT(*) AS c FROM payments") as cur:
            row = await cur.fetchone()
            return row["c"] if row else 0

    # ── Receipts ───────────────────────────────────────────

    async def insert_receipt(self, receipt: Receipt) -> None:
        """Insert a receipt. Raises sqlite3.IntegrityError on a unique clash."""
        receipt.id = receipt.id or _new_id()
        receipt.created_at = receipt.created_at or _now()
        await self.db.execute(
            "INSERT INTO receipts"
            " (id, payment_id, receipt_public_id, paytag_handle, paytag_name,"
            "  receiver_address, chain, asset_in, amount_in, amount_normalized,"
            "  tx_hash, status, external_transaction_id, explorer_url, blob_id,"
            "  receipt_hash, swap_details, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                receipt.id, receipt.payment_id, receipt.receipt_public_id,
                receipt.paytag_handle, receipt.paytag_name,
                receipt.receiver_address, receipt.chain, receipt.asset_in,
                receipt.amount_in, receipt.amount_normalized, receipt.tx_hash,
                receipt.status, receipt.external_transaction_id,
                receipt.explorer_url, receipt.blob_id, receipt.receipt_hash,
                receipt.swap_details, receipt.created_at,
            ),
        )
        await self.db.commit()

    async def get_receipt_by_payment(self, payment_id: str) -> Receipt | None:
        async with self.db.execute(
            "SELECT * FROM receipts WHERE payment_id=?", (payment_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_receipt(row) if row else None

    async def get_receipt_by_public_id(self, public_id: str) -> Receipt | None:
        async with self.db.execute(
            "SELECT * FROM receipts WHERE receipt_public_id=?", (public_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_receipt(row) if row else None

    async def update_receipt_swap_details(
        self,
        payment_id: str,
        swap_details: str,
        amount_normalized: str | None = None,
    ) -> bool:
        if amount_normalized is not None:
            cur = await self.db.execute(
                "UPDATE receipts SET swap_details=?, amount_normalized=? WHERE payment_id=?",
                (swap_details, amount_normalized, payment_id),
            )
        else:
            cur = await self.db.execute(
                "UPDATE receipts SET swap_details=? WHERE payment_id=?",
                (swap_details, payment_id),
            )
        await self.db.commit()
        return cur.rowcount == 1

    # ── Swap jobs ──────────────────────────────────────────

    async def enqueue_swap_job(
        self, payment_id: str, now: datetime, max_attempts: int = 3
    ) -> SwapJob | None:
        """Create the job for a payment and flag the payment as queued.

        Both writes share one transaction. Returns None when a job already
        existed (including losing a concurrent insert race).
        """
        job_id = _new_id()
        ts = _iso(now)
        cur = await self.db.execute(
            "INSERT OR IGNORE INTO swap_jobs"
            " (id, payment_id, status, attempts, max_attempts, next_run_at,"
            "  created_at, updated_at)"
            " VALUES (?, ?, ?, 0, ?, ?, ?, ?)",
            (job_id, payment_id, JobStatus.QUEUED.value, max_attempts, ts, ts, ts),
        )
        if cur.rowcount != 1:
            await self.db.commit()
            return None
        await self.db.execute(
            "UPDATE payments SET swap_status=? WHERE id=?",
            (SwapStatus.QUEUED.value, payment_id),
        )
        await self.db.commit()
        return await self.get_swap_job(job_id)

    async def get_swap_job(self, job_id: str) -> SwapJob | None:
        async with self.db.execute(
            "SELECT * FROM swap_jobs WHERE id=?", (job_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_job(row) if row else None

    async def get_swap_job_by_payment(self, payment_id: str) -> SwapJob | None:
        async with self.db.execute(
            "SELECT * FROM swap_jobs WHERE payment_id=?", (payment_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_job(row) if row else None

    async def count_swap_jobs(self) -> int:
        async with self.db.execute("SELECT COUNT(*) AS c FROM swap_jobs") as cur:
            row = await cur.fetchone()
            return row["c"] if row else 0

    async def claim_swap_jobs(
        self, worker_id: str, now: datetime, batch_size: int = 10
    ) -> list[SwapJob]:
        """Lock up to ``batch_size`` due jobs for ``worker_id``.

        Each candidate is taken with its own conditional UPDATE. Candidates
        lost to another claimer are replaced by re-selecting until the batch
        is full or no untried due job remains.
        """
        ts = _iso(now)
        claimed: list[str] = []
        tried: set[str] = set()
        while len(claimed) < batch_size:
            async with self.db.execute(
                "SELECT id FROM swap_jobs WHERE status=? AND next_run_at<=?"
                " ORDER BY next_run_at LIMIT ?",
                (JobStatus.QUEUED.value, ts, batch_size - len(claimed) + len(tried)),
            ) as cur:
                candidates = [row["id"] async for row in cur if row["id"] not in tried]
            if not candidates:
                break
            for job_id in candidates[: batch_size - len(claimed)]:
                tried.add(job_id)
                cur = await self.db.execute(
                    "UPDATE swap_jobs SET status=?, locked_by=?, locked_at=?, updated_at=?"
                    " WHERE id=? AND status=? AND next_run_at<=?",
                    (
                        JobStatus.LOCKED.value, worker_id, ts, ts,
                        job_id, JobStatus.QUEUED.value, ts,
                    ),
                )
                if cur.rowcount == 1:
                    claimed.append(job_id)
        await self.db.commit()

        jobs = []
        for job_id in claimed:
            job = await self.get_swap_job(job_id)
            if job is not None:
                jobs.append(job)
        return jobs

    async def reclaim_stale_jobs(
        self, now: datetime, stale_before: datetime
    ) -> list[SwapJob]:
        """Return expired leases to the queue, counting each as a failed attempt."""
        ts = _iso(now)
        async with self.db.execute(
            "SELECT * FROM swap_jobs WHERE status=? AND locked_at<?",
            (JobStatus.LOCKED.value, _iso(stale_before)),
        ) as cur:
            stale = [_row_to_job(row) async for row in cur]

        reclaimed: list[SwapJob] = []
        for job in stale:
            cur = await self.db.execute(
                "UPDATE swap_jobs SET status=?, attempts=attempts+1, next_run_at=?,"
                " locked_at=NULL, locked_by=NULL, error=?, updated_at=?"
                " WHERE id=? AND status=? AND locked_by=? AND locked_at=?",
                (
                    JobStatus.QUEUED.value, ts,
                    f"lease expired (held by {job.locked_by})", ts,
                    job.id, JobStatus.LOCKED.value, job.locked_by, job.locked_at,
                ),
            )
            if cur.rowcount == 1:
                await self.db.execute(
                    "UPDATE payments SET swap_status=? WHERE id=?",
                    (SwapStatus.QUEUED.value, job.payment_id),
                )
                reclaimed.append(job)
        await self.db.commit()
        return reclaimed

    async def begin_swap_execution(
        self, job: SwapJob, worker_id: str, now: datetime
    ) -> bool:
        """Confirm the lease is still ours and mark the payment ``swapping``.

        Guarded on ``execution_id`` as well, so a job whose execution was
        recorded by another worker is never submitted twice.
        """
        cur = await self.db.execute(
            "UPDATE swap_jobs SET updated_at=?"
            " WHERE id=? AND status=? AND locked_by=? AND execution_id IS ?",
            (_iso(now), job.id, JobStatus.LOCKED.value, worker_id, job.execution_id),
        )
        if cur.rowcount != 1:
            await self.db.commit()
            return False
        await self.db.execute(
            "UPDATE payments SET swap_status=? WHERE id=?",
            (SwapStatus.SWAPPING.value, job.payment_id),
        )
        await self.db.commit()
        return True

    async def set_job_execution(
        self, job_id: str, worker_id: str, execution_id: str | None
    ) -> bool:
        cur = await self.db.execute(
            "UPDATE swap_jobs SET execution_id=?, updated_at=?"
            " WHERE id=? AND status=? AND locked_by=?",
            (execution_id, _now(), job_id, JobStatus.LOCKED.value, worker_id),
        )
        await self.db.commit()
        return cur.rowcount == 1

    async def complete_swap_job(
        self,
        job: SwapJob,
        worker_id: str,
        now: datetime,
        outcome: SwapOutcome,
    ) -> bool:
        """locked -> completed, and write the settlement onto the payment."""
        ts = _iso(now)
        cur = await self.db.execute(
            "UPDATE swap_jobs SET status=?, completed_at=?, error=NULL,"
            " execution_id=?, updated_at=?"
            " WHERE id=? AND status=? AND locked_by=?",
            (
                JobStatus.COMPLETED.value, ts, outcome.execution_id, ts,
                job.id, JobStatus.LOCKED.value, worker_id,
            ),
        )
        if cur.rowcount != 1:
            await self.db.commit()
            return False
        await self.db.execute(
            "UPDATE payments SET swap_status=?, swap_tx_hash=?, swap_error=NULL,"
            " amount_out_target=?, router_used=? WHERE id=?",
            (
                SwapStatus.SWAPPED.value, outcome.tx_hash, outcome.amount_out,
                outcome.router, job.payment_id,
            ),
        )
        await self.db.commit()
        return True

    async def retry_swap_job(
        self,
        job: SwapJob,
        worker_id: str,
        now: datetime,
        attempts: int,
        next_run_at: datetime,
        error: str,
    ) -> bool:
        """locked -> queued with a later next_run_at."""
        cur = await self.db.execute(
            "UPDATE swap_jobs SET status=?, attempts=?, next_run_at=?, error=?,"
            " locked_at=NULL, locked_by=NULL, execution_id=NULL, updated_at=?"
            " WHERE id=? AND status=? AND locked_by=?",
            (
                JobStatus.QUEUED.value, attempts, _iso(next_run_at), error,
                _iso(now), job.id, JobStatus.LOCKED.value, worker_id,
            ),
        )
        if cur.rowcount != 1:
            await self.db.commit()
            return False
        await self.db.execute(
            "UPDATE payments SET swap_status=?, swap_error=? WHERE id=?",
            (SwapStatus.QUEUED.value, error, job.payment_id),
        )
        await self.db.commit()
        return True

    async def fail_swap_job(
        self,
        job: SwapJob,
        worker_id: str,
        now: datetime,
        attempts: int,
        error: str,
    ) -> bool:
        """locked -> failed (terminal) and mark the payment swap_failed."""
        ts = _iso(now)
        cur = await self.db.execute(
            "UPDATE swap_jobs SET status=?, attempts=?, error=?, completed_at=?,"
            " updated_at=? WHERE id=? AND status=? AND locked_by=?",
            (
                JobStatus.FAILED.value, attempts, error, ts, ts,
                job.id, JobStatus.LOCKED.value, worker_id,
            ),
        )
        if cur.rowcount != 1:
            await self.db.commit()
            return False
        await self.db.execute(
            "UPDATE payments SET swap_status=?, swap_error=? WHERE id=?",
            (SwapStatus.SWAP_FAILED.value, error, job.payment_id),
        )
        await self.db.commit()
        return True

    async def get_job_summary(self, now: datetime) -> JobSummary:
        summary = JobSummary()
        async with self.db.execute(
            "SELECT status, COUNT(*) AS c FROM swap_jobs GROUP BY status"
        ) as cur:
            async for row in cur:
                if hasattr(summary, row["status"]):
                    setattr(summary, row["status"], row["c"])
        async with self.db.execute(
            "SELECT COUNT(*) AS c FROM swap_jobs WHERE status=? AND next_run_at<=?",
            (JobStatus.QUEUED.value, _iso(now)),
        ) as cur:
            row = await cur.fetchone()
            summary.due = row["c"] if row else 0
        return summary

    async def get_jobs_by_status(self, status: str, limit: int = 50) -> list[SwapJob]:
        async with self.db.execute(
            "SELECT * FROM swap_jobs WHERE status=? ORDER BY updated_at DESC LIMIT ?",
            (status, limit),
        ) as cur:
            return [_row_to_job(row) async for row in cur]

    # ── Activity log ───────────────────────────────────────

    async def log_activity(
        self,
        event_type: str,
        message: str,
        payment_id: str | None = None,
        job_id: str | None = None,
    ) -> None:
        await self.db.execute(
            "INSERT INTO activity_log (event_type, payment_id, job_id, message, created_at)"
            " VALUES (?, ?, ?, ?, ?)",
            (event_type, payment_id, job_id, message, _now()),
        )
        await self.db.commit()

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        async with self.db.execute(
            "SELECT * FROM activity_log ORDER BY id DESC LIMIT ?", (limit,)
        ) as cur:
            return [
                ActivityRecord(
                    id=row["id"],
                    event_type=row["event_type"],
                    payment_id=row["payment_id"],
                    job_id=row["job_id"],
                    message=row["message"],
                    created_at=row["created_at"],
                )
                async for row in cur
            ]


# ── Row converters ─────────────────────────────────────────


def _row_to_identity(row: aiosqlite.Row) -> Identity:
    return Identity(
        identity_id=row["id"],
        handle=row["handle"],
        display_name=row["display_name"],
        wallet_id=row["wallet_id"],
        wallet_address=row["wallet_address"],
    )


def _row_to_payment(row: aiosqlite.Row) -> Payment:
    return Payment(
        id=row["id"],
        paytag_id=row["paytag_id"],
        chain=row["chain"],
        asset=row["asset"],
        amount=row["amount"],
        from_address=row["from_address"],
        to_address=row["to_address"],
        tx_hash=row["tx_hash"],
        external_transaction_id=row["external_transaction_id"],
        raw_event=row["raw_event"],
        status=row["status"],
        swap_status=row["swap_status"],
        swap_tx_hash=row["swap_tx_hash"],
        swap_error=row["swap_error"],
        amount_out_target=row["amount_out_target"],
        router_used=row["router_used"],
        created_at=row["created_at"],
    )


def _row_to_receipt(row: aiosqlite.Row) -> Receipt:
    return Receipt(
        id=row["id"],
        payment_id=row["payment_id"],
        receipt_public_id=row["receipt_public_id"],
        paytag_handle=row["paytag_handle"],
        paytag_name=row["paytag_name"],
        receiver_address=row["receiver_address"],
        chain=row["chain"],
        asset_in=row["asset_in"],
        amount_in=row["amount_in"],
        amount_normalized=row["amount_normalized"],
        tx_hash=row["tx_hash"],
        status=row["status"],
        external_transaction_id=row["external_transaction_id"],
        explorer_url=row["explorer_url"],
        blob_id=row["blob_id"],
        receipt_hash=row["receipt_hash"],
        swap_details=row["swap_details"],
        created_at=row["created_at"],
    )


def _row_to_job(row: aiosqlite.Row) -> SwapJob:
    return SwapJob(
        id=row["id"],
        payment_id=row["payment_id"],
        status=row["status"],
        attempts=row["attempts"],
        max_attempts=row["max_attempts"],
        next_run_at=row["next_run_at"],
        locked_at=row["locked_at"],
        locked_by=row["locked_by"],
        completed_at=row["completed_at"],
        error=row["error"],
        execution_id=row["execution_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
