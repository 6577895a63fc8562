"""Tests 53-55: Exclusive job claims across concurrent workers."""

from __future__ import annotations

import asyncio

from paytag_settlement.autoswap.worker import SwapWorker
from paytag_settlement.identity import StoreIdentityResolver
from paytag_settlement.ledger.receipts import ReceiptWriter
from paytag_settlement.models.config import SwapConfig
from paytag_settlement.models.records import AutoswapPolicy
from paytag_settlement.storage.sqlite import SQLiteStateStore
from tests.conftest import make_test_config
from tests.factories import make_identity, make_payment
from tests.mocks import MockExecutor


async def seed_jobs(store, clock, count):
    job_ids = []
    for n in range(count):
        payment = make_payment(
            tx_hash="0x" + f"{n:064x}", external_id=f"transfer-{n}", amount="0.01",
        )
        assert await store.insert_payment(payment)
        job = await store.enqueue_swap_job(payment.id, clock())
        job_ids.append(job.id)
    return job_ids


def make_worker(store, executor, clock, worker_id):
    cfg = make_test_config().worker
    cfg.batch_size = 3
    return SwapWorker(
        store,
        StoreIdentityResolver(store),
        executor,
        ReceiptWriter(store),
        swap=SwapConfig(quote_price="2500"),
        worker=cfg,
        worker_id=worker_id,
        clock=clock,
    )


# ── Test 53: Direct claims never overlap ───────────────────────────


async def test_concurrent_claims_disjoint(store, identity, clock):
    job_ids = await seed_jobs(store, clock, 20)

    batches = await asyncio.gather(
        *(store.claim_swap_jobs(f"w-{n}", clock(), batch_size=5) for n in range(6))
    )

    claimed = [job.id for batch in batches for job in batch]
    assert len(claimed) == len(set(claimed)) == 20
    assert set(claimed) == set(job_ids)
    for n, batch in enumerate(batches):
        assert all(job.locked_by == f"w-{n}" for job in batch)


async def test_losing_claimer_refills_batch(store, identity, clock):
    await seed_jobs(store, clock, 12)

    batches = await asyncio.gather(
        *(store.claim_swap_jobs(f"w-{n}", clock(), batch_size=10) for n in range(3))
    )

    assert sum(len(batch) for batch in batches) == 12
    assert len({job.id for batch in batches for job in batch}) == 12
    assert (await store.get_job_summary(clock())).queued == 0


# ── Test 54: N workers x M jobs on one store ───────────────────────


async def test_workers_share_one_store(store, identity, clock):
    job_ids = await seed_jobs(store, clock, 12)
    executor = MockExecutor()
    workers = [make_worker(store, executor, clock, f"worker-{n}") for n in range(4)]

    claimed = 0
    for _ in range(6):
        claimed += sum(await asyncio.gather(*(w.run_once() for w in workers)))

    assert claimed == 12
    assert len(executor.submit_calls) == 12
    assert len({c["idempotency_key"] for c in executor.submit_calls}) == 12
    for job_id in job_ids:
        assert (await store.get_swap_job(job_id)).status == "completed"
    summary = await store.get_job_summary(clock())
    assert summary.completed == 12
    assert summary.queued == summary.locked == summary.failed == 0


# ── Test 55: Two processes sharing a database file ─────────────────


async def test_two_stores_one_file(tmp_path, clock):
    db_path = str(tmp_path / "shared.db")
    store_a = SQLiteStateStore(db_path)
    store_b = SQLiteStateStore(db_path)
    await store_a.initialize()
    await store_b.initialize()
    try:
        await store_a.save_identity(make_identity(), AutoswapPolicy(enabled=True))
        job_ids = await seed_jobs(store_a, clock, 8)
        executor = MockExecutor()
        worker_a = make_worker(store_a, executor, clock, "proc-a")
        worker_b = make_worker(store_b, executor, clock, "proc-b")

        for _ in range(6):
            await asyncio.gather(worker_a.run_once(), worker_b.run_once())

        assert len(executor.submit_calls) == 8
        owners = set()
        for job_id in job_ids:
            job = await store_b.get_swap_job(job_id)
            assert job.status == "completed"
            owners.add(job.locked_by)
        assert owners <= {"proc-a", "proc-b"}
    finally:
        await store_a.close()
        await store_b.close()
