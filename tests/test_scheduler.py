"""Tests 28-32: AutoSwap eligibility and enqueueing."""

from __future__ import annotations

import asyncio

from paytag_settlement.autoswap.scheduler import AutoSwapScheduler
from paytag_settlement.models.records import AutoswapPolicy
from tests.factories import make_payment

ELIGIBLE = [("ETH", "BASE-SEPOLIA")]


async def recorded_payment(store, **kwargs):
    payment = make_payment(**kwargs)
    assert await store.insert_payment(payment)
    return payment


# ── Test 28: Eligible payment is queued ────────────────────────────


async def test_enqueue_eligible_payment(store, identity, clock):
    payment = await recorded_payment(store)
    scheduler = AutoSwapScheduler(store, ELIGIBLE, max_attempts=4, clock=clock)

    result = await scheduler.maybe_enqueue(payment, AutoswapPolicy(enabled=True))

    assert result.enqueued
    assert result.reason == "enqueued"
    assert result.job.status == "queued"
    assert result.job.attempts == 0
    assert result.job.max_attempts == 4
    assert result.job.next_run_at == clock().isoformat(timespec="microseconds")
    assert payment.swap_status == "queued"

    stored = await store.get_payment(payment.id)
    assert stored.swap_status == "queued"
    activity = await store.get_recent_activity(5)
    assert activity[0].event_type == "swap_enqueued"
    assert activity[0].job_id == result.job.id


# ── Test 29: Skip reasons, in check order ──────────────────────────


async def test_unsupported_asset_or_chain(store, identity, clock):
    scheduler = AutoSwapScheduler(store, ELIGIBLE, clock=clock)
    usdc = await recorded_payment(store, asset="USDC")
    on_eth = await recorded_payment(
        store, chain="ETH-SEPOLIA", tx_hash="0x" + "56" * 32, external_id="t-eth",
    )

    for payment in (usdc, on_eth):
        # Disabled policy too: unsupported is checked first
        result = await scheduler.maybe_enqueue(payment, AutoswapPolicy(enabled=False))
        assert not result.enqueued
        assert result.reason == "unsupported"
    assert await store.count_swap_jobs() == 0


async def test_disabled_policy(store, identity, clock):
    payment = await recorded_payment(store)
    scheduler = AutoSwapScheduler(store, ELIGIBLE, clock=clock)

    result = await scheduler.maybe_enqueue(payment, AutoswapPolicy(enabled=False))

    assert result.reason == "disabled"
    assert (await store.get_payment(payment.id)).swap_status == "not_applicable"


async def test_below_minimum(store, identity, clock):
    payment = await recorded_payment(store, amount="0.1")
    scheduler = AutoSwapScheduler(store, ELIGIBLE, clock=clock)

    policy = AutoswapPolicy(enabled=True, min_amount_wei=str(2 * 10**17))
    assert (await scheduler.maybe_enqueue(payment, policy)).reason == "below-minimum"

    policy = AutoswapPolicy(enabled=True, min_amount_wei="not-a-number")
    assert (await scheduler.maybe_enqueue(payment, policy)).reason == "below-minimum"

    policy = AutoswapPolicy(enabled=True, min_amount_wei=str(10**17))
    assert (await scheduler.maybe_enqueue(payment, policy)).reason == "enqueued"


# ── Test 30: Second enqueue is a no-op ─────────────────────────────


async def test_already_queued(store, identity, clock):
    payment = await recorded_payment(store)
    scheduler = AutoSwapScheduler(store, ELIGIBLE, clock=clock)
    policy = AutoswapPolicy(enabled=True)

    first = await scheduler.maybe_enqueue(payment, policy)
    second = await scheduler.maybe_enqueue(payment, policy)

    assert second.reason == "already-queued"
    assert second.job.id == first.job.id
    assert await store.count_swap_jobs() == 1


# ── Test 31: Concurrent enqueues create one job ────────────────────


async def test_concurrent_enqueue_single_job(store, identity, clock):
    payment = await recorded_payment(store)
    scheduler = AutoSwapScheduler(store, ELIGIBLE, clock=clock)
    policy = AutoswapPolicy(enabled=True)

    results = await asyncio.gather(
        *(scheduler.maybe_enqueue(payment, policy) for _ in range(6))
    )

    assert sum(r.enqueued for r in results) == 1
    assert {r.reason for r in results} == {"enqueued", "already-queued"}
    assert await store.count_swap_jobs() == 1


# ── Test 32: Eligibility matching ignores case ─────────────────────


def test_is_eligible_case_insensitive():
    scheduler = AutoSwapScheduler(None, [("eth", "base-sepolia")])
    assert scheduler.is_eligible(make_payment(asset="ETH", chain="BASE-SEPOLIA"))
    assert not scheduler.is_eligible(make_payment(asset="ETH", chain="BASE"))
