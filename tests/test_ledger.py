"""Tests 14-20: Payment ledger idempotency and rejection order."""

from __future__ import annotations

import asyncio
import json
from dataclasses import replace

from paytag_settlement.circle.normalizer import normalize, parse_notification
from paytag_settlement.identity import StoreIdentityResolver
from paytag_settlement.ledger.payments import PaymentLedger, parse_amount
from tests.factories import TRANSFER_ID, TX_HASH, make_inbound_payload


def make_event(**kwargs):
    return normalize(parse_notification(make_inbound_payload(**kwargs)))


def make_ledger(store, chains=("BASE-SEPOLIA", "ETH-SEPOLIA")):
    return PaymentLedger(store, StoreIdentityResolver(store), list(chains))


# ── Test 14: First delivery records the payment ────────────────────


async def test_record_payment(store, identity):
    ledger = make_ledger(store)
    result = await ledger.record_payment(make_event())

    assert result.outcome == "recorded"
    assert result.created
    assert result.identity.identity_id == identity.identity_id

    payment = await store.get_payment_by_external_id(TRANSFER_ID)
    assert payment.id == result.payment.id
    assert payment.paytag_id == identity.identity_id
    assert payment.status == "detected"
    assert payment.swap_status == "not_applicable"
    assert payment.tx_hash == TX_HASH
    assert json.loads(payment.raw_event)["notification"]["id"] == TRANSFER_ID

    activity = await store.get_recent_activity(10)
    assert [a.event_type for a in activity] == ["payment_recorded"]


# ── Test 15: Redelivery is a no-op ─────────────────────────────────


async def test_duplicate_is_already_recorded(store, identity):
    ledger = make_ledger(store)
    first = await ledger.record_payment(make_event())
    second = await ledger.record_payment(make_event())

    assert second.outcome == "already_recorded"
    assert second.payment.id == first.payment.id
    assert second.identity.identity_id == identity.identity_id
    assert await store.count_payments() == 1


# ── Test 16: Concurrent deliveries insert exactly one row ──────────


async def test_concurrent_deliveries_record_once(store, identity):
    ledger = make_ledger(store)
    results = await asyncio.gather(*(ledger.record_payment(make_event()) for _ in range(8)))

    outcomes = [r.outcome for r in results]
    assert outcomes.count("recorded") == 1
    assert outcomes.count("already_recorded") == 7
    assert len({r.payment.id for r in results}) == 1
    assert await store.count_payments() == 1


# ── Test 17: Rejections ────────────────────────────────────────────


async def test_unknown_wallet(store, identity):
    ledger = make_ledger(store)
    result = await ledger.record_payment(make_event(destination="0x" + "00" * 20))

    assert result.outcome == "unknown_wallet"
    assert result.payment is None
    assert await store.count_payments() == 0


async def test_unsupported_chain(store, identity):
    ledger = make_ledger(store)
    result = await ledger.record_payment(make_event(blockchain="MATIC-AMOY"))

    assert result.outcome == "unsupported_chain"
    assert await store.count_payments() == 0


async def test_malformed_missing_fields(store, identity):
    ledger = make_ledger(store)

    assert (await ledger.record_payment(make_event(destination=None))).outcome == "malformed"
    assert (await ledger.record_payment(make_event(transfer_id=""))).outcome == "malformed"
    assert await store.count_payments() == 0


async def test_malformed_amount(store, identity):
    ledger = make_ledger(store)
    for amount in ("0", "-1", "abc", "NaN", "Infinity"):
        result = await ledger.record_payment(make_event(amount=amount))
        assert result.outcome == "malformed", amount
    assert await store.count_payments() == 0


# ── Test 18: Check order, malformed before chain ───────────────────


async def test_malformed_checked_before_chain(store, identity):
    ledger = make_ledger(store)
    result = await ledger.record_payment(make_event(amount=None, blockchain="MATIC-AMOY"))
    assert result.outcome == "malformed"


# ── Test 19: Wallet match is case-insensitive ──────────────────────


async def test_checksummed_destination_matches(store, identity):
    ledger = make_ledger(store)
    event = make_event()
    event = replace(event, destination_address=event.destination_address.upper().replace("0X", "0x"))

    result = await ledger.record_payment(event)
    assert result.outcome == "recorded"


# ── Test 20: Second transfer id reusing a tx hash ──────────────────


async def test_shared_tx_hash_not_double_recorded(store, identity):
    ledger = make_ledger(store)
    first = await ledger.record_payment(make_event())
    second = await ledger.record_payment(make_event(transfer_id="another-transfer"))

    assert second.outcome == "already_recorded"
    assert second.payment.id == first.payment.id
    assert await store.count_payments() == 1


def test_parse_amount():
    assert str(parse_amount("0.1")) == "0.1"
    assert parse_amount("") is None
    assert parse_amount(None) is None
    assert parse_amount("0.000") is None
    assert parse_amount("1e400") is not None
