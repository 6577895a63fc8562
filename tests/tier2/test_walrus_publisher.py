"""Tier 2: receipt mirroring through a local Walrus publisher."""

from __future__ import annotations

import json

import pytest

from paytag_settlement.errors import BlobStoreError
from paytag_settlement.ledger.receipts import ReceiptWriter
from paytag_settlement.walrus.blobs import content_hash, serialize_document
from tests.factories import make_payment


async def test_put_then_read_back(real_blobs, walrus_server):
    _, blobs, _ = walrus_server
    document = {"type": "paytag.receipt", "payment": {"amount": "0.1", "asset": "ETH"}}

    ref = await real_blobs.put(document)

    assert ref.blob_id in blobs
    assert ref.object_id.startswith("0x")
    assert ref.content_hash == content_hash(serialize_document(document))
    assert await real_blobs.get(ref.blob_id) == document


async def test_repeat_put_already_certified(real_blobs):
    document = {"type": "paytag.receipt", "payment": {"amount": "0.2"}}

    first = await real_blobs.put(document)
    second = await real_blobs.put(document)

    assert second.blob_id == first.blob_id
    assert second.content_hash == first.content_hash


async def test_publisher_outage(real_blobs, walrus_server):
    _, _, state = walrus_server
    state["fail"] = True

    with pytest.raises(BlobStoreError):
        await real_blobs.put({"a": 1})


async def test_missing_blob_read(real_blobs):
    with pytest.raises(BlobStoreError):
        await real_blobs.get("does-not-exist")


async def test_receipt_mirrored_over_http(store, identity, real_blobs, walrus_server):
    _, blobs, _ = walrus_server
    payment = make_payment()
    assert await store.insert_payment(payment)

    receipt = await ReceiptWriter(store, real_blobs, epochs=3).issue_receipt(payment, identity)

    assert receipt.blob_id in blobs
    mirrored = json.loads(blobs[receipt.blob_id])
    assert mirrored["payment"]["id"] == payment.id
    assert mirrored["paytag"]["handle"] == "alice"
    assert receipt.receipt_hash == content_hash(blobs[receipt.blob_id].decode())


async def test_receipt_survives_outage(store, identity, real_blobs, walrus_server):
    _, _, state = walrus_server
    state["fail"] = True
    payment = make_payment()
    assert await store.insert_payment(payment)

    receipt = await ReceiptWriter(store, real_blobs).issue_receipt(payment, identity)

    assert receipt is not None
    assert receipt.blob_id is None
