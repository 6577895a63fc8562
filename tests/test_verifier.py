"""Tests 1-7: Notification signature verification."""

from __future__ import annotations

import base64
import json

from paytag_settlement.circle.verifier import CircleEventVerifier, PublicKeyCache
from tests.factories import KEY_ID, encode_payload, make_inbound_payload, sign
from tests.mocks import MockKeyProvider


# ── Test 1: Valid signature over the raw bytes ─────────────────────


async def test_valid_signature_accepted(mock_keys, signing_key):
    raw = encode_payload(make_inbound_payload())
    verifier = CircleEventVerifier(mock_keys)

    assert await verifier.verify(raw, sign(signing_key, raw), KEY_ID)
    assert mock_keys.calls == [KEY_ID]


# ── Test 2: Any single-byte change invalidates ─────────────────────


async def test_single_byte_mutation_rejected(mock_keys, signing_key):
    raw = encode_payload(make_inbound_payload())
    signature = sign(signing_key, raw)
    verifier = CircleEventVerifier(mock_keys)

    for index in (0, len(raw) // 2, len(raw) - 1):
        mutated = bytearray(raw)
        mutated[index] ^= 0x01
        assert not await verifier.verify(bytes(mutated), signature, KEY_ID)


# ── Test 3: Re-serialized body does not verify ─────────────────────


async def test_reserialized_body_rejected(mock_keys, signing_key):
    """Parsing and dumping again changes whitespace, so the signature no longer matches."""
    raw = encode_payload(make_inbound_payload())
    signature = sign(signing_key, raw)
    reserialized = json.dumps(json.loads(raw)).encode()
    assert reserialized != raw

    verifier = CircleEventVerifier(mock_keys)
    assert not await verifier.verify(reserialized, signature, KEY_ID)


# ── Test 4: Malformed signature encodings ──────────────────────────


async def test_bad_signature_encoding_rejected(mock_keys):
    raw = encode_payload(make_inbound_payload())
    verifier = CircleEventVerifier(mock_keys)

    assert not await verifier.verify(raw, "not base64 !!", KEY_ID)
    assert not await verifier.verify(raw, base64.b64encode(b"short").decode(), KEY_ID)
    assert not await verifier.verify(raw, "", KEY_ID)
    assert not await verifier.verify(raw, "c2ln", "")


# ── Test 5: Key fetch failure is a rejection, not an exception ─────


async def test_key_fetch_failure_rejected(signing_key):
    raw = encode_payload(make_inbound_payload())
    keys = MockKeyProvider(fail=True)
    verifier = CircleEventVerifier(keys)

    assert not await verifier.verify(raw, sign(signing_key, raw), KEY_ID)


async def test_unknown_key_id_rejected(mock_keys, signing_key):
    raw = encode_payload(make_inbound_payload())
    verifier = CircleEventVerifier(mock_keys)

    assert not await verifier.verify(raw, sign(signing_key, raw), "other-key")


# ── Test 6: Malformed public key ───────────────────────────────────


async def test_malformed_public_key_rejected(signing_key):
    raw = encode_payload(make_inbound_payload())
    keys = MockKeyProvider({KEY_ID: b"\x30\x03garbage"})
    cache = PublicKeyCache()
    verifier = CircleEventVerifier(keys, cache)

    assert not await verifier.verify(raw, sign(signing_key, raw), KEY_ID)
    assert KEY_ID not in cache


# ── Test 7: Keys are fetched once and cached ───────────────────────


async def test_public_key_cached(mock_keys, signing_key):
    cache = PublicKeyCache()
    verifier = CircleEventVerifier(mock_keys, cache)

    for transfer in ("t-1", "t-2", "t-3"):
        raw = encode_payload(make_inbound_payload(transfer_id=transfer))
        assert await verifier.verify(raw, sign(signing_key, raw), KEY_ID)

    assert mock_keys.calls == [KEY_ID]
    assert KEY_ID in cache
    assert len(cache) == 1
