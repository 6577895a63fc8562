"""Tier 2 fixtures: real HTTP clients against local aiohttp servers."""

from __future__ import annotations

import base64
import hashlib

import pytest
from aiohttp import web
from cryptography.hazmat.primitives import serialization

from paytag_settlement.circle.keys import CircleKeyProvider
from paytag_settlement.walrus.blobs import WalrusBlobStore
from tests.factories import KEY_ID

KEY_SERVER_PORT = 9198
WALRUS_SERVER_PORT = 9197


async def _serve(app: web.Application, port: int):
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    return runner


@pytest.fixture
async def key_server(signing_key):
    """Local server that publishes the notification key at /v2/notifications/publicKey/{id}.

    Returns (base_url, request_log).
    """
    der = signing_key.public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    keys = {KEY_ID: base64.b64encode(der).decode()}
    request_log: list[str] = []

    async def handle_key(request):
        key_id = request.match_info["key_id"]
        request_log.append(key_id)
        if key_id not in keys:
            return web.json_response({"code": 404, "message": "not found"}, status=404)
        return web.json_response({
            "data": {
                "id": key_id,
                "algorithm": "ECDSA_SHA_256",
                "publicKey": keys[key_id],
                "createDate": "2025-01-01T00:00:00Z",
            }
        })

    app = web.Application()
    app.router.add_get("/v2/notifications/publicKey/{key_id}", handle_key)
    runner = await _serve(app, KEY_SERVER_PORT)
    yield f"http://127.0.0.1:{KEY_SERVER_PORT}", request_log
    await runner.cleanup()


@pytest.fixture
async def walrus_server():
    """Local Walrus publisher/aggregator.

    The first PUT of a body answers newlyCreated, repeats answer
    alreadyCertified. Returns (base_url, blobs).
    """
    blobs: dict[str, bytes] = {}
    state = {"fail": False}

    async def handle_put(request):
        if state["fail"]:
            return web.Response(status=503, text="storage nodes unavailable")
        body = await request.read()
        blob_id = base64.urlsafe_b64encode(hashlib.sha256(body).digest()).decode().rstrip("=")
        epochs = int(request.query.get("epochs", "1"))
        if blob_id in blobs:
            return web.json_response({
                "alreadyCertified": {
                    "blobId": blob_id,
                    "event": {"blobObject": {"id": f"0x{len(blobs):064x}"}},
                    "endEpoch": epochs,
                }
            })
        blobs[blob_id] = body
        return web.json_response({
            "newlyCreated": {
                "blobObject": {
                    "id": f"0x{len(blobs):064x}",
                    "blobId": blob_id,
                    "size": len(body),
                    "storage": {"endEpoch": epochs},
                },
                "cost": 1000,
            }
        })

    async def handle_get(request):
        blob_id = request.match_info["blob_id"]
        if blob_id not in blobs:
            return web.Response(status=404)
        return web.Response(body=blobs[blob_id], content_type="application/json")

    app = web.Application()
    app.router.add_put("/v1/blobs", handle_put)
    app.router.add_get("/v1/blobs/{blob_id}", handle_get)
    runner = await _serve(app, WALRUS_SERVER_PORT)
    yield f"http://127.0.0.1:{WALRUS_SERVER_PORT}", blobs, state
    await runner.cleanup()


@pytest.fixture
def real_keys(key_server):
    base_url, _ = key_server
    return CircleKeyProvider(base_url, "TEST_API_KEY:local:key", timeout=5)


@pytest.fixture
def real_blobs(walrus_server):
    base_url, _, _ = walrus_server
    return WalrusBlobStore(base_url, base_url, epochs=3, timeout=5)
