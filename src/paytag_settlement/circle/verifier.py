"""Notification signature verification (ECDSA P-256 / SHA-256)."""

from __future__ import annotations

import base64
import binascii
import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

from paytag_settlement.errors import CircleAPIError
from paytag_settlement.interfaces.keys import KeyProvider

log = logging.getLogger(__name__)


class PublicKeyCache:
    """Loaded public keys by key id. Entries are never evicted."""

    def __init__(self) -> None:
        self._keys: dict[str, ec.EllipticCurvePublicKey] = {}

    def get(self, key_id: str) -> ec.EllipticCurvePublicKey | None:
        return self._keys.get(key_id)

    def put(self, key_id: str, key: ec.EllipticCurvePublicKey) -> None:
        self._keys[key_id] = key

    def __contains__(self, key_id: object) -> bool:
        return key_id in self._keys

    def __len__(self) -> int:
        return len(self._keys)


class CircleEventVerifier:
    """Verifies that a notification body was signed by the vendor.

    The signature covers the exact bytes received on the wire, so callers
    must pass the raw request body, not a re-serialized parse of it.
    """

    def __init__(self, keys: KeyProvider, cache: PublicKeyCache | None = None) -> None:
        self._keys = keys
        self._cache = cache if cache is not None else PublicKeyCache()

    async def verify(self, raw_body: bytes, signature_b64: str, key_id: str) -> bool:
        if not signature_b64 or not key_id:
            return False

        try:
            signature = base64.b64decode(signature_b64, validate=True)
        except (binascii.Error, ValueError):
            log.warning("Notification signature is not valid base64 (key %s)", key_id)
            return False

        key = await self._load_key(key_id)
        if key is None:
            return False

        try:
            key.verify(signature, raw_body, ec.ECDSA(hashes.SHA256()))
        except InvalidSignature:
            log.warning("Notification signature mismatch (key %s)", key_id)
            return False
        return True

    async def _load_key(self, key_id: str) -> ec.EllipticCurvePublicKey | None:
        cached = self._cache.get(key_id)
        if cached is not None:
            return cached

        try:
            der = await self._keys.get_public_key(key_id)
        except CircleAPIError as exc:
            log.warning("Could not fetch public key %s: %s", key_id, exc)
            return None
        except Exception as exc:
            log.error("Public key lookup for %s failed: %s", key_id, exc, exc_info=True)
            return None

        try:
            key = serialization.load_der_public_key(der)
        except ValueError as exc:
            log.warning("Public key %s is malformed: %s", key_id, exc)
            return None
        if not isinstance(key, ec.EllipticCurvePublicKey):
            log.warning("Public key %s is not an EC key", key_id)
            return None

        self._cache.put(key_id, key)
        return key
