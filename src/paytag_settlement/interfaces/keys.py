"""KeyProvider protocol - notification signing key distribution."""

from __future__ import annotations

from typing import Protocol


class KeyProvider(Protocol):
    """Fetches the public key used to sign notifications."""

    async def get_public_key(self, key_id: str) -> bytes:
        """Return the DER (SubjectPublicKeyInfo) key for ``key_id``."""
        ...
