"""Circle notification public key distribution client."""

from __future__ import annotations

import base64
import binascii
import logging

import httpx

from paytag_settlement.errors import CircleAPIError

log = logging.getLogger(__name__)


class CircleKeyProvider:
    """Fetches notification signing keys from ``/v2/notifications/publicKey``.

    Circle returns the key as base64 DER (SubjectPublicKeyInfo); this client
    returns the decoded DER bytes.
    """

    def __init__(
        self,
        api_base_url: str = "https://api.circle.com",
        api_key: str = "",
        timeout: float = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = api_base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def get_public_key(self, key_id: str) -> bytes:
        url = f"{self._base_url}/v2/notifications/publicKey/{key_id}"
        log.debug("Fetching notification public key %s", key_id)
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10),
                transport=self._transport,
            ) as client:
                resp = await client.get(url, headers=self._headers())
        except httpx.HTTPError as exc:
            raise CircleAPIError(f"public key fetch failed: {exc}") from exc

        if resp.status_code != 200:
            raise CircleAPIError(
                f"public key fetch returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        try:
            encoded = resp.json()["data"]["publicKey"]
            return base64.b64decode(encoded, validate=True)
        except (ValueError, KeyError, TypeError, binascii.Error) as exc:
            raise CircleAPIError(f"unexpected public key response: {exc}") from exc
