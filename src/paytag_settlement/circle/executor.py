"""Circle developer-controlled wallet client for contract execution."""

from __future__ import annotations

import base64
import logging
from decimal import Decimal
from typing import Any

import httpx
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from paytag_settlement.errors import CircleAPIError
from paytag_settlement.models.records import ExecutionHandle, ExecutionStatus

log = logging.getLogger(__name__)

WEI_PER_ETH = 10**18

# Terminal transaction states reported by /v1/w3s/transactions
SUCCESS_STATE = "COMPLETE"
FAILURE_STATES = frozenset({"FAILED", "CANCELLED", "DENIED"})


def wei_to_native(value_wei: int) -> str:
    """Render a wei amount as a plain decimal string of native units."""
    text = format(Decimal(value_wei) / Decimal(WEI_PER_ETH), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def encrypt_entity_secret(entity_secret_hex: str, public_key_pem: str) -> str:
    """RSA-OAEP(SHA-256) encrypt the entity secret; returns base64 ciphertext.

    OAEP is randomized, so every call yields a fresh ciphertext as Circle
    requires for each request.
    """
    key = serialization.load_pem_public_key(public_key_pem.encode())
    if not isinstance(key, rsa.RSAPublicKey):
        raise CircleAPIError("entity public key is not an RSA key")
    ciphertext = key.encrypt(
        bytes.fromhex(entity_secret_hex),
        padding.OAEP(
            mgf=padding.MGF1(algorithm=hashes.SHA256()),
            algorithm=hashes.SHA256(),
            label=None,
        ),
    )
    return base64.b64encode(ciphertext).decode()


class CircleContractExecutor:
    """Submits contract calls from a Circle custodial wallet.

    Uses the W3S developer API:
    - POST /v1/w3s/developer/transactions/contractExecution
    - GET  /v1/w3s/transactions/{id}
    - GET  /v1/w3s/config/entity/publicKey (for the entity secret ciphertext)
    """

    def __init__(
        self,
        api_base_url: str = "https://api.circle.com",
        api_key: str = "",
        entity_secret: str = "",
        timeout: float = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = api_base_url.rstrip("/")
        self._api_key = api_key
        self._entity_secret = entity_secret
        self._timeout = timeout
        self._transport = transport
        self._entity_public_key: str | None = None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout, connect=10),
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            transport=self._transport,
        )

    async def _request(
        self, method: str, path: str, json: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        try:
            async with self._client() as client:
                resp = await client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise CircleAPIError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code >= 400:
            try:
                detail = resp.json().get("message", resp.text)
            except ValueError:
                detail = resp.text
            raise CircleAPIError(
                f"{method} {path} returned HTTP {resp.status_code}: {detail}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()["data"]
        except (ValueError, KeyError, TypeError) as exc:
            raise CircleAPIError(f"{method} {path}: unexpected response shape") from exc
        if not isinstance(data, dict):
            raise CircleAPIError(f"{method} {path}: unexpected response shape")
        return data

    async def _entity_secret_ciphertext(self) -> str:
        if not self._entity_secret:
            raise CircleAPIError("entity secret is not configured")
        if self._entity_public_key is None:
            data = await self._request("GET", "/v1/w3s/config/entity/publicKey")
            public_key = data.get("publicKey")
            if not public_key:
                raise CircleAPIError("entity public key missing from response")
            self._entity_public_key = public_key
        return encrypt_entity_secret(self._entity_secret, self._entity_public_key)

    async def submit_contract_call(
        self,
        wallet_id: str,
        contract_address: str,
        call_data: str,
        value_wei: int,
        fee_level: str,
        idempotency_key: str,
        max_fee_gwei: int | None = None,
    ) -> ExecutionHandle:
        body: dict[str, Any] = {
            "idempotencyKey": idempotency_key,
            "walletId": wallet_id,
            "contractAddress": contract_address,
            "callData": call_data,
            "amount": wei_to_native(value_wei),
            "entitySecretCiphertext": await self._entity_secret_ciphertext(),
        }
        if max_fee_gwei is not None:
            body["maxFee"] = str(max_fee_gwei)
            body["priorityFee"] = str(min(1, max_fee_gwei))
        else:
            body["feeLevel"] = fee_level

        log.info(
            "Submitting contract call: wallet=%s contract=%s value=%d key=%s",
            wallet_id, contract_address, value_wei, idempotency_key,
        )
        data = await self._request(
            "POST", "/v1/w3s/developer/transactions/contractExecution", json=body,
        )
        execution_id = data.get("id")
        if not execution_id:
            raise CircleAPIError("contract execution response has no id")
        return ExecutionHandle(execution_id=execution_id, state=data.get("state", "INITIATED"))

    async def get_execution_status(self, execution_id: str) -> ExecutionStatus:
        data = await self._request("GET", f"/v1/w3s/transactions/{execution_id}")
        tx = data.get("transaction")
        if not isinstance(tx, dict):
            raise CircleAPIError(f"transaction {execution_id} missing from response")
        amount_out = tx.get("amountOut")
        return ExecutionStatus(
            state=str(tx.get("state", "")).upper(),
            tx_hash=tx.get("txHash") or None,
            error=tx.get("errorReason") or tx.get("errorDetails") or None,
            amount_out=str(amount_out) if amount_out is not None else None,
        )
