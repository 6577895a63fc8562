"""Mock implementations of the external collaborators."""

from __future__ import annotations

from typing import Any

from paytag_settlement.errors import BlobStoreError, CircleAPIError
from paytag_settlement.models.records import BlobRef, ExecutionHandle, ExecutionStatus
from paytag_settlement.walrus.blobs import content_hash, serialize_document

SWAP_TX_HASH = "0x" + "ab" * 32


class MockKeyProvider:
    """Implements KeyProvider. Serves DER keys from a dict."""

    def __init__(self, keys: dict[str, bytes] | None = None, fail: bool = False) -> None:
        self.keys = dict(keys or {})
        self.fail = fail
        self.calls: list[str] = []

    async def get_public_key(self, key_id: str) -> bytes:
        self.calls.append(key_id)
        if self.fail:
            raise CircleAPIError("key service unavailable", status_code=503)
        if key_id not in self.keys:
            raise CircleAPIError(f"unknown key {key_id}", status_code=404)
        return self.keys[key_id]


class MockExecutor:
    """Implements ExecutionService.

    ``submit_failures`` submissions raise before one succeeds;
    ``pending_polls`` status polls report PENDING before ``final_state``.
    """

    def __init__(
        self,
        submit_failures: int = 0,
        final_state: str = "COMPLETE",
        pending_polls: int = 0,
        tx_hash: str | None = SWAP_TX_HASH,
        amount_out: str | None = None,
        error: str | None = None,
    ) -> None:
        self.submit_failures = submit_failures
        self.final_state = final_state
        self.pending_polls = pending_polls
        self.tx_hash = tx_hash
        self.amount_out = amount_out
        self.error = error
        self.submit_calls: list[dict[str, Any]] = []
        self.status_calls: list[str] = []
        self._polls: dict[str, int] = {}

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
        self.submit_calls.append(dict(
            wallet_id=wallet_id,
            contract_address=contract_address,
            call_data=call_data,
            value_wei=value_wei,
            fee_level=fee_level,
            idempotency_key=idempotency_key,
            max_fee_gwei=max_fee_gwei,
        ))
        if self.submit_failures > 0:
            self.submit_failures -= 1
            raise CircleAPIError("mock submission failure", status_code=502)
        return ExecutionHandle(execution_id=f"exec-{len(self.submit_calls)}", state="INITIATED")

    async def get_execution_status(self, execution_id: str) -> ExecutionStatus:
        self.status_calls.append(execution_id)
        seen = self._polls.get(execution_id, 0)
        self._polls[execution_id] = seen + 1
        if seen < self.pending_polls:
            return ExecutionStatus(state="PENDING")
        if self.final_state == "COMPLETE":
            return ExecutionStatus(
                state="COMPLETE", tx_hash=self.tx_hash, amount_out=self.amount_out,
            )
        return ExecutionStatus(state=self.final_state, error=self.error)


class MockBlobStore:
    """Implements BlobStore. Records documents, optionally fails.

    ``raises`` overrides the failure with an arbitrary exception.
    """

    def __init__(self, succeed: bool = True, raises: Exception | None = None) -> None:
        self.succeed = succeed
        self.raises = raises
        self.put_calls: list[tuple[dict[str, Any], int | None]] = []

    async def put(self, document: dict[str, Any], epochs: int | None = None) -> BlobRef:
        self.put_calls.append((document, epochs))
        if self.raises is not None:
            raise self.raises
        if not self.succeed:
            raise BlobStoreError("mock publisher unreachable")
        digest = content_hash(serialize_document(document))
        return BlobRef(blob_id=f"blob-{digest[:12]}", content_hash=digest, object_id="0xobj")
