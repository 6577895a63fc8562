"""ExecutionService protocol - custodial signer for contract calls."""

from __future__ import annotations

from typing import Protocol

from paytag_settlement.models.records import ExecutionHandle, ExecutionStatus


class ExecutionService(Protocol):
    """Submits contract calls from a custodial wallet and reports their state."""

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
        """Submit a call; raises on submission failure."""
        ...

    async def get_execution_status(self, execution_id: str) -> ExecutionStatus:
        ...
