"""IdentityResolver protocol - maps custodial wallets to PayTags."""

from __future__ import annotations

from typing import Protocol

from paytag_settlement.models.records import AutoswapPolicy, Identity


class IdentityResolver(Protocol):
    """Looks up the PayTag that owns a wallet address."""

    async def resolve_by_wallet_address(self, address: str) -> Identity | None:
        ...

    async def get_identity(self, identity_id: str) -> Identity | None:
        ...

    async def get_autoswap_policy(self, identity_id: str) -> AutoswapPolicy:
        ...
