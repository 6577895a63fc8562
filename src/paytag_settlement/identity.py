"""Identity resolution backed by the PayTag table in the state store."""

from __future__ import annotations

import logging

from paytag_settlement.interfaces.store import StateStore
from paytag_settlement.models.records import AutoswapPolicy, Identity

log = logging.getLogger(__name__)


class StoreIdentityResolver:
    """Resolves deposit addresses to PayTags using the local database.

    Wallet addresses are compared case-insensitively; EVM addresses arrive
    both checksummed and lowercase depending on the notification source.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store

    async def resolve_by_wallet_address(self, address: str) -> Identity | None:
        if not address:
            return None
        identity = await self._store.get_identity_by_wallet(address.strip())
        if identity is None:
            log.debug("No PayTag for wallet %s", address)
        return identity

    async def get_identity(self, identity_id: str) -> Identity | None:
        return await self._store.get_identity(identity_id)

    async def get_autoswap_policy(self, identity_id: str) -> AutoswapPolicy:
        return await self._store.get_autoswap_policy(identity_id)
