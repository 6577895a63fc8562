"""Vendor token id -> asset resolution."""

from __future__ import annotations

import logging

from paytag_settlement.models.records import Asset

log = logging.getLogger(__name__)

TOKEN_TABLE_VERSION = "2024-11"

# Keys are compared lowercased. Entries cover the plain symbols, the native
# gas tokens on the supported chains and the Circle-issued ERC-20 contracts.
DEFAULT_TOKENS: dict[str, Asset] = {
    # Symbols
    "usdc": Asset.USDC,
    "eurc": Asset.EURC,
    "eth": Asset.ETH,
    # Native gas tokens as Circle reports them
    "eth-sepolia": Asset.ETH,
    "base-sepolia": Asset.ETH,
    "eth-mainnet": Asset.ETH,
    "base": Asset.ETH,
    "base-mainnet": Asset.ETH,
    # USDC
    "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48": Asset.USDC,  # Ethereum
    "0x1c7d4b196cb0c7b01d743fbc6116a902379c7238": Asset.USDC,  # Sepolia
    "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913": Asset.USDC,  # Base
    "0x036cbd53842c5426634e7929541ec2318f3dcf7e": Asset.USDC,  # Base Sepolia
    # EURC
    "0x1abaea1f7c830bd89acc67ec4af516284b1bc33c": Asset.EURC,  # Ethereum
    "0x08210f9170f89ab7658f0b5e3ff39b0e03c594d4": Asset.EURC,  # Sepolia
    "0x60a3e35cc302bfa44cb288bc5a4f316fdb1adb42": Asset.EURC,  # Base
    "0x808456652fdb597867f38412077a9182bf77359f": Asset.EURC,  # Base Sepolia
}


class TokenTable:
    """Versioned token id table with operator overrides.

    Overrides come from the ``[assets]`` config section and map a token id
    (typically a Circle token UUID) to an asset symbol. An override that
    contradicts the built-in table wins, and the resolution is logged once
    at construction.
    """

    def __init__(
        self,
        overrides: dict[str, str] | None = None,
        version: str = TOKEN_TABLE_VERSION,
        defaults: dict[str, Asset] | None = None,
    ) -> None:
        self.version = version
        self._table: dict[str, Asset] = dict(DEFAULT_TOKENS if defaults is None else defaults)
        for token_id, symbol in (overrides or {}).items():
            key = token_id.strip().lower()
            asset = _parse_asset(symbol)
            existing = self._table.get(key)
            if existing is not None and existing != asset:
                log.warning(
                    "Asset override for %s: %s (table %s) -> %s",
                    token_id, existing.value, version, asset.value,
                )
            self._table[key] = asset

    def resolve(self, token_id: str | None) -> Asset:
        """Map a vendor token id to an asset; unmapped ids resolve to UNKNOWN."""
        if not token_id:
            return Asset.UNKNOWN
        asset = self._table.get(token_id.strip().lower())
        if asset is None:
            log.debug("Unmapped token id %s (table %s)", token_id, self.version)
            return Asset.UNKNOWN
        return asset

    def __len__(self) -> int:
        return len(self._table)


def _parse_asset(symbol: str) -> Asset:
    try:
        return Asset(symbol.strip().upper())
    except ValueError:
        return Asset.UNKNOWN
