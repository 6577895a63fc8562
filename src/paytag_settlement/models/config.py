"""Configuration models for the settlement daemon."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Environment(str, Enum):
    """Deployment environment; selects the default chain allow-lists."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


PRODUCTION_CHAINS = ["ETH", "BASE", "ETH-MAINNET", "BASE-MAINNET"]
TESTNET_CHAINS = ["ETH-SEPOLIA", "BASE-SEPOLIA"]


@dataclass
class ChainRouterConfig:
    """Router deployment used for swaps on one chain."""

    router: str  # Uniswap V3 SwapRouter02
    wrapped_native: str  # WETH, tokenIn for native swaps
    target_token: str  # tokenOut (USDC)
    target_decimals: int = 6
    fee_tier: int = 500  # 0.05% pool


DEFAULT_ROUTERS = {
    "BASE-SEPOLIA": ChainRouterConfig(
        router="0x94cC0AaC535CCDB3C01d6787D6413C739ae12bc4",
        wrapped_native="0x4200000000000000000000000000000000000006",
        target_token="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
    ),
    "BASE": ChainRouterConfig(
        router="0x2626664c2603336E57B271c5C0b26F421741e481",
        wrapped_native="0x4200000000000000000000000000000000000006",
        target_token="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
    ),
}


@dataclass
class CircleConfig:
    """Circle developer-controlled wallets + notification settings."""

    api_base_url: str = "https://api.circle.com"
    api_key: str = ""  # loaded from env var PAYTAG_CIRCLE_API_KEY
    entity_secret: str = ""  # loaded from env var PAYTAG_CIRCLE_ENTITY_SECRET
    request_timeout: int = 15  # seconds
    fee_level: str = "MEDIUM"


@dataclass
class WalrusConfig:
    """Walrus publisher used to mirror receipt documents."""

    publisher_url: str = ""  # empty disables mirroring
    aggregator_url: str = ""
    epochs: int = 100
    request_timeout: int = 15


@dataclass
class WorkerConfig:
    """AutoSwap worker pool settings."""

    count: int = 1  # worker tasks per process
    poll_interval: int = 15  # seconds between claim polls
    batch_size: int = 10
    lease_seconds: int = 300  # lock age after which a job is reclaimable
    confirm_attempts: int = 20
    confirm_interval: float = 6.0  # seconds between status polls
    backoff_base: int = 30  # seconds
    backoff_cap: int = 900  # seconds
    max_attempts: int = 3
    error_backoff: int = 30


@dataclass
class SwapConfig:
    """Swap safety bounds and routing."""

    target_asset: str = "USDC"
    eligible: list[tuple[str, str]] = field(default_factory=list)  # (asset, chain)
    max_notional: str = "0.25"  # native units
    deadline_seconds: int = 600
    min_slippage_bps: int = 5
    max_slippage_bps: int = 300
    quote_price: str = "2500"  # placeholder: target units per native unit
    routers: dict[str, ChainRouterConfig] = field(
        default_factory=lambda: dict(DEFAULT_ROUTERS)
    )


@dataclass
class SettlementConfig:
    """Complete daemon configuration."""

    # Daemon
    environment: Environment = Environment.DEVELOPMENT
    log_level: str = "info"
    db_path: str = "~/.paytag_settlement/state.db"

    # Ingestion
    supported_chains: list[str] = field(default_factory=list)  # empty = by environment
    asset_overrides: dict[str, str] = field(default_factory=dict)  # token id -> symbol

    circle: CircleConfig = field(default_factory=CircleConfig)
    walrus: WalrusConfig = field(default_factory=WalrusConfig)
    worker: WorkerConfig = field(default_factory=WorkerConfig)
    swap: SwapConfig = field(default_factory=SwapConfig)

    def chain_allowlist(self) -> list[str]:
        if self.supported_chains:
            return list(self.supported_chains)
        if self.environment == Environment.PRODUCTION:
            return list(PRODUCTION_CHAINS)
        return list(TESTNET_CHAINS)

    def swap_eligible(self) -> list[tuple[str, str]]:
        if self.swap.eligible:
            return list(self.swap.eligible)
        if self.environment == Environment.PRODUCTION:
            return [("ETH", "BASE")]
        return [("ETH", "BASE-SEPOLIA")]
