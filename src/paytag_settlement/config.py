"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from paytag_settlement.models.config import (
    ChainRouterConfig,
    Environment,
    SettlementConfig,
)


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "PAYTAG_",
) -> SettlementConfig:
    """Load settlement configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (PAYTAG_CIRCLE_API_KEY, etc.)
        2. TOML config file
        3. Defaults from SettlementConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = SettlementConfig()

    # ── Daemon section ─────────────────────────────────────
    daemon = raw.get("daemon", {})
    if v := daemon.get("environment"):
        cfg.environment = Environment(v)
    if v := daemon.get("log_level"):
        cfg.log_level = str(v)
    if v := daemon.get("db_path"):
        cfg.db_path = str(v)

    # ── Ingest section ─────────────────────────────────────
    ingest = raw.get("ingest", {})
    if v := ingest.get("supported_chains"):
        cfg.supported_chains = [str(c).upper() for c in v]

    # ── Circle section ─────────────────────────────────────
    circle = raw.get("circle", {})
    if v := circle.get("api_base_url"):
        cfg.circle.api_base_url = str(v)
    if v := circle.get("api_key"):
        cfg.circle.api_key = str(v)
    if v := circle.get("entity_secret"):
        cfg.circle.entity_secret = str(v)
    if v := circle.get("request_timeout"):
        cfg.circle.request_timeout = int(v)
    if v := circle.get("fee_level"):
        cfg.circle.fee_level = str(v).upper()

    # ── Walrus section ─────────────────────────────────────
    walrus = raw.get("walrus", {})
    if v := walrus.get("publisher_url"):
        cfg.walrus.publisher_url = str(v)
    if v := walrus.get("aggregator_url"):
        cfg.walrus.aggregator_url = str(v)
    if v := walrus.get("epochs"):
        cfg.walrus.epochs = int(v)
    if v := walrus.get("request_timeout"):
        cfg.walrus.request_timeout = int(v)

    # ── Worker section ─────────────────────────────────────
    worker = raw.get("worker", {})
    for name in (
        "count", "poll_interval", "batch_size", "lease_seconds", "confirm_attempts",
        "backoff_base", "backoff_cap", "max_attempts", "error_backoff",
    ):
        if (v := worker.get(name)) is not None:
            setattr(cfg.worker, name, int(v))
    if (v := worker.get("confirm_interval")) is not None:
        cfg.worker.confirm_interval = float(v)

    # ── Swap section ───────────────────────────────────────
    swap = raw.get("swap", {})
    if v := swap.get("target_asset"):
        cfg.swap.target_asset = str(v).upper()
    if v := swap.get("eligible"):
        # e.g. ["ETH:BASE-SEPOLIA"]
        cfg.swap.eligible = [_parse_pair(item) for item in v]
    if v := swap.get("max_notional"):
        cfg.swap.max_notional = str(v)
    if v := swap.get("deadline_seconds"):
        cfg.swap.deadline_seconds = int(v)
    if v := swap.get("min_slippage_bps"):
        cfg.swap.min_slippage_bps = int(v)
    if v := swap.get("max_slippage_bps"):
        cfg.swap.max_slippage_bps = int(v)
    if v := swap.get("quote_price"):
        cfg.swap.quote_price = str(v)
    for chain, chain_raw in swap.get("chains", {}).items():
        cfg.swap.routers[chain.upper()] = ChainRouterConfig(
            router=chain_raw["router"],
            wrapped_native=chain_raw["wrapped_native"],
            target_token=chain_raw["target_token"],
            target_decimals=int(chain_raw.get("target_decimals", 6)),
            fee_tier=int(chain_raw.get("fee_tier", 500)),
        )

    # ── Assets section ─────────────────────────────────────
    assets = raw.get("assets", {})
    cfg.asset_overrides = {str(k): str(v) for k, v in assets.items()}

    # ── Environment variable overrides (highest priority) ──
    if env := os.environ.get(f"{env_prefix}ENV"):
        cfg.environment = Environment(env)
    if db := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db
    if key := os.environ.get(f"{env_prefix}CIRCLE_API_KEY"):
        cfg.circle.api_key = key
    if secret := os.environ.get(f"{env_prefix}CIRCLE_ENTITY_SECRET"):
        cfg.circle.entity_secret = secret
    if url := os.environ.get(f"{env_prefix}WALRUS_PUBLISHER_URL"):
        cfg.walrus.publisher_url = url
    if level := os.environ.get(f"{env_prefix}LOG_LEVEL"):
        cfg.log_level = level

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg


def _parse_pair(item: str | list) -> tuple[str, str]:
    if isinstance(item, str):
        asset, _, chain = item.partition(":")
    else:
        asset, chain = item[0], item[1]
    return str(asset).upper(), str(chain).upper()
