"""Hard safety bounds applied to every swap, independent of owner policy."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import ROUND_DOWN, Decimal

from paytag_settlement.errors import PolicyViolation

MIN_SLIPPAGE_BPS = 5
MAX_SLIPPAGE_BPS = 300
MAX_NOTIONAL_ETH = Decimal("0.25")
DEADLINE_SECONDS = 600
BACKOFF_BASE_SECONDS = 30
BACKOFF_CAP_SECONDS = 900


def to_base_units(amount: str | Decimal, decimals: int = 18) -> int:
    """Decimal human amount -> integer base units, truncating dust."""
    value = Decimal(amount) * (Decimal(10) ** decimals)
    return int(value.quantize(Decimal(1), rounding=ROUND_DOWN))


def clamp_slippage(
    bps: int,
    low: int = MIN_SLIPPAGE_BPS,
    high: int = MAX_SLIPPAGE_BPS,
) -> int:
    return max(low, min(high, int(bps)))


def enforce_notional_cap(amount_wei: int, cap: str | Decimal = MAX_NOTIONAL_ETH) -> None:
    """Raise PolicyViolation when a swap exceeds the per-swap native cap."""
    cap_wei = to_base_units(cap)
    if amount_wei > cap_wei:
        raise PolicyViolation(
            f"swap amount {amount_wei} wei exceeds cap {cap} ETH ({cap_wei} wei)"
        )


def swap_deadline(now: datetime, seconds: int = DEADLINE_SECONDS) -> int:
    """Unix timestamp after which the router rejects the swap."""
    return int((now + timedelta(seconds=seconds)).timestamp())


def backoff_delay(
    attempts: int,
    base: int = BACKOFF_BASE_SECONDS,
    cap: int = BACKOFF_CAP_SECONDS,
) -> int:
    """Retry delay in seconds after ``attempts`` earlier failures."""
    return min(base * 2 ** max(attempts, 0), cap)
