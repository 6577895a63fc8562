"""AutoSwap - swap job scheduling, execution and settlement."""

from paytag_settlement.autoswap.scheduler import AutoSwapScheduler
from paytag_settlement.autoswap.worker import SwapWorker

__all__ = ["AutoSwapScheduler", "SwapWorker"]
