"""Settlement daemon - wires all components together and runs the worker pool."""

from __future__ import annotations

import asyncio
import logging
import signal
import time

from paytag_settlement.api.data_api import LedgerQueries
from paytag_settlement.api.ingest import DepositIngestor
from paytag_settlement.autoswap.scheduler import AutoSwapScheduler
from paytag_settlement.autoswap.worker import SwapWorker, default_worker_id
from paytag_settlement.circle.assets import TokenTable
from paytag_settlement.circle.executor import CircleContractExecutor
from paytag_settlement.circle.keys import CircleKeyProvider
from paytag_settlement.circle.verifier import CircleEventVerifier, PublicKeyCache
from paytag_settlement.identity import StoreIdentityResolver
from paytag_settlement.interfaces.blobs import BlobStore
from paytag_settlement.interfaces.executor import ExecutionService
from paytag_settlement.interfaces.keys import KeyProvider
from paytag_settlement.interfaces.store import StateStore
from paytag_settlement.ledger.payments import PaymentLedger
from paytag_settlement.ledger.receipts import ReceiptWriter
from paytag_settlement.models.config import SettlementConfig
from paytag_settlement.storage.sqlite import SQLiteStateStore
from paytag_settlement.walrus.blobs import WalrusBlobStore

log = logging.getLogger(__name__)


class SettlementDaemon:
    """PayTag settlement service.

    Holds the ingestion pipeline (called synchronously per notification by
    whatever HTTP layer fronts it) and runs ``worker.count`` AutoSwap
    workers against the shared state store.
    """

    def __init__(
        self,
        cfg: SettlementConfig,
        *,
        store: StateStore | None = None,
        keys: KeyProvider | None = None,
        executor: ExecutionService | None = None,
        blobs: BlobStore | None = None,
    ) -> None:
        self._cfg = cfg
        self._running = False
        self._start_time = time.monotonic()
        self._tasks: list[asyncio.Task] = []
        self._stopped = asyncio.Event()

        # Core components (collaborators may be injected)
        self.store = store or SQLiteStateStore(cfg.db_path)
        self.identities = StoreIdentityResolver(self.store)
        self.tokens = TokenTable(cfg.asset_overrides)

        keys = keys or CircleKeyProvider(
            cfg.circle.api_base_url, cfg.circle.api_key, cfg.circle.request_timeout,
        )
        self.verifier = CircleEventVerifier(keys, PublicKeyCache())
        self.executor = executor or CircleContractExecutor(
            cfg.circle.api_base_url,
            cfg.circle.api_key,
            cfg.circle.entity_secret,
            cfg.circle.request_timeout,
        )

        if blobs is None and cfg.walrus.publisher_url:
            blobs = WalrusBlobStore(
                cfg.walrus.publisher_url,
                cfg.walrus.aggregator_url,
                cfg.walrus.epochs,
                cfg.walrus.request_timeout,
            )
        self.receipts = ReceiptWriter(self.store, blobs, cfg.walrus.epochs)
        self.ledger = PaymentLedger(self.store, self.identities, cfg.chain_allowlist())
        self.scheduler = AutoSwapScheduler(
            self.store, cfg.swap_eligible(), max_attempts=cfg.worker.max_attempts,
        )
        self.ingestor = DepositIngestor(
            self.verifier, self.ledger, self.receipts, self.scheduler,
            self.identities, self.tokens,
        )
        self.queries = LedgerQueries(self.store)

        base_id = default_worker_id()
        self.workers = [
            SwapWorker(
                self.store,
                self.identities,
                self.executor,
                self.receipts,
                swap=cfg.swap,
                worker=cfg.worker,
                fee_level=cfg.circle.fee_level,
                worker_id=f"{base_id}-{i}",
            )
            for i in range(max(1, cfg.worker.count))
        ]

    async def start(self) -> None:
        """Initialize components and run the workers until stopped."""
        log.info("Starting paytag_settlement daemon")
        log.info("  Environment: %s", self._cfg.environment.value)
        log.info("  Chains: %s", ", ".join(self._cfg.chain_allowlist()))
        log.info(
            "  AutoSwap: %s",
            ", ".join(f"{a} on {c}" for a, c in self._cfg.swap_eligible()),
        )
        log.info("  Workers: %d", len(self.workers))
        log.info("  Walrus: %s", self._cfg.walrus.publisher_url or "(disabled)")
        log.info("  DB: %s", self._cfg.db_path)

        await self.store.initialize()
        self._running = True
        await self.store.log_activity(
            "daemon_started", f"Daemon started with {len(self.workers)} worker(s)",
        )

        self._tasks = [asyncio.create_task(w.run()) for w in self.workers]
        try:
            await self._stopped.wait()
        finally:
            for worker in self.workers:
                worker.stop()
            for task in self._tasks:
                task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)
            uptime = int(time.monotonic() - self._start_time)
            await self.store.log_activity("daemon_stopped", f"Daemon stopped after {uptime}s")
            await self.store.close()
            log.info("Daemon shut down cleanly")

    async def stop(self) -> None:
        """Signal the daemon to stop gracefully."""
        log.info("Stop requested")
        self._running = False
        self._stopped.set()


async def run_daemon(cfg: SettlementConfig) -> None:
    """Entry point for running the daemon."""
    daemon = SettlementDaemon(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
