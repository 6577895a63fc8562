"""Shared fixtures for paytag_settlement tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from pytest_metadata.plugin import metadata_key

from paytag_settlement.daemon import SettlementDaemon
from paytag_settlement.models.config import (
    Environment,
    SettlementConfig,
    SwapConfig,
    WorkerConfig,
)
from paytag_settlement.models.records import AutoswapPolicy
from paytag_settlement.storage.sqlite import SQLiteStateStore

from tests.factories import KEY_ID, make_identity
from tests.mocks import MockBlobStore, MockExecutor, MockKeyProvider


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add pipeline info to the report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Environment"] = Environment.DEVELOPMENT.value
    meta["Swap chain"] = "BASE-SEPOLIA"
    meta["Custodial signer"] = "mocked (tier 1) / local HTTP (tier 2)"


def make_test_config(**overrides) -> SettlementConfig:
    """Build a SettlementConfig suitable for testing."""
    defaults = dict(
        environment=Environment.DEVELOPMENT,
        db_path=":memory:",
        worker=WorkerConfig(
            count=1,
            poll_interval=0,
            batch_size=10,
            lease_seconds=300,
            confirm_attempts=3,
            confirm_interval=0,
            error_backoff=0,
        ),
        swap=SwapConfig(quote_price="2500"),
    )
    defaults.update(overrides)
    return SettlementConfig(**defaults)


class FakeClock:
    """Controllable UTC clock for the scheduler and workers."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def test_config():
    """Default SettlementConfig for tests."""
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteStateStore."""
    s = SQLiteStateStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def signing_key():
    """P-256 key standing in for the vendor's notification signing key."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def mock_keys(signing_key):
    der = signing_key.public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return MockKeyProvider({KEY_ID: der})


@pytest.fixture
def mock_executor():
    return MockExecutor()


@pytest.fixture
def mock_blobs():
    return MockBlobStore(succeed=True)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def identity(store):
    """A PayTag with AutoSwap enabled at the default 50 bps."""
    ident = make_identity()
    await store.save_identity(ident, AutoswapPolicy(enabled=True, slippage_bps=50))
    return await store.get_identity(ident.identity_id)


@pytest.fixture
async def daemon(test_config, store, mock_keys, mock_executor, mock_blobs, clock):
    """Fully wired SettlementDaemon with mocked collaborators."""
    d = SettlementDaemon(
        test_config,
        store=store,
        keys=mock_keys,
        executor=mock_executor,
        blobs=mock_blobs,
    )
    d.scheduler._clock = clock
    for worker in d.workers:
        worker._clock = clock
    return d
