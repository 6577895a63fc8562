"""Persisted record types and component results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Asset(str, Enum):
    USDC = "USDC"
    EURC = "EURC"
    ETH = "ETH"
    UNKNOWN = "UNKNOWN"


# Base-unit decimals per asset; UNKNOWN has no defined unit.
ASSET_DECIMALS = {
    Asset.USDC: 6,
    Asset.EURC: 6,
    Asset.ETH: 18,
}


class PaymentStatus(str, Enum):
    DETECTED = "detected"
    PROCESSED = "processed"
    COMPLETED = "completed"
    FAILED = "failed"


class SwapStatus(str, Enum):
    NOT_APPLICABLE = "not_applicable"
    QUEUED = "queued"
    SWAPPING = "swapping"
    SWAPPED = "swapped"
    SWAP_FAILED = "swap_failed"


class JobStatus(str, Enum):
    QUEUED = "queued"
    LOCKED = "locked"
    COMPLETED = "completed"
    FAILED = "failed"


class ReceiptStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    FAILED = "failed"


@dataclass
class AutoswapPolicy:
    """Owner's autoswap settings (read-only to this package)."""

    enabled: bool = False
    slippage_bps: int = 50
    max_gas_gwei: int | None = None
    min_amount_wei: str | None = None


@dataclass
class Identity:
    """A PayTag: one handle bound to one custodial wallet."""

    identity_id: str
    handle: str
    wallet_id: str
    wallet_address: str
    display_name: str | None = None


@dataclass
class Payment:
    id: str
    paytag_id: str
    chain: str
    asset: str
    amount: str
    to_address: str
    tx_hash: str
    external_transaction_id: str
    raw_event: str  # JSON text of the original notification
    status: str = PaymentStatus.DETECTED.value
    swap_status: str = SwapStatus.NOT_APPLICABLE.value
    from_address: str | None = None
    swap_tx_hash: str | None = None
    swap_error: str | None = None
    amount_out_target: str | None = None
    router_used: str | None = None
    created_at: str = ""


@dataclass
class Receipt:
    id: str
    payment_id: str
    receipt_public_id: str
    paytag_handle: str
    paytag_name: str
    receiver_address: str
    chain: str
    asset_in: str
    amount_in: str
    tx_hash: str
    amount_normalized: str | None = None
    status: str = ReceiptStatus.CONFIRMED.value
    external_transaction_id: str | None = None
    explorer_url: str | None = None
    blob_id: str | None = None
    receipt_hash: str | None = None
    swap_details: str | None = None  # JSON text
    created_at: str = ""


@dataclass
class SwapJob:
    id: str
    payment_id: str
    status: str = JobStatus.QUEUED.value
    attempts: int = 0
    max_attempts: int = 3
    next_run_at: str = ""
    locked_at: str | None = None
    locked_by: str | None = None
    completed_at: str | None = None
    error: str | None = None
    execution_id: str | None = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class ActivityRecord:
    """A single audit log entry."""

    id: int
    event_type: str
    payment_id: str | None
    job_id: str | None
    message: str
    created_at: str


@dataclass
class JobSummary:
    """Counts of swap jobs per status."""

    queued: int = 0
    locked: int = 0
    completed: int = 0
    failed: int = 0
    due: int = 0  # queued and runnable now


# ── Component results ────────────────────────────────────


@dataclass
class RecordResult:
    """Outcome of PaymentLedger.record_payment()."""

    outcome: str  # "recorded", "already_recorded", "malformed", "unsupported_chain", "unknown_wallet"
    payment: Payment | None = None
    identity: Identity | None = None
    detail: str | None = None

    @property
    def created(self) -> bool:
        return self.outcome == "recorded"


@dataclass
class EnqueueResult:
    """Outcome of AutoSwapScheduler.maybe_enqueue()."""

    enqueued: bool
    reason: str  # "enqueued", "unsupported", "disabled", "below-minimum", "already-queued"
    job: SwapJob | None = None


@dataclass
class IngestResult:
    """Outcome of a deposit notification, shaped for the HTTP layer."""

    accepted: bool
    reason: str
    status_code: int = 200
    payment_id: str | None = None
    receipt_public_id: str | None = None


@dataclass
class BlobRef:
    """Reference to a mirrored receipt document."""

    blob_id: str
    content_hash: str
    object_id: str | None = None


@dataclass
class ExecutionHandle:
    """Result of submitting a contract call to the custodial signer."""

    execution_id: str
    state: str


@dataclass
class ExecutionStatus:
    """Current state of a custodial execution."""

    state: str
    tx_hash: str | None = None
    error: str | None = None
    amount_out: str | None = None


@dataclass
class SwapOutcome:
    """Confirmed swap result written back during settlement."""

    tx_hash: str
    amount_out: str
    router: str
    execution_id: str
    amount_in: str
    slippage_bps: int
    deadline: int
