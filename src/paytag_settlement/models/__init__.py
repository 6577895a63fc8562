"""Data models for the paytag_settlement pipeline."""

from paytag_settlement.models.events import (
    DepositEvent,
    InboundTransferNotification,
    OtherNotification,
    VendorNotification,
)
from paytag_settlement.models.records import (
    ActivityRecord,
    Asset,
    AutoswapPolicy,
    BlobRef,
    EnqueueResult,
    ExecutionHandle,
    ExecutionStatus,
    Identity,
    IngestResult,
    JobStatus,
    JobSummary,
    Payment,
    PaymentStatus,
    Receipt,
    ReceiptStatus,
    RecordResult,
    SwapJob,
    SwapOutcome,
    SwapStatus,
)
from paytag_settlement.models.snapshots import PaymentSnapshot, ReceiptSnapshot
from paytag_settlement.models.config import (
    ChainRouterConfig,
    CircleConfig,
    Environment,
    SettlementConfig,
    SwapConfig,
    WalrusConfig,
    WorkerConfig,
)

__all__ = [
    "DepositEvent", "InboundTransferNotification", "OtherNotification", "VendorNotification",
    "ActivityRecord", "Asset", "AutoswapPolicy", "BlobRef", "EnqueueResult",
    "ExecutionHandle", "ExecutionStatus", "Identity", "IngestResult", "JobStatus",
    "JobSummary", "Payment", "PaymentStatus", "Receipt", "ReceiptStatus",
    "RecordResult", "SwapJob", "SwapOutcome", "SwapStatus",
    "ChainRouterConfig", "CircleConfig", "Environment", "SettlementConfig",
    "SwapConfig", "WalrusConfig", "WorkerConfig",
    "PaymentSnapshot", "ReceiptSnapshot",
]
