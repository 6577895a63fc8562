"""Exception taxonomy for the settlement pipeline."""

from __future__ import annotations


class SettlementError(Exception):
    """Base class for all pipeline errors."""


class AuthenticationFailure(SettlementError):
    """Notification signature missing or unverifiable."""


class MalformedInput(SettlementError):
    """Notification lacks fields required to record a payment."""


class UnsupportedDomain(SettlementError):
    """Chain or asset outside the configured allow-list."""


class PolicyViolation(SettlementError):
    """Swap request breaks a hard safety bound; never retried."""


class TransientExecutionFailure(SettlementError):
    """Submission error, confirmation timeout or on-chain failure; retried."""


class BlobStoreError(SettlementError):
    """Receipt mirror to external storage failed."""


class CircleAPIError(SettlementError):
    """Circle API returned an error or an unexpected response shape."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LeaseLost(SettlementError):
    """Worker no longer owns the swap job it was processing."""
