"""Protocol interfaces for the external collaborators and the state store."""

from paytag_settlement.interfaces.blobs import BlobStore
from paytag_settlement.interfaces.executor import ExecutionService
from paytag_settlement.interfaces.identity import IdentityResolver
from paytag_settlement.interfaces.keys import KeyProvider
from paytag_settlement.interfaces.store import StateStore

__all__ = [
    "BlobStore",
    "ExecutionService",
    "IdentityResolver",
    "KeyProvider",
    "StateStore",
]
