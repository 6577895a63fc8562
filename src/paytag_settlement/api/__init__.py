"""API components - notification ingestion and ledger queries."""

from paytag_settlement.api.data_api import LedgerQueries
from paytag_settlement.api.ingest import DepositIngestor

__all__ = ["DepositIngestor", "LedgerQueries"]
