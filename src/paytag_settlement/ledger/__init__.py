"""Payment ledger and receipt issuance."""

from paytag_settlement.ledger.payments import PaymentLedger
from paytag_settlement.ledger.receipts import ReceiptWriter

__all__ = ["PaymentLedger", "ReceiptWriter"]
