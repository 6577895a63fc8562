"""Persistence backends."""

from paytag_settlement.storage.sqlite import SQLiteStateStore

__all__ = ["SQLiteStateStore"]
