"""Walrus blob storage integration."""

from paytag_settlement.walrus.blobs import WalrusBlobStore

__all__ = ["WalrusBlobStore"]
