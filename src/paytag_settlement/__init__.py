"""PayTag payment ingestion and AutoSwap settlement."""

__version__ = "0.1.0"
