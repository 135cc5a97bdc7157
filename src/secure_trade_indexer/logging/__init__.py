"""Logging setup (structlog + Logfire)."""

from secure_trade_indexer.logging.config import configure_logging

__all__ = ["configure_logging"]
