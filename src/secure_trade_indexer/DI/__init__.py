"""Dependency injection."""

from secure_trade_indexer.DI.container import Container

__all__ = ["Container"]
