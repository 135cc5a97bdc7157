"""Persistence layer (repositories, etc.)."""

from secure_trade_indexer.persistence.repositories import (
    DirectusCheckpointRepository,
    DirectusTradeCacheRepository,
    ICheckpointRepository,
    InMemoryCheckpointRepository,
    InMemoryTradeCacheRepository,
    ITradeCacheRepository,
)

__all__ = [
    "ICheckpointRepository",
    "ITradeCacheRepository",
    "InMemoryCheckpointRepository",
    "InMemoryTradeCacheRepository",
    "DirectusCheckpointRepository",
    "DirectusTradeCacheRepository",
]
