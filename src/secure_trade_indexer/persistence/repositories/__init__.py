# -*- coding: utf-8 -*-
"""Repositories: interfaces (abstractions) and implementations (in_memory, directus)."""

from secure_trade_indexer.persistence.repositories.directus import (
    DirectusCheckpointRepository,
    DirectusTradeCacheRepository,
)
from secure_trade_indexer.persistence.repositories.interfaces import (
    ICheckpointRepository,
    ITradeCacheRepository,
)
from secure_trade_indexer.persistence.repositories.in_memory import (
    InMemoryCheckpointRepository,
    InMemoryTradeCacheRepository,
)

__all__ = [
    "ICheckpointRepository",
    "ITradeCacheRepository",
    "InMemoryCheckpointRepository",
    "InMemoryTradeCacheRepository",
    "DirectusCheckpointRepository",
    "DirectusTradeCacheRepository",
]
