# -*- coding: utf-8 -*-
"""Repository interfaces (abstractions). Implementations live in in_memory/ and directus/."""

from secure_trade_indexer.persistence.repositories.interfaces.checkpoint_repository import (
    ICheckpointRepository,
)
from secure_trade_indexer.persistence.repositories.interfaces.trade_cache_repository import (
    ITradeCacheRepository,
)

__all__ = ["ICheckpointRepository", "ITradeCacheRepository"]
