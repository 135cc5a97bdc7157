"""Directus (content store) repository implementations."""

from secure_trade_indexer.persistence.repositories.directus.checkpoint_repository import (
    DirectusCheckpointRepository,
)
from secure_trade_indexer.persistence.repositories.directus.trade_cache_repository import (
    DirectusTradeCacheRepository,
)

__all__ = ["DirectusCheckpointRepository", "DirectusTradeCacheRepository"]
