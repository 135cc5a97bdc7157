"""In-memory repository implementations."""

from secure_trade_indexer.persistence.repositories.in_memory.checkpoint_repository import (
    InMemoryCheckpointRepository,
)
from secure_trade_indexer.persistence.repositories.in_memory.trade_cache_repository import (
    InMemoryTradeCacheRepository,
    default_record_validator,
)

__all__ = [
    "InMemoryCheckpointRepository",
    "InMemoryTradeCacheRepository",
    "default_record_validator",
]
