# -*- coding: utf-8 -*-
"""In-memory watermark repository (keyed by (contract, environment))."""

from __future__ import annotations

from secure_trade_indexer.models.checkpoint import Checkpoint
from secure_trade_indexer.persistence.repositories.interfaces.checkpoint_repository import (
    ICheckpointRepository,
)


class InMemoryCheckpointRepository(ICheckpointRepository):
    """In-memory implementation of ICheckpointRepository."""

    def __init__(self) -> None:
        """Initialize an empty in-memory store."""
        self._store: dict[tuple[str, str], Checkpoint] = {}
        self._next_id = 1

    async def load(self, contract: str, environment: str) -> str | None:
        checkpoint = self._store.get((contract, environment))
        if checkpoint is None or checkpoint.last_timestamp == "0":
            return None
        return checkpoint.last_timestamp

    async def save(self, contract: str, environment: str, timestamp: str) -> None:
        key = (contract, environment)
        existing = self._store.get(key)
        if existing is None:
            self._store[key] = Checkpoint(contract, environment, timestamp, id=self._next_id)
            self._next_id += 1
        else:
            self._store[key] = Checkpoint(contract, environment, timestamp, id=existing.id)

    def get(self, contract: str, environment: str) -> Checkpoint | None:
        """Return the raw stored checkpoint (for inspection)."""
        return self._store.get((contract, environment))
