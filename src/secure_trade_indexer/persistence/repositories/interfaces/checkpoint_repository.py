"""Abstract interface for scan watermark storage (Directus, in-memory, etc.)."""

from __future__ import annotations

from abc import ABC, abstractmethod


class ICheckpointRepository(ABC):
    """Interface for persisting the last processed timestamp per (contract, environment)."""

    @abstractmethod
    async def load(self, contract: str, environment: str) -> str | None:
        """Return the stored watermark, or None if absent or equal to "0"."""
        ...

    @abstractmethod
    async def save(self, contract: str, environment: str, timestamp: str) -> None:
        """Upsert the watermark: insert a row if none exists, else update lastTimestamp."""
        ...
