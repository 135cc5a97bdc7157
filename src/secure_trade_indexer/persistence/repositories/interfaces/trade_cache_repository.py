"""Abstract interface for the trade cache collection."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from secure_trade_indexer.models.cache_record import TerminalKind, TradeCacheRecord


class ITradeCacheRepository(ABC):
    """Interface for the trade cache (one row per indexed trade)."""

    @abstractmethod
    async def create_many(self, records: Sequence[TradeCacheRecord]) -> int:
        """Insert records in a single request and return how many were stored.

        Raises:
            ApiRequestError: With is_bad_request True when the store rejected the
                batch as a whole (nothing stored).
        """
        ...

    @abstractmethod
    async def find_latest(
        self,
        contract: str,
        environment: str,
        token_id: str,
        serial: int,
        *,
        nonce_below: int | None = None,
    ) -> TradeCacheRecord | None:
        """Return the row with the highest nonce for (contract, environment, token, serial).

        Args:
            nonce_below: When set, only rows with nonce < nonce_below are considered.
        """
        ...

    @abstractmethod
    async def set_flag(self, record: TradeCacheRecord, kind: TerminalKind) -> None:
        """Set the completed/cancelled flag of a stored row to true."""
        ...

    @abstractmethod
    async def max_nonce(self, contract: str, environment: str) -> int:
        """Return the highest cached nonce for (contract, environment), or 0."""
        ...
