# -*- coding: utf-8 -*-
"""In-memory trade cache repository.

Mirrors the content store's batch semantics: a batch containing an invalid
record is rejected as a whole with a 400 ApiRequestError.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from typing import Sequence

from secure_trade_indexer.exceptions import ApiRequestError
from secure_trade_indexer.models.cache_record import TerminalKind, TradeCacheRecord
from secure_trade_indexer.persistence.repositories.interfaces.trade_cache_repository import (
    ITradeCacheRepository,
)


def default_record_validator(record: TradeCacheRecord) -> bool:
    """Return True if the record satisfies the collection's column constraints."""
    numbers = (
        record.serial,
        record.tinybar_price,
        record.lazy_price,
        record.expiry_time,
        record.nonce,
    )
    if any(n < 0 for n in numbers):
        return False
    if record.completed and record.cancelled:
        return False
    return all((record.contract, record.environment, record.token_id, record.seller, record.buyer))


class InMemoryTradeCacheRepository(ITradeCacheRepository):
    """In-memory implementation of ITradeCacheRepository."""

    def __init__(
        self,
        *,
        validator: Callable[[TradeCacheRecord], bool] = default_record_validator,
    ) -> None:
        """Initialize an empty store.

        Args:
            validator: Per-record check; one failing record rejects the whole batch.
        """
        self._rows: dict[int, TradeCacheRecord] = {}
        self._next_id = 1
        self._validator = validator
        self.create_calls = 0

    async def create_many(self, records: Sequence[TradeCacheRecord]) -> int:
        self.create_calls += 1
        if not all(self._validator(r) for r in records):
            raise ApiRequestError("Bad Request", url="memory://items", status_code=400)
        for r in records:
            self._rows[self._next_id] = replace(r, id=self._next_id)
            self._next_id += 1
        return len(records)

    async def find_latest(
        self,
        contract: str,
        environment: str,
        token_id: str,
        serial: int,
        *,
        nonce_below: int | None = None,
    ) -> TradeCacheRecord | None:
        matches = [
            r
            for r in self._rows.values()
            if r.contract == contract
            and r.environment == environment
            and r.token_id == token_id
            and r.serial == serial
            and (nonce_below is None or r.nonce < nonce_below)
        ]
        if not matches:
            return None
        return max(matches, key=lambda r: r.nonce)

    async def set_flag(self, record: TradeCacheRecord, kind: TerminalKind) -> None:
        if record.id not in self._rows:
            raise KeyError(record.id)
        stored = self._rows[record.id]
        if kind is TerminalKind.COMPLETED:
            self._rows[record.id] = replace(stored, completed=True)
        else:
            self._rows[record.id] = replace(stored, cancelled=True)

    async def max_nonce(self, contract: str, environment: str) -> int:
        nonces = [
            r.nonce
            for r in self._rows.values()
            if r.contract == contract and r.environment == environment
        ]
        return max(nonces, default=0)

    def all(self) -> list[TradeCacheRecord]:
        """Return all stored rows in insertion order."""
        return list(self._rows.values())
