# -*- coding: utf-8 -*-
"""Directus-backed trade cache repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from secure_trade_indexer.models.cache_record import TerminalKind, TradeCacheRecord
from secure_trade_indexer.persistence.repositories.interfaces.trade_cache_repository import (
    ITradeCacheRepository,
)

if TYPE_CHECKING:
    from secure_trade_indexer.clients.content_store import DirectusClient
    from secure_trade_indexer.config import Settings


class DirectusTradeCacheRepository(ITradeCacheRepository):
    """Trade cache rows in settings.content_store.cache_collection."""

    def __init__(self, client: DirectusClient, settings: Settings) -> None:
        self._client = client
        self._collection = settings.content_store.cache_collection

    async def create_many(self, records: Sequence[TradeCacheRecord]) -> int:
        if not records:
            return 0
        created = await self._client.create_items(
            self._collection, [r.to_row() for r in records]
        )
        return len(created)

    async def find_latest(
        self,
        contract: str,
        environment: str,
        token_id: str,
        serial: int,
        *,
        nonce_below: int | None = None,
    ) -> TradeCacheRecord | None:
        flt: dict[str, Any] = {
            "tradeContract": {"_eq": contract},
            "environment": {"_eq": environment},
            "token": {"_eq": token_id},
            "serial": {"_eq": serial},
        }
        if nonce_below is not None:
            flt["nonce"] = {"_lt": nonce_below}
        rows = await self._client.read_items(
            self._collection,
            filter=flt,
            sort=["-nonce"],
            limit=1,
        )
        return TradeCacheRecord.from_row(rows[0]) if rows else None

    async def set_flag(self, record: TradeCacheRecord, kind: TerminalKind) -> None:
        if record.id is None:
            raise ValueError("record has no primary key")
        await self._client.update_item(self._collection, record.id, {kind.column: True})

    async def max_nonce(self, contract: str, environment: str) -> int:
        rows = await self._client.read_items(
            self._collection,
            filter={
                "tradeContract": {"_eq": contract},
                "environment": {"_eq": environment},
            },
            fields=["nonce"],
            sort=["-nonce"],
            limit=1,
        )
        if not rows or rows[0].get("nonce") is None:
            return 0
        return int(rows[0]["nonce"])
