# -*- coding: utf-8 -*-
"""Directus-backed watermark repository (events collection)."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from secure_trade_indexer.models.checkpoint import Checkpoint
from secure_trade_indexer.persistence.repositories.interfaces.checkpoint_repository import (
    ICheckpointRepository,
)

if TYPE_CHECKING:
    from secure_trade_indexer.clients.content_store import DirectusClient
    from secure_trade_indexer.config import Settings


class DirectusCheckpointRepository(ICheckpointRepository):
    """Stores one {tradeContract, lastTimestamp, environment} row per pair."""

    def __init__(
        self,
        client: DirectusClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._client = client
        self._collection = settings.content_store.events_collection
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def _filter(self, contract: str, environment: str) -> dict[str, Any]:
        return {
            "tradeContract": {"_eq": contract},
            "environment": {"_eq": environment},
        }

    async def load(self, contract: str, environment: str) -> str | None:
        rows = await self._client.read_items(
            self._collection,
            filter=self._filter(contract, environment),
            fields=["id", "lastTimestamp"],
            limit=1,
        )
        if not rows:
            return None
        value = rows[0].get("lastTimestamp")
        if value is None or str(value) == "0":
            return None
        return str(value)

    async def save(self, contract: str, environment: str, timestamp: str) -> None:
        rows = await self._client.read_items(
            self._collection,
            filter=self._filter(contract, environment),
            fields=["id"],
            limit=1,
        )
        if not rows:
            checkpoint = Checkpoint(contract=contract, environment=environment, last_timestamp=timestamp)
            await self._client.create_item(self._collection, checkpoint.to_row())
            self._logger.debug("checkpoint_created", checkpoint_timestamp=timestamp)
            return
        await self._client.update_item(
            self._collection, rows[0]["id"], {"lastTimestamp": timestamp}
        )
        self._logger.debug("checkpoint_updated", checkpoint_timestamp=timestamp)
