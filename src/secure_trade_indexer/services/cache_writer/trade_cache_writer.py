# -*- coding: utf-8 -*-
"""Trade cache writer: batched inserts and targeted terminal-flag updates."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from secure_trade_indexer.exceptions import ApiRequestError
from secure_trade_indexer.models.cache_record import TerminalKind, TradeCacheRecord

if TYPE_CHECKING:
    from secure_trade_indexer.config import Settings
    from secure_trade_indexer.persistence.repositories.interfaces.trade_cache_repository import (
        ITradeCacheRepository,
    )


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of writing one or more batches."""

    written: int
    rejected: list[TradeCacheRecord] = field(default_factory=list)
    """Records dropped as suspected offenders of a rejected batch."""


class TradeCacheWriter:
    """Writes TradeCacheRecords to the cache repository."""

    def __init__(
        self,
        repository: ITradeCacheRepository,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the writer.

        Args:
            repository: Trade cache repository (Directus or in-memory).
            settings: Uses settings.scanner.batch_size.
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._repo = repository
        self._batch_size = settings.scanner.batch_size
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def max_nonce(self, contract: str, environment: str) -> int:
        """Highest nonce already cached for (contract, environment), 0 if none."""
        return await self._repo.max_nonce(contract, environment)

    async def upsert_batch(self, records: Sequence[TradeCacheRecord]) -> UpsertResult:
        """Write up to batch_size records in one create request.

        On a Bad Request rejection the last record is dropped as the suspected
        offender and the remainder retried, until success or nothing is left.
        Other errors propagate.

        Raises:
            ValueError: If more than batch_size records are given.
            ApiRequestError: For failures other than a 400 rejection.
        """
        if len(records) > self._batch_size:
            raise ValueError(f"batch of {len(records)} exceeds batch_size {self._batch_size}")
        remaining = list(records)
        rejected: list[TradeCacheRecord] = []

        while remaining:
            with bound_contextvars(cache_batch_size=len(remaining)):
                try:
                    written = await self._repo.create_many(remaining)
                except ApiRequestError as e:
                    if not e.is_bad_request:
                        raise
                    suspect = remaining.pop()
                    rejected.append(suspect)
                    self._logger.error(
                        "cache_batch_rejected",
                        http_status_code=e.status_code,
                        suspect_fingerprint=suspect.fingerprint,
                        suspect_token=suspect.token_id,
                        suspect_serial=suspect.serial,
                        suspect_nonce=suspect.nonce,
                        retry_batch_size=len(remaining),
                    )
                    continue
                self._logger.info("cache_batch_uploaded", cache_written=written)
                return UpsertResult(written=written, rejected=rejected)

        return UpsertResult(written=0, rejected=rejected)

    async def write_all(self, records: Sequence[TradeCacheRecord]) -> UpsertResult:
        """Split records into batch_size chunks and upsert each."""
        written = 0
        rejected: list[TradeCacheRecord] = []
        for start in range(0, len(records), self._batch_size):
            result = await self.upsert_batch(records[start : start + self._batch_size])
            written += result.written
            rejected.extend(result.rejected)
        return UpsertResult(written=written, rejected=rejected)

    async def mark_terminal(
        self,
        contract: str,
        environment: str,
        token_id: str,
        serial: int,
        nonce: int | None,
        kind: TerminalKind,
    ) -> bool:
        """Set the completed/cancelled flag on the cached row of an earlier trade.

        The row is the latest one for (contract, environment, token, serial)
        with a nonce below the terminal event's nonce. A missing row is a valid
        state (pruned, outside the indexed history) and is logged and skipped.

        Returns:
            True if the row now carries the flag, False if skipped.
        """
        with bound_contextvars(
            cache_token=token_id,
            cache_serial=serial,
            terminal_nonce=nonce,
            terminal_kind=kind.value,
        ):
            record = await self._repo.find_latest(
                contract, environment, token_id, serial, nonce_below=nonce
            )
            if record is None:
                self._logger.warning("cache_terminal_target_missing")
                return False
            if record.flag(kind):
                self._logger.debug("cache_terminal_already_set", cache_nonce=record.nonce)
                return True
            if record.flag(kind.opposite):
                self._logger.warning(
                    "cache_terminal_conflict",
                    cache_nonce=record.nonce,
                    cache_existing_kind=kind.opposite.value,
                )
                return False
            await self._repo.set_flag(record, kind)
            self._logger.info("cache_terminal_marked", cache_nonce=record.nonce)
            return True
