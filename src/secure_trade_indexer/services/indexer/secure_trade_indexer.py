# -*- coding: utf-8 -*-
"""Secure-trade indexer: one scan pass from watermark to trade cache, plus pass retries."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from secure_trade_indexer.clients.mirror_node import MIRROR_BASE_URLS
from secure_trade_indexer.exceptions import (
    ApiRequestError,
    EventDecodeError,
    InvalidConfigError,
    MissingRequiredConfigError,
    PassDeadlineExceededError,
)
from secure_trade_indexer.models.cache_record import TerminalKind, TradeCacheRecord
from secure_trade_indexer.models.trade import Trade
from secure_trade_indexer.services.aggregation import PendingTerminal, TradeAggregator
from secure_trade_indexer.services.indexer.scan_guard import ScanGuard
from secure_trade_indexer.utils.ledger_ids import is_contract_identifier
from secure_trade_indexer.utils.timestamps import is_later, later_timestamp, to_utc_string

if TYPE_CHECKING:
    from secure_trade_indexer.clients.mirror_node import MirrorNodeClient
    from secure_trade_indexer.config import Settings
    from secure_trade_indexer.persistence.repositories.interfaces.checkpoint_repository import (
        ICheckpointRepository,
    )
    from secure_trade_indexer.services.address_resolution import AddressResolver
    from secure_trade_indexer.services.cache_writer import TradeCacheWriter
    from secure_trade_indexer.services.event_decoding import EventDecoder


@dataclass(frozen=True)
class PassResult:
    """Summary of one successful scan pass."""

    contract: str
    environment: str
    previous_watermark: str | None
    watermark: str | None
    """Watermark after the pass (unchanged when no later log was observed)."""
    logs_seen: int = 0
    events_decoded: int = 0
    decode_errors: int = 0
    trades_found: int = 0
    trades_written: int = 0
    trades_skipped_by_nonce: int = 0
    rejected: list[TradeCacheRecord] = field(default_factory=list)
    late_terminals_applied: int = 0
    late_terminals_missed: int = 0

    @property
    def watermark_advanced(self) -> bool:
        return self.watermark != self.previous_watermark


def _terminal_kind(trade: Trade) -> TerminalKind | None:
    if trade.completed:
        return TerminalKind.COMPLETED
    if trade.cancelled:
        return TerminalKind.CANCELLED
    return None


class SecureTradeIndexer:
    """Projects secure-trade contract events into the trade cache.

    A pass loads the watermark, streams logs after it, folds decoded events,
    hydrates accounts, drops trades already cached (nonce filter), writes the
    rest in batches, applies late terminal flags and finally advances the
    watermark. Any error before the last step leaves the watermark untouched,
    so the next pass replays the same window.
    """

    def __init__(
        self,
        mirror_client: MirrorNodeClient,
        decoder: EventDecoder,
        address_resolver: AddressResolver,
        checkpoint_repository: ICheckpointRepository,
        cache_writer: TradeCacheWriter,
        settings: Settings,
        *,
        scan_guard: ScanGuard | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the indexer.

        Args:
            mirror_client: Mirror client (log pages).
            decoder: Log -> event decoder.
            address_resolver: Account hydration for seller/buyer.
            checkpoint_repository: Watermark storage.
            cache_writer: Trade cache writer.
            settings: Uses settings.mirror.environment and settings.scanner.
            scan_guard: Shared run-once guard (a private one if None).
            sleep: Awaitable sleep used between pass attempts (injected for tests).
            clock: Monotonic clock for the pass deadline.
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._mirror = mirror_client
        self._decoder = decoder
        self._resolver = address_resolver
        self._checkpoints = checkpoint_repository
        self._writer = cache_writer
        self._settings = settings
        self._guard = scan_guard or ScanGuard()
        self._sleep = sleep
        self._clock = clock
        self._get_logger = get_logger
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def environment(self) -> str | None:
        return self._settings.mirror.environment

    def validate(self, contract: str | None) -> tuple[str, str]:
        """Check the contract id and environment before any network call.

        Returns:
            (contract, environment), stripped.

        Raises:
            MissingRequiredConfigError: If no contract is given.
            InvalidConfigError: If the contract id or environment is not allowed.
        """
        contract = (contract or "").strip()
        if not contract:
            raise MissingRequiredConfigError("SCANNER__CONTRACT_ADDRESS")
        if not is_contract_identifier(contract):
            raise InvalidConfigError(f"Invalid contract id: {contract!r}")
        environment = (self.environment or "").strip()
        if environment not in MIRROR_BASE_URLS:
            raise InvalidConfigError(
                f"Invalid environment: {self.environment!r} (allowed: {', '.join(MIRROR_BASE_URLS)})"
            )
        return contract, environment

    def _deadline(self) -> float | None:
        seconds = self._settings.scanner.pass_deadline_seconds
        return None if seconds is None else self._clock() + seconds

    def _check_deadline(self, deadline: float | None, stage: str) -> None:
        if deadline is not None and self._clock() > deadline:
            self._logger.error("scan_deadline_exceeded", scan_stage=stage)
            raise PassDeadlineExceededError(f"Pass deadline exceeded during {stage}")

    async def run(self, contract: str | None) -> PassResult:
        """Run a pass, retrying failed HTTP passes with exponential backoff.

        Raises:
            ApiRequestError: When every attempt failed.
            IndexerError: Configuration, resolution, deadline and guard errors
                are not retried.
        """
        attempts = self._settings.scanner.max_pass_attempts
        backoff = self._settings.scanner.pass_retry_backoff_seconds
        self.validate(contract)
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self.run_pass(contract)
            except ApiRequestError as e:
                self._logger.warning(
                    "scan_pass_failed",
                    scan_attempt=attempt,
                    scan_max_attempts=attempts,
                    http_status_code=e.status_code,
                    error_message=str(e),
                )
                if attempt >= attempts:
                    raise
                await self._sleep(backoff * (2 ** (attempt - 1)))

    async def run_pass(self, contract: str | None) -> PassResult:
        """Run one scan pass for contract on the configured environment."""
        contract, environment = self.validate(contract)
        async with self._guard.hold(contract, environment):
            with bound_contextvars(scan_contract=contract, scan_environment=environment):
                return await self._run_pass(contract, environment)

    async def _run_pass(self, contract: str, environment: str) -> PassResult:
        deadline = self._deadline()
        watermark = await self._checkpoints.load(contract, environment)
        if watermark is None:
            self._logger.info("scan_started_from_origin")
        else:
            self._logger.info(
                "scan_started",
                scan_watermark=watermark,
                scan_watermark_utc=to_utc_string(watermark),
            )

        aggregator = TradeAggregator(get_logger=self._get_logger)
        max_timestamp: str | None = None
        logs_seen = 0
        decoded = 0
        decode_errors = 0

        async with aclosing(self._mirror.fetch_logs(contract, watermark)) as pages:
            async for page in pages:
                for log in page.logs:
                    logs_seen += 1
                    try:
                        max_timestamp = later_timestamp(max_timestamp, log.get("timestamp"))
                    except ValueError:
                        self._logger.warning("scan_log_bad_timestamp", log_timestamp=log.get("timestamp"))
                    try:
                        event = self._decoder.decode(log)
                    except EventDecodeError as e:
                        decode_errors += 1
                        self._logger.warning(
                            "scan_log_decode_failed",
                            log_timestamp=log.get("timestamp"),
                            log_transaction_hash=log.get("transaction_hash"),
                            error_message=str(e),
                        )
                        continue
                    if event is None:
                        continue
                    decoded += 1
                    aggregator.apply(event)
                self._check_deadline(deadline, "fetch")

        # Written in nonce order so a partial write never hides a lower nonce.
        trades = sorted(aggregator.trades.values(), key=lambda t: t.nonce)
        pending = aggregator.pending_terminals
        self._logger.info(
            "scan_logs_folded",
            scan_logs_seen=logs_seen,
            scan_events_decoded=decoded,
            scan_trades_found=len(trades),
            scan_late_terminals=len(pending),
            scan_max_timestamp=max_timestamp,
        )

        for trade in trades:
            await self._resolver.hydrate(trade)
            self._check_deadline(deadline, "hydrate")

        fresh: list[Trade] = trades
        stale: list[Trade] = []
        if trades:
            max_nonce = await self._writer.max_nonce(contract, environment)
            fresh = [t for t in trades if t.nonce > max_nonce]
            stale = [t for t in trades if t.nonce <= max_nonce]
            self._logger.info(
                "scan_nonce_filter",
                cache_max_nonce=max_nonce,
                scan_trades_fresh=len(fresh),
                scan_trades_skipped=len(stale),
            )

        # A replayed trade that reached a terminal state in this window still
        # flags its existing row (nonce bound keeps the exact create row).
        for trade in stale:
            kind = _terminal_kind(trade)
            if kind is not None:
                pending.append(
                    PendingTerminal(
                        fingerprint=trade.fingerprint,
                        token_address=trade.token_address,
                        token_id=trade.token_id,
                        serial=trade.serial,
                        nonce=trade.nonce + 1,
                        kind=kind,
                    )
                )

        self._check_deadline(deadline, "write")
        records = [
            TradeCacheRecord.from_trade(t, contract=contract, environment=environment)
            for t in fresh
        ]
        upsert = await self._writer.write_all(records)
        if self._settings.scanner.log_trades:
            for trade in fresh:
                self._logger.debug("scan_trade", trade_summary=trade.summary())

        applied = 0
        missed = 0
        for op in pending:
            ok = await self._writer.mark_terminal(
                contract, environment, op.token_id, op.serial, op.nonce, op.kind
            )
            if ok:
                applied += 1
            else:
                missed += 1

        self._check_deadline(deadline, "checkpoint")
        new_watermark = watermark
        if max_timestamp is not None and is_later(max_timestamp, watermark):
            await self._checkpoints.save(contract, environment, max_timestamp)
            new_watermark = max_timestamp

        result = PassResult(
            contract=contract,
            environment=environment,
            previous_watermark=watermark,
            watermark=new_watermark,
            logs_seen=logs_seen,
            events_decoded=decoded,
            decode_errors=decode_errors,
            trades_found=len(trades),
            trades_written=upsert.written,
            trades_skipped_by_nonce=len(stale),
            rejected=upsert.rejected,
            late_terminals_applied=applied,
            late_terminals_missed=missed,
        )
        self._logger.info(
            "scan_completed",
            scan_watermark=new_watermark,
            scan_watermark_utc=to_utc_string(new_watermark),
            scan_trades_written=result.trades_written,
            scan_trades_rejected=len(result.rejected),
            scan_late_terminals_applied=applied,
            scan_late_terminals_missed=missed,
        )
        return result
