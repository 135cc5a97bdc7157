"""Trade aggregator: folds one pass's event stream into fingerprint -> Trade.

Terminal events whose TradeCreated was not seen in this pass (the trade was
created before the scan window) cannot touch the in-memory map; they are
queued as PendingTerminal updates for rows already in the cache and never
appear in the flushed batch. The aggregator does no I/O.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

from secure_trade_indexer.models.cache_record import TerminalKind
from secure_trade_indexer.models.trade import TerminalTransition, Trade
from secure_trade_indexer.models.trade_events import (
    TradeCancelled,
    TradeCompleted,
    TradeCreated,
    TradeEvent,
)
from secure_trade_indexer.utils.ledger_ids import entity_id_from_solidity_address


@dataclass(frozen=True, slots=True)
class PendingTerminal:
    """Late completion/cancellation to apply to a persisted cache row."""

    fingerprint: str
    token_address: str
    token_id: str
    serial: int
    nonce: int
    """Nonce of the terminal event (later than the create's nonce)."""
    kind: TerminalKind


class TradeAggregator:
    """Stateful fold over decoded trade events for a single pass."""

    def __init__(
        self,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._trades: dict[str, Trade] = {}
        self._pending: list[PendingTerminal] = []
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def trades(self) -> dict[str, Trade]:
        """Live trades keyed by fingerprint, in first-seen order."""
        return self._trades

    @property
    def pending_terminals(self) -> list[PendingTerminal]:
        """Late terminal updates in event order."""
        return list(self._pending)

    def apply(self, event: TradeEvent) -> None:
        """Fold one event into the state."""
        if isinstance(event, TradeCreated):
            self._on_created(event)
        elif isinstance(event, TradeCompleted):
            self._on_terminal(event, TerminalKind.COMPLETED)
        elif isinstance(event, TradeCancelled):
            self._on_terminal(event, TerminalKind.CANCELLED)
        else:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

    def _on_created(self, event: TradeCreated) -> None:
        previous = self._trades.get(event.fingerprint)
        if previous is not None:
            self._logger.warning(
                "aggregator_trade_overwritten",
                trade_fingerprint=event.fingerprint,
                previous_nonce=previous.nonce,
                trade_nonce=event.nonce,
            )
        self._trades[event.fingerprint] = Trade.from_created(event)

    def _on_terminal(self, event: TradeCompleted | TradeCancelled, kind: TerminalKind) -> None:
        trade = self._trades.get(event.fingerprint)
        if trade is None:
            self._pending.append(
                PendingTerminal(
                    fingerprint=event.fingerprint,
                    token_address=event.token,
                    token_id=entity_id_from_solidity_address(event.token),
                    serial=event.serial,
                    nonce=event.nonce,
                    kind=kind,
                )
            )
            self._logger.debug(
                "aggregator_late_terminal_queued",
                trade_fingerprint=event.fingerprint,
                trade_serial=event.serial,
                trade_nonce=event.nonce,
                terminal_kind=kind.value,
            )
            return

        outcome = trade.complete() if kind is TerminalKind.COMPLETED else trade.cancel()
        if outcome is TerminalTransition.DUPLICATE:
            self._logger.info(
                "aggregator_terminal_duplicate",
                trade_fingerprint=event.fingerprint,
                terminal_kind=kind.value,
            )
        elif outcome is TerminalTransition.CONFLICT:
            self._logger.warning(
                "aggregator_terminal_conflict",
                trade_fingerprint=event.fingerprint,
                terminal_kind=kind.value,
                trade_state=trade.state.value,
                trade_nonce=trade.nonce,
                event_nonce=event.nonce,
            )
