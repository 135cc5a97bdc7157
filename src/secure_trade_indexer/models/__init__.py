# -*- coding: utf-8 -*-
"""Domain models."""

from secure_trade_indexer.models.cache_record import TerminalKind, TradeCacheRecord
from secure_trade_indexer.models.checkpoint import Checkpoint
from secure_trade_indexer.models.trade import TerminalTransition, Trade, TradeState
from secure_trade_indexer.models.trade_events import (
    TradeCancelled,
    TradeCompleted,
    TradeCreated,
    TradeEvent,
)

__all__ = [
    "Checkpoint",
    "TerminalKind",
    "TerminalTransition",
    "Trade",
    "TradeCacheRecord",
    "TradeCancelled",
    "TradeCompleted",
    "TradeCreated",
    "TradeEvent",
    "TradeState",
]
