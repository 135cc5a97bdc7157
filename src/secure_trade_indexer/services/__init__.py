# -*- coding: utf-8 -*-
"""Application services."""

from secure_trade_indexer.services.address_resolution import AddressResolver
from secure_trade_indexer.services.aggregation import PendingTerminal, TradeAggregator
from secure_trade_indexer.services.cache_writer import TradeCacheWriter, UpsertResult
from secure_trade_indexer.services.event_decoding import EventDecoder
from secure_trade_indexer.services.indexer import PassResult, ScanGuard, SecureTradeIndexer

__all__ = [
    "AddressResolver",
    "EventDecoder",
    "PassResult",
    "PendingTerminal",
    "ScanGuard",
    "SecureTradeIndexer",
    "TradeAggregator",
    "TradeCacheWriter",
    "UpsertResult",
]
