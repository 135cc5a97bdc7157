# -*- coding: utf-8 -*-
"""Folding decoded events into per-trade state."""

from secure_trade_indexer.services.aggregation.trade_aggregator import (
    PendingTerminal,
    TradeAggregator,
)

__all__ = ["PendingTerminal", "TradeAggregator"]
