# -*- coding: utf-8 -*-
"""Trade cache writes (batch upsert with shrink-and-retry, late terminal flags)."""

from secure_trade_indexer.services.cache_writer.trade_cache_writer import (
    TradeCacheWriter,
    UpsertResult,
)

__all__ = ["TradeCacheWriter", "UpsertResult"]
