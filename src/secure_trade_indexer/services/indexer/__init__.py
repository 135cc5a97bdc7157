# -*- coding: utf-8 -*-
"""Scan pass orchestration."""

from secure_trade_indexer.services.indexer.scan_guard import ScanGuard
from secure_trade_indexer.services.indexer.secure_trade_indexer import (
    PassResult,
    SecureTradeIndexer,
)

__all__ = ["PassResult", "ScanGuard", "SecureTradeIndexer"]
