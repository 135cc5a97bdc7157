"""Secure-trade indexer: mirror log scanning into a content-store trade cache."""

from secure_trade_indexer.clients import AsyncHttpClient, DirectusClient, MirrorNodeClient
from secure_trade_indexer.config import get_settings
from secure_trade_indexer.DI import Container
from secure_trade_indexer.services import PassResult, SecureTradeIndexer

__version__ = "0.1.0"
__all__ = [
    "AsyncHttpClient",
    "DirectusClient",
    "MirrorNodeClient",
    "Container",
    "PassResult",
    "SecureTradeIndexer",
    "get_settings",
]
