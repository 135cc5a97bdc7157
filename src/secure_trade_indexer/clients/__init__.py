"""HTTP and API clients."""

from secure_trade_indexer.clients.content_store import DirectusClient
from secure_trade_indexer.clients.http import AsyncHttpClient
from secure_trade_indexer.clients.mirror_node import LogPage, MirrorNodeClient

__all__ = [
    "AsyncHttpClient",
    "DirectusClient",
    "LogPage",
    "MirrorNodeClient",
]
