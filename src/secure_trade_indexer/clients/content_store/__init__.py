"""Content store (Directus REST) client."""

from secure_trade_indexer.clients.content_store.directus import DirectusClient

__all__ = ["DirectusClient"]
