# -*- coding: utf-8 -*-
"""Dependency injection container (dependency-injector)."""

from __future__ import annotations

from dependency_injector import containers, providers

from secure_trade_indexer.config import Settings, get_settings
from secure_trade_indexer.clients.content_store import DirectusClient
from secure_trade_indexer.clients.http import AsyncHttpClient
from secure_trade_indexer.clients.mirror_node import MirrorNodeClient
from secure_trade_indexer.persistence.repositories.directus import (
    DirectusCheckpointRepository,
    DirectusTradeCacheRepository,
)
from secure_trade_indexer.services.address_resolution import AddressResolver
from secure_trade_indexer.services.cache_writer import TradeCacheWriter
from secure_trade_indexer.services.event_decoding import EventDecoder
from secure_trade_indexer.services.indexer import ScanGuard, SecureTradeIndexer


def _content_store_headers(settings: Settings) -> dict[str, str]:
    """Bearer auth for the content store (omitted when no token is configured)."""
    token = settings.content_store.token
    return {"Authorization": f"Bearer {token}"} if token else {}


def _build_mirror_http_client(settings: Settings) -> AsyncHttpClient:
    return AsyncHttpClient(
        timeout_seconds=settings.mirror.timeout_seconds,
        max_retries=settings.mirror.max_retries,
        logger_name="MirrorHttpClient",
    )


def _build_content_store_http_client(settings: Settings) -> AsyncHttpClient:
    return AsyncHttpClient(
        timeout_seconds=settings.content_store.timeout_seconds,
        max_retries=settings.content_store.max_retries,
        headers=_content_store_headers(settings),
        logger_name="ContentStoreHttpClient",
    )


class Container(containers.DeclarativeContainer):
    """Application container. Wires settings, HTTP clients, repositories and the indexer."""

    config = providers.Callable(get_settings)

    mirror_http_client = providers.Singleton(_build_mirror_http_client, config)

    content_store_http_client = providers.Singleton(_build_content_store_http_client, config)

    mirror_client = providers.Singleton(
        MirrorNodeClient,
        http_client=mirror_http_client,
        settings=config,
    )

    directus_client = providers.Singleton(
        DirectusClient,
        http_client=content_store_http_client,
        settings=config,
    )

    checkpoint_repository = providers.Singleton(
        DirectusCheckpointRepository,
        client=directus_client,
        settings=config,
    )

    trade_cache_repository = providers.Singleton(
        DirectusTradeCacheRepository,
        client=directus_client,
        settings=config,
    )

    event_decoder = providers.Singleton(EventDecoder)

    address_resolver = providers.Singleton(
        AddressResolver,
        mirror_client=mirror_client,
        settings=config,
    )

    cache_writer = providers.Singleton(
        TradeCacheWriter,
        repository=trade_cache_repository,
        settings=config,
    )

    scan_guard = providers.Singleton(ScanGuard)

    indexer = providers.Singleton(
        SecureTradeIndexer,
        mirror_client=mirror_client,
        decoder=event_decoder,
        address_resolver=address_resolver,
        checkpoint_repository=checkpoint_repository,
        cache_writer=cache_writer,
        settings=config,
        scan_guard=scan_guard,
    )
