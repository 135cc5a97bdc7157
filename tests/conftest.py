# -*- coding: utf-8 -*-
"""Shared pytest fixtures for unit and integration tests."""

from __future__ import annotations

from typing import Any

import pytest
import structlog
from eth_abi import encode as abi_encode

from secure_trade_indexer.config import Settings
from secure_trade_indexer.persistence.repositories.in_memory import (
    InMemoryCheckpointRepository,
    InMemoryTradeCacheRepository,
)
from secure_trade_indexer.services.event_decoding import (
    TRADE_CANCELLED_SIGNATURE,
    TRADE_COMPLETED_SIGNATURE,
    TRADE_CREATED_SIGNATURE,
    event_topic,
)
from secure_trade_indexer.utils.ledger_ids import ZERO_ADDRESS, solidity_address_from_entity_id

CONTRACT = "0.0.4567"
ENVIRONMENT = "testnet"


def _address_topic(address: str) -> str:
    return "0x" + "0" * 24 + address[2:].lower()


class LogFactory:
    """Builds mirror log records with real topics and ABI-encoded data."""

    def __init__(self, *, seller: str, buyer: str, token: str) -> None:
        self.seller = seller
        self.buyer = buyer
        self.token = token
        self._tx = 0

    def _meta(self, timestamp: Any) -> dict[str, Any]:
        self._tx += 1
        return {
            "timestamp": str(timestamp),
            "transaction_hash": "0x" + f"{self._tx:064x}",
            "index": 0,
        }

    def created(
        self,
        *,
        serial: int,
        nonce: int,
        timestamp: Any,
        tinybar_price: int = 100,
        lazy_price: int = 0,
        expiry_time: int = 0,
        seller: str | None = None,
        buyer: str | None = None,
        token: str | None = None,
    ) -> dict[str, Any]:
        words = [serial, tinybar_price, lazy_price, expiry_time, nonce]
        return {
            "topics": [
                event_topic(TRADE_CREATED_SIGNATURE),
                _address_topic(seller or self.seller),
                _address_topic(buyer or self.buyer),
                _address_topic(token or self.token),
            ],
            "data": "0x" + abi_encode(["uint256"] * 5, words).hex(),
            **self._meta(timestamp),
        }

    def completed(
        self,
        *,
        serial: int,
        nonce: int,
        timestamp: Any,
        buyer: str | None = None,
        token: str | None = None,
    ) -> dict[str, Any]:
        return {
            "topics": [
                event_topic(TRADE_COMPLETED_SIGNATURE),
                _address_topic(self.seller),
                _address_topic(buyer or self.buyer),
                _address_topic(token or self.token),
            ],
            "data": "0x" + abi_encode(["uint256", "uint256"], [serial, nonce]).hex(),
            **self._meta(timestamp),
        }

    def cancelled(
        self,
        *,
        serial: int,
        nonce: int,
        timestamp: Any,
        token: str | None = None,
    ) -> dict[str, Any]:
        return {
            "topics": [
                event_topic(TRADE_CANCELLED_SIGNATURE),
                _address_topic(self.seller),
                _address_topic(token or self.token),
            ],
            "data": "0x" + abi_encode(["uint256", "uint256"], [serial, nonce]).hex(),
            **self._meta(timestamp),
        }

    def empty(self, *, timestamp: Any) -> dict[str, Any]:
        """Synthetic log with no payload (data == "0x")."""
        return {"topics": [], "data": "0x", **self._meta(timestamp)}


@pytest.fixture(autouse=True)
def _reset_structlog() -> None:
    """Keep structlog unconfigured between tests (no file/console handlers)."""
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def contract() -> str:
    return CONTRACT


@pytest.fixture
def environment() -> str:
    return ENVIRONMENT


@pytest.fixture
def seller_address() -> str:
    """Long-zero address of account 0.0.1001 (resolves without a mirror lookup)."""
    return solidity_address_from_entity_id("0.0.1001")


@pytest.fixture
def token_address() -> str:
    """Long-zero address of token 0.0.5005."""
    return solidity_address_from_entity_id("0.0.5005")


@pytest.fixture
def settings_factory() -> Any:
    """Build Settings with test defaults and nested overrides."""

    def _build(**overrides: Any) -> Settings:
        sections: dict[str, dict[str, Any]] = {
            "mirror": {"environment": ENVIRONMENT},
            "content_store": {"url": "https://cms.example.com", "token": "secret-token"},
            "scanner": {
                "pass_retry_backoff_seconds": 0.0,
                "resolver_min_backoff_seconds": 0.0,
                "resolver_max_backoff_seconds": 0.0,
            },
        }
        for section, values in overrides.items():
            sections.setdefault(section, {}).update(values)
        return Settings.from_env(**sections)

    return _build


@pytest.fixture
def settings(settings_factory: Any) -> Settings:
    return settings_factory()


@pytest.fixture
def checkpoint_repo() -> InMemoryCheckpointRepository:
    return InMemoryCheckpointRepository()


@pytest.fixture
def cache_repo() -> InMemoryTradeCacheRepository:
    return InMemoryTradeCacheRepository()


@pytest.fixture
def log_factory(seller_address: str, token_address: str) -> LogFactory:
    """Logs for a public trade (buyer = zero address) of token 0.0.5005."""
    return LogFactory(seller=seller_address, buyer=ZERO_ADDRESS, token=token_address)
