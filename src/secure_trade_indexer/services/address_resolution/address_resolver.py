# -*- coding: utf-8 -*-
"""Resolves 20-byte ledger addresses to account ids (shard.realm.num)."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import structlog
from cachetools import TTLCache
from structlog.contextvars import bound_contextvars

from secure_trade_indexer.exceptions import AddressResolutionError, ApiRequestError
from secure_trade_indexer.utils.ledger_ids import (
    ZERO_ACCOUNT_ID,
    entity_id_from_solidity_address,
    is_long_zero_address,
    is_zero_address,
    normalize_address,
)
from secure_trade_indexer.utils.validation import mask_address

if TYPE_CHECKING:
    from secure_trade_indexer.clients.mirror_node import MirrorNodeClient
    from secure_trade_indexer.config import Settings
    from secure_trade_indexer.models.trade import Trade


class AddressResolver:
    """EVM address -> account id with a bounded TTL cache and randomized retry.

    The zero address maps to 0.0.0 and long-zero addresses are decoded locally;
    anything else (EVM aliases) is looked up on the mirror. One instance is
    shared per process; it is the only writer of its cache.
    """

    def __init__(
        self,
        mirror_client: MirrorNodeClient,
        settings: Settings,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            mirror_client: Mirror client used for account lookups.
            settings: Uses settings.scanner resolver/cache limits.
            sleep: Awaitable sleep (injected for tests).
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        sc = settings.scanner
        self._mirror = mirror_client
        self._max_attempts = sc.resolver_max_attempts
        self._min_backoff = sc.resolver_min_backoff_seconds
        self._max_backoff = max(sc.resolver_max_backoff_seconds, sc.resolver_min_backoff_seconds)
        self._cache: TTLCache[str, str] = TTLCache(
            maxsize=sc.address_cache_maxsize,
            ttl=sc.address_cache_ttl_seconds,
        )
        self._sleep = sleep
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def _backoff_delay(self) -> float:
        return random.uniform(self._min_backoff, self._max_backoff)

    def cached(self, address: str) -> str | None:
        """Return the cached account id for address, if any."""
        return self._cache.get(address.lower())

    async def resolve(self, address: str) -> str:
        """Return the account id for a ledger address.

        Raises:
            AddressResolutionError: If the address is invalid or the mirror lookup
                kept failing for resolver_max_attempts attempts.
        """
        try:
            key = normalize_address(address)
        except ValueError as e:
            raise AddressResolutionError(
                f"Invalid address: {address!r}", address=str(address), attempts=0, cause=e
            ) from e

        if is_zero_address(key):
            return ZERO_ACCOUNT_ID
        hit = self._cache.get(key)
        if hit is not None:
            return hit
        if is_long_zero_address(key):
            account = entity_id_from_solidity_address(key)
            self._cache[key] = account
            return account

        last_error: Exception | None = None
        with bound_contextvars(resolver_address_masked=mask_address(key)):
            for attempt in range(1, self._max_attempts + 1):
                try:
                    account = await self._mirror.get_account(key)
                except ApiRequestError as e:
                    last_error = e
                    self._logger.warning(
                        "address_resolve_retry",
                        resolver_attempt=attempt,
                        resolver_max_attempts=self._max_attempts,
                        error_type=type(e).__name__,
                        error_message=str(e),
                    )
                    if attempt < self._max_attempts:
                        await self._sleep(self._backoff_delay())
                    continue
                self._cache[key] = account
                return account

            self._logger.error(
                "address_resolve_failed",
                resolver_attempts=self._max_attempts,
            )
        raise AddressResolutionError(
            f"Unable to resolve account for {key} after {self._max_attempts} attempts",
            address=key,
            attempts=self._max_attempts,
            cause=last_error,
        ) from last_error

    async def hydrate(self, trade: Trade) -> None:
        """Rewrite trade.seller and trade.buyer to account ids."""
        seller = await self.resolve(trade.seller)
        buyer = await self.resolve(trade.buyer)
        trade.with_accounts(seller, buyer)
