# -*- coding: utf-8 -*-
"""Hedera mirror node client (contract logs and account lookups)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, cast

import structlog
from structlog.contextvars import bound_contextvars

from secure_trade_indexer.clients.mirror_node.schema import ContractLogSchema
from secure_trade_indexer.exceptions import ApiRequestError, InvalidConfigError
from secure_trade_indexer.utils.validation import mask_address

if TYPE_CHECKING:
    from secure_trade_indexer.clients.http import AsyncHttpClient
    from secure_trade_indexer.config import Settings

MIRROR_BASE_URLS: dict[str, str] = {
    "mainnet": "https://mainnet-public.mirrornode.hedera.com",
    "testnet": "https://testnet.mirrornode.hedera.com",
    "previewnet": "https://previewnet.mirrornode.hedera.com",
    "local": "http://localhost:5551",
}

LOGS_PAGE_SIZE = 100


def mirror_base_url(environment: str | None) -> str:
    """Return the mirror base URL for an environment.

    Raises:
        InvalidConfigError: If environment is not one of MIRROR_BASE_URLS.
    """
    if environment not in MIRROR_BASE_URLS:
        raise InvalidConfigError(
            f"Unknown environment: {environment!r} (allowed: {', '.join(MIRROR_BASE_URLS)})"
        )
    return MIRROR_BASE_URLS[environment]


@dataclass(frozen=True, slots=True)
class LogPage:
    """One page of contract logs and the cursor to the next page (None when last)."""

    logs: list[ContractLogSchema]
    next_cursor: str | None


class MirrorNodeClient:
    """Read-only client for the mirror REST API.

    No retries are performed here beyond what the injected HTTP client does;
    the indexer decides pass-level retry behaviour.
    """

    def __init__(
        self,
        http_client: AsyncHttpClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            http_client: Async HTTP client (e.g. AsyncHttpClient).
            settings: Application settings (uses settings.mirror).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._http = http_client
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def environment(self) -> str | None:
        return self._settings.mirror.environment

    @property
    def base_url(self) -> str:
        """Base URL for the configured environment (or the configured override)."""
        default = mirror_base_url(self.environment)
        override = self._settings.mirror.base_url
        return (override or default).rstrip("/")

    def _logs_url(self, contract: str) -> str:
        return f"{self.base_url}/api/v1/contracts/{contract}/results/logs"

    async def fetch_logs(
        self,
        contract: str,
        since_timestamp: str | None = None,
    ) -> AsyncIterator[LogPage]:
        """Yield pages of contract logs in ascending timestamp order.

        Args:
            contract: Contract id (0.0.N) or EVM address.
            since_timestamp: Only logs with timestamp > since are returned;
                None starts at the beginning of the contract's history.

        Yields:
            LogPage per mirror response; the last page has next_cursor None.

        Raises:
            ApiRequestError: On HTTP failure; the sequence can be restarted
                from the same since_timestamp.
        """
        query: dict[str, Any] = {"order": "asc", "limit": LOGS_PAGE_SIZE}
        if since_timestamp is not None:
            query["timestamp"] = f"gt:{since_timestamp}"
        params: dict[str, Any] | None = query
        url = self._logs_url(contract)
        page_number = 0

        # Context is passed per call: contextvars must not be held across yields.
        while True:
            page_number += 1
            self._logger.debug(
                "mirror_fetch_logs_page",
                mirror_contract=contract,
                mirror_since=since_timestamp,
                mirror_url=url,
                mirror_page=page_number,
            )
            data = await self._http.get(url, params=params)
            if not isinstance(data, dict):
                raise ApiRequestError(
                    f"Unexpected logs response type: {type(data).__name__}",
                    url=url,
                )
            body = cast(dict[str, Any], data)
            logs = [
                cast(ContractLogSchema, x)
                for x in cast(list[Any], body.get("logs") or [])
                if isinstance(x, dict)
            ]
            links = body.get("links") or {}
            next_cursor = links.get("next") if isinstance(links, dict) else None
            next_cursor = next_cursor or None
            yield LogPage(logs=logs, next_cursor=next_cursor)
            if next_cursor is None:
                return
            # links.next is normally a path carrying its own query string
            url = next_cursor if next_cursor.startswith("http") else f"{self.base_url}{next_cursor}"
            params = None

    async def get_account(self, address: str) -> str:
        """Return the account id (shard.realm.num) for an EVM address.

        Raises:
            ApiRequestError: On HTTP failure or a response without `account`.
        """
        url = f"{self.base_url}/api/v1/accounts/{address}"
        with bound_contextvars(mirror_address_masked=mask_address(address)):
            data = await self._http.get(url)
            account = data.get("account") if isinstance(data, dict) else None
            if not account:
                self._logger.warning("mirror_account_missing_in_response")
                raise ApiRequestError(f"No account in mirror response for {address}", url=url)
            return str(account)
