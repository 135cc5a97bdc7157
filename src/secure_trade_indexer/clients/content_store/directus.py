# -*- coding: utf-8 -*-
"""Directus REST client for the collections the indexer reads and writes."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, cast

import structlog
from structlog.contextvars import bound_contextvars

from secure_trade_indexer.exceptions import ApiRequestError, MissingRequiredConfigError

if TYPE_CHECKING:
    from secure_trade_indexer.clients.http import AsyncHttpClient
    from secure_trade_indexer.config import Settings


def _unwrap_data(response: Any, url: str) -> Any:
    """Directus wraps payloads in {"data": ...}."""
    if response is None:
        return None
    if not isinstance(response, dict) or "data" not in response:
        raise ApiRequestError(
            f"Unexpected Directus response type: {type(response).__name__}",
            url=url,
        )
    return cast(dict[str, Any], response)["data"]


class DirectusClient:
    """Thin client over the Directus items API (/items/{collection}).

    Authentication (static bearer token) is carried by the injected HTTP client.
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
            http_client: Async HTTP client configured with the bearer token.
            settings: Application settings (uses settings.content_store.url).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._http = http_client
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def _base_url(self) -> str:
        url = self._settings.content_store.url
        if not url:
            raise MissingRequiredConfigError("CONTENT_STORE__URL")
        return url.rstrip("/")

    def _items_url(self, collection: str, item_id: Any = None) -> str:
        base = f"{self._base_url()}/items/{collection}"
        return base if item_id is None else f"{base}/{item_id}"

    async def read_items(
        self,
        collection: str,
        *,
        filter: Optional[dict[str, Any]] = None,
        fields: Optional[Sequence[str]] = None,
        sort: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Read items matching a Directus filter.

        Args:
            collection: Collection name.
            filter: Directus filter object, e.g. {"nonce": {"_lt": 5}}.
            fields: Columns to return.
            sort: Sort keys; prefix with "-" for descending.
            limit: Maximum rows.

        Returns:
            List of row dicts (empty if none matched).
        """
        params: dict[str, Any] = {}
        if filter:
            params["filter"] = json.dumps(filter, separators=(",", ":"))
        if fields:
            params["fields"] = ",".join(fields)
        if sort:
            params["sort"] = ",".join(sort)
        if limit is not None:
            params["limit"] = limit
        url = self._items_url(collection)
        with bound_contextvars(directus_collection=collection):
            data = _unwrap_data(await self._http.get(url, params=params), url)
            if not isinstance(data, list):
                self._logger.warning(
                    "directus_read_items_non_list",
                    directus_response_type=type(data).__name__,
                )
                return []
            return [cast(dict[str, Any], x) for x in cast(list[Any], data) if isinstance(x, dict)]

    async def create_item(self, collection: str, item: dict[str, Any]) -> dict[str, Any]:
        """Create one item; returns the stored row."""
        url = self._items_url(collection)
        with bound_contextvars(directus_collection=collection):
            data = _unwrap_data(await self._http.post(url, json=item), url)
            return cast(dict[str, Any], data) if isinstance(data, dict) else {}

    async def create_items(
        self,
        collection: str,
        items: Sequence[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Create several items in one request (all-or-nothing on the Directus side).

        Raises:
            ApiRequestError: is_bad_request is True when the batch was rejected.
        """
        url = self._items_url(collection)
        with bound_contextvars(directus_collection=collection, directus_batch_size=len(items)):
            data = _unwrap_data(await self._http.post(url, json=list(items)), url)
            if not isinstance(data, list):
                return []
            return [cast(dict[str, Any], x) for x in cast(list[Any], data) if isinstance(x, dict)]

    async def update_item(
        self,
        collection: str,
        item_id: Any,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        """Patch one item by primary key; returns the updated row."""
        url = self._items_url(collection, item_id)
        with bound_contextvars(directus_collection=collection, directus_item_id=item_id):
            data = _unwrap_data(await self._http.patch(url, json=changes), url)
            return cast(dict[str, Any], data) if isinstance(data, dict) else {}
