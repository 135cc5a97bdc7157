# -*- coding: utf-8 -*-
"""Async HTTP client with retries and rate-limit handling."""

from __future__ import annotations

import asyncio
import random
import uuid
import aiohttp
import structlog
from typing import Any, Callable, Dict, Mapping, Optional
from structlog.contextvars import bound_contextvars

from secure_trade_indexer.exceptions import ApiRequestError


def _is_retryable_status(status: Optional[int]) -> bool:
    """Client errors other than 429 are final; everything else may be transient."""
    if status is None:
        return True
    return status == 429 or status >= 500


class AsyncHttpClient:
    """Async JSON HTTP client with bounded retries and 429 handling.

    Optionally receives an aiohttp.ClientSession. If no session is provided,
    one is created and must be closed via aclose() or used as an async
    context manager. 4xx responses other than 429 are raised immediately so
    callers can react to them (e.g. a content store rejecting a batch).
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 15.0,
        max_retries: int = 3,
        headers: Optional[Mapping[str, str]] = None,
        session: Optional[aiohttp.ClientSession] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            timeout_seconds: Total timeout per request.
            max_retries: Attempts per request (1 disables retries).
            headers: Default headers sent with every request.
            session: Optional shared aiohttp session. If None, the client
                creates and owns a session (call aclose() when done).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._timeout_seconds = timeout_seconds
        self._max_retries = max(1, max_retries)
        self._headers = dict(headers or {})
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout, headers=self._headers)
        return self._session

    async def aclose(self) -> None:
        """Close the session if this client owns it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with jitter, capped at 4 seconds."""
        base = min(4.0, 0.25 * (2**attempt))
        return base + random.uniform(0.0, 0.15)

    async def get(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Perform a GET request and return JSON."""
        return await self.request("GET", url, params=params)

    async def post(self, url: str, *, json: Any = None) -> Any:
        """Perform a POST request with a JSON body (object or array) and return JSON."""
        return await self.request("POST", url, json=json)

    async def patch(self, url: str, *, json: Any = None) -> Any:
        """Perform a PATCH request with a JSON body and return JSON."""
        return await self.request("PATCH", url, json=json)

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """Perform a request and return parsed JSON (None for empty bodies).

        Retries network errors, timeouts, 5xx and 429 up to max_retries attempts.

        Raises:
            ApiRequestError: On a non-retryable status (carries status_code), or
                when all attempts failed.
        """
        method = method.upper()
        event_prefix = f"http_{method.lower()}"
        request_id = uuid.uuid4().hex[:12]
        last_error: Optional[Exception] = None

        with bound_contextvars(
            http_method=method,
            http_url=url,
            http_request_id=request_id,
            http_max_retries=self._max_retries,
        ):
            for attempt in range(self._max_retries):
                with bound_contextvars(http_attempt=attempt + 1):
                    try:
                        session = await self._get_session()
                        async with session.request(
                            method, url, params=params or None, json=json
                        ) as response:
                            if response.status == 429:
                                retry_after: Optional[float] = None
                                header = response.headers.get("Retry-After")
                                if header:
                                    try:
                                        retry_after = float(header)
                                    except ValueError:
                                        pass
                                self._logger.warning(
                                    f"{event_prefix}_rate_limited",
                                    http_status_code=429,
                                    http_retry_after_seconds=retry_after,
                                )
                                last_error = aiohttp.ClientResponseError(
                                    response.request_info,
                                    response.history,
                                    status=429,
                                    message="Too Many Requests",
                                )
                                if attempt + 1 < self._max_retries:
                                    if retry_after is not None and retry_after > 0:
                                        await asyncio.sleep(retry_after)
                                    else:
                                        await asyncio.sleep(self._backoff_delay(attempt))
                                continue

                            if response.status >= 400:
                                body = await response.text()
                                error = aiohttp.ClientResponseError(
                                    response.request_info,
                                    response.history,
                                    status=response.status,
                                    message=response.reason or "",
                                )
                                if not _is_retryable_status(response.status):
                                    self._logger.warning(
                                        f"{event_prefix}_rejected",
                                        http_status_code=response.status,
                                        http_reason=response.reason,
                                        http_body=body[:500],
                                    )
                                    raise ApiRequestError(
                                        f"{method} {url} rejected: {response.status} {response.reason}",
                                        url=url,
                                        status_code=response.status,
                                        cause=error,
                                    ) from error
                                raise error

                            if response.status == 204:
                                return None
                            return await response.json(content_type=None)
                    except aiohttp.ClientResponseError as e:
                        last_error = e
                        self._logger.debug(
                            f"{event_prefix}_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                            http_status_code=getattr(e, "status", None),
                        )
                    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                        last_error = e
                        self._logger.debug(
                            f"{event_prefix}_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                        )
                    if attempt + 1 < self._max_retries:
                        await asyncio.sleep(self._backoff_delay(attempt))

            status_code = (
                getattr(last_error, "status", None)
                if isinstance(last_error, aiohttp.ClientResponseError)
                else None
            )
            self._logger.error(
                f"{event_prefix}_failed",
                http_status_code=status_code,
                http_attempts=self._max_retries,
                error_type=type(last_error).__name__ if last_error else None,
                error_message=str(last_error) if last_error else None,
            )
            raise ApiRequestError(
                f"{method} failed after {self._max_retries} attempt(s): {url}",
                url=url,
                status_code=status_code,
                cause=last_error,
            ) from last_error
