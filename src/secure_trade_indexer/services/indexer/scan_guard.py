"""Run-once guard: at most one pass per (contract, environment) in this process."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from secure_trade_indexer.exceptions import ScanInProgressError


class ScanGuard:
    """Tracks active passes. Cross-process exclusion is left to the scheduler."""

    def __init__(self) -> None:
        self._active: set[tuple[str, str]] = set()

    def is_active(self, contract: str, environment: str) -> bool:
        return (contract, environment) in self._active

    @asynccontextmanager
    async def hold(self, contract: str, environment: str) -> AsyncIterator[None]:
        """Claim the pair for the duration of the block.

        Raises:
            ScanInProgressError: If a pass for the pair is already running.
        """
        key = (contract, environment)
        if key in self._active:
            raise ScanInProgressError(f"Scan already running for {contract} on {environment}")
        self._active.add(key)
        try:
            yield
        finally:
            self._active.discard(key)
