"""Custom exceptions for the mirror/content-store clients and the indexer."""

from __future__ import annotations


class IndexerError(Exception):
    """Base exception for secure-trade indexer errors."""

    pass


class MissingRequiredConfigError(IndexerError):
    """Raised when a required configuration value is missing."""

    pass


class InvalidConfigError(IndexerError):
    """Raised when a configuration value is present but not allowed."""

    pass


class ApiRequestError(IndexerError):
    """Raised when an HTTP request fails (after retries, or on a non-retryable status)."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause

    @property
    def is_bad_request(self) -> bool:
        """True when the server rejected the request payload (HTTP 400)."""
        return self.status_code == 400


class EventDecodeError(IndexerError):
    """Raised when a log carries a known signature but cannot be decoded."""

    pass


class AddressResolutionError(IndexerError):
    """Raised when a ledger address cannot be mapped to an account id."""

    def __init__(
        self,
        message: str,
        *,
        address: str,
        attempts: int,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.address = address
        self.attempts = attempts
        self.cause = cause


class PassDeadlineExceededError(IndexerError):
    """Raised when a scan pass runs past its deadline."""

    pass


class ScanInProgressError(IndexerError):
    """Raised when a pass is already running for the same (contract, environment)."""

    pass
