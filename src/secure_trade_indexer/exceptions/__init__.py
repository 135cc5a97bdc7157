"""Exceptions subpackage."""

from secure_trade_indexer.exceptions.exceptions import (
    AddressResolutionError,
    ApiRequestError,
    EventDecodeError,
    IndexerError,
    InvalidConfigError,
    MissingRequiredConfigError,
    PassDeadlineExceededError,
    ScanInProgressError,
)

__all__ = [
    "AddressResolutionError",
    "ApiRequestError",
    "EventDecodeError",
    "IndexerError",
    "InvalidConfigError",
    "MissingRequiredConfigError",
    "PassDeadlineExceededError",
    "ScanInProgressError",
]
