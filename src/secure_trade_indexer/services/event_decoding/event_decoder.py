# -*- coding: utf-8 -*-
"""Decodes secure-trade contract logs into TradeCreated/TradeCompleted/TradeCancelled."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import structlog
from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak

from secure_trade_indexer.exceptions import EventDecodeError
from secure_trade_indexer.models.trade_events import (
    TradeCancelled,
    TradeCompleted,
    TradeCreated,
    TradeEvent,
)
from secure_trade_indexer.utils.fingerprint import trade_fingerprint
from secure_trade_indexer.utils.validation import is_hex_data

TRADE_CREATED_SIGNATURE = (
    "TradeCreated(address,address,address,uint256,uint256,uint256,uint256,uint256)"
)
TRADE_COMPLETED_SIGNATURE = "TradeCompleted(address,address,address,uint256,uint256)"
TRADE_CANCELLED_SIGNATURE = "TradeCancelled(address,address,uint256,uint256)"

EMPTY_DATA = "0x"


def event_topic(signature: str) -> str:
    """Return topic-0 (keccak256 of the canonical signature) as lowercase 0x-hex."""
    return "0x" + keccak(text=signature).hex()


def _topic_address(topic: str) -> str:
    """Indexed address: right-most 20 bytes of a 32-byte topic."""
    if not is_hex_data(topic) or len(topic) != 66:
        raise EventDecodeError(f"Invalid topic: {topic!r}")
    return "0x" + topic[-40:].lower()


@dataclass(frozen=True, slots=True)
class _EventSchema:
    """Layout of one event: indexed address topics followed by uint256 data words."""

    name: str
    indexed: int
    data_types: tuple[str, ...]
    build: Callable[[list[str], tuple[Any, ...], Mapping[str, Any]], TradeEvent]


def _meta(log: Mapping[str, Any]) -> dict[str, Any]:
    ts = log.get("timestamp")
    return {
        "timestamp": str(ts) if ts is not None else None,
        "transaction_hash": log.get("transaction_hash"),
    }


def _build_created(
    addrs: list[str], words: tuple[Any, ...], log: Mapping[str, Any]
) -> TradeEvent:
    seller, buyer, token = addrs
    serial, tinybar_price, lazy_price, expiry_time, nonce = (int(w) for w in words)
    return TradeCreated(
        seller=seller,
        buyer=buyer,
        token=token,
        serial=serial,
        tinybar_price=tinybar_price,
        lazy_price=lazy_price,
        expiry_time=expiry_time,
        nonce=nonce,
        fingerprint=trade_fingerprint(token, serial),
        **_meta(log),
    )


def _build_completed(
    addrs: list[str], words: tuple[Any, ...], log: Mapping[str, Any]
) -> TradeEvent:
    seller, buyer, token = addrs
    serial, nonce = (int(w) for w in words)
    return TradeCompleted(
        seller=seller,
        buyer=buyer,
        token=token,
        serial=serial,
        nonce=nonce,
        fingerprint=trade_fingerprint(token, serial),
        **_meta(log),
    )


def _build_cancelled(
    addrs: list[str], words: tuple[Any, ...], log: Mapping[str, Any]
) -> TradeEvent:
    seller, token = addrs
    serial, nonce = (int(w) for w in words)
    return TradeCancelled(
        seller=seller,
        token=token,
        serial=serial,
        nonce=nonce,
        fingerprint=trade_fingerprint(token, serial),
        **_meta(log),
    )


_SCHEMAS: tuple[tuple[str, _EventSchema], ...] = (
    (
        TRADE_CREATED_SIGNATURE,
        _EventSchema("TradeCreated", 3, ("uint256",) * 5, _build_created),
    ),
    (
        TRADE_COMPLETED_SIGNATURE,
        _EventSchema("TradeCompleted", 3, ("uint256",) * 2, _build_completed),
    ),
    (
        TRADE_CANCELLED_SIGNATURE,
        _EventSchema("TradeCancelled", 2, ("uint256",) * 2, _build_cancelled),
    ),
)


class EventDecoder:
    """Maps mirror log records ({topics, data, ...}) to typed trade events.

    Event identity is topic-0. Empty synthetic logs (data == "0x") and unknown
    signatures decode to None; malformed logs of a known event raise
    EventDecodeError so the caller can skip them.
    """

    def __init__(
        self,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._by_topic: dict[str, _EventSchema] = {
            event_topic(sig): schema for sig, schema in _SCHEMAS
        }
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def topics(self) -> dict[str, str]:
        """topic-0 -> event name for the events this decoder understands."""
        return {topic: schema.name for topic, schema in self._by_topic.items()}

    def decode(self, log: Mapping[str, Any]) -> TradeEvent | None:
        """Decode one log record.

        Returns:
            The typed event, or None for empty or unknown logs.

        Raises:
            EventDecodeError: If the log matches a known event but is malformed.
        """
        data = log.get("data")
        if data == EMPTY_DATA:
            return None
        topics: Sequence[str] = log.get("topics") or []
        if not topics:
            return None
        schema = self._by_topic.get(str(topics[0]).lower())
        if schema is None:
            self._logger.debug("event_decoder_unknown_topic", log_topic0=str(topics[0]))
            return None

        if len(topics) != 1 + schema.indexed:
            raise EventDecodeError(
                f"{schema.name}: expected {1 + schema.indexed} topics, got {len(topics)}"
            )
        if not isinstance(data, str) or not is_hex_data(data):
            raise EventDecodeError(f"{schema.name}: invalid data {data!r}")

        addrs = [_topic_address(str(t)) for t in topics[1:]]
        try:
            words = abi_decode(list(schema.data_types), bytes.fromhex(data[2:]))
        except DecodingError as e:
            raise EventDecodeError(f"{schema.name}: {e}") from e
        return schema.build(addrs, tuple(words), log)
