# -*- coding: utf-8 -*-
"""Contract log decoding (topics/data -> typed trade events)."""

from secure_trade_indexer.services.event_decoding.event_decoder import (
    TRADE_CANCELLED_SIGNATURE,
    TRADE_COMPLETED_SIGNATURE,
    TRADE_CREATED_SIGNATURE,
    EventDecoder,
    event_topic,
)

__all__ = [
    "EventDecoder",
    "TRADE_CANCELLED_SIGNATURE",
    "TRADE_COMPLETED_SIGNATURE",
    "TRADE_CREATED_SIGNATURE",
    "event_topic",
]
