"""Decoded secure-trade contract events.

Each event carries the fingerprint of its (token, serial) pair so related
create/complete/cancel events key to the same trade without knowing the
event type. Addresses are lowercase 0x hex as read from the log topics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class TradeCreated:
    """TradeCreated(seller, buyer, token, serial, tinybarPrice, lazyPrice, expiryTime, nonce)."""

    seller: str
    buyer: str
    """Zero address for a public trade (any buyer)."""
    token: str
    serial: int
    tinybar_price: int
    lazy_price: int
    expiry_time: int
    """Unix seconds; 0 means no expiry."""
    nonce: int
    fingerprint: str
    timestamp: str | None = None
    """Consensus timestamp of the log ("seconds.nanos")."""
    transaction_hash: str | None = None


@dataclass(frozen=True, slots=True)
class TradeCompleted:
    """TradeCompleted(seller, buyer, token, serial, nonce)."""

    seller: str
    buyer: str
    token: str
    serial: int
    nonce: int
    fingerprint: str
    timestamp: str | None = None
    transaction_hash: str | None = None


@dataclass(frozen=True, slots=True)
class TradeCancelled:
    """TradeCancelled(seller, token, serial, nonce)."""

    seller: str
    token: str
    serial: int
    nonce: int
    fingerprint: str
    timestamp: str | None = None
    transaction_hash: str | None = None


TradeEvent = Union[TradeCreated, TradeCompleted, TradeCancelled]
