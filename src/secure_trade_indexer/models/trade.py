"""Trade: in-memory state of one secure trade, built from its decoded events.

Identity is the fingerprint of (token, serial). A trade starts open and ends
at most once as completed or cancelled; terminal states are never reversed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from secure_trade_indexer.models.trade_events import TradeCreated
from secure_trade_indexer.utils.ledger_ids import (
    ZERO_ACCOUNT_ID,
    entity_id_from_solidity_address,
    is_zero_address,
)


class TradeState(str, Enum):
    """Lifecycle state of a trade."""

    CREATED = "CREATED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TerminalTransition(str, Enum):
    """Outcome of asking a trade to enter a terminal state."""

    APPLIED = "APPLIED"
    """The trade moved from CREATED to the requested state."""
    DUPLICATE = "DUPLICATE"
    """The trade was already in the requested state; nothing changed."""
    CONFLICT = "CONFLICT"
    """The trade was already in the other terminal state; the request was rejected."""


@dataclass(slots=True)
class Trade:
    """Mutable trade aggregate used during a single scan pass."""

    fingerprint: str
    seller: str
    """Ledger address until hydrated, then an account id (shard.realm.num)."""
    buyer: str
    """Zero address / 0.0.0 for a public trade."""
    token_address: str
    token_id: str
    serial: int
    tinybar_price: int
    lazy_price: int
    expiry_time: int
    nonce: int
    completed: bool = False
    cancelled: bool = False

    @classmethod
    def from_created(cls, event: TradeCreated) -> Trade:
        """Create an open trade from its TradeCreated event."""
        return cls(
            fingerprint=event.fingerprint,
            seller=event.seller,
            buyer=event.buyer,
            token_address=event.token,
            token_id=entity_id_from_solidity_address(event.token),
            serial=event.serial,
            tinybar_price=event.tinybar_price,
            lazy_price=event.lazy_price,
            expiry_time=event.expiry_time,
            nonce=event.nonce,
        )

    @property
    def state(self) -> TradeState:
        if self.completed:
            return TradeState.COMPLETED
        if self.cancelled:
            return TradeState.CANCELLED
        return TradeState.CREATED

    @property
    def is_public(self) -> bool:
        """True when any account may take the trade."""
        return self.buyer == ZERO_ACCOUNT_ID or is_zero_address(self.buyer)

    def complete(self) -> TerminalTransition:
        """Mark completed. Idempotent; rejected if already cancelled."""
        return self._enter(TradeState.COMPLETED)

    def cancel(self) -> TerminalTransition:
        """Mark cancelled. Idempotent; rejected if already completed."""
        return self._enter(TradeState.CANCELLED)

    def _enter(self, target: TradeState) -> TerminalTransition:
        current = self.state
        if current is target:
            return TerminalTransition.DUPLICATE
        if current is not TradeState.CREATED:
            return TerminalTransition.CONFLICT
        if target is TradeState.COMPLETED:
            self.completed = True
        else:
            self.cancelled = True
        return TerminalTransition.APPLIED

    def with_accounts(self, seller: str, buyer: str) -> None:
        """Replace seller/buyer addresses with resolved account ids."""
        self.seller = seller
        self.buyer = buyer

    def summary(self) -> str:
        """One-line human readable description for logs."""
        expiry = self.expiry_time if self.expiry_time else "NONE"
        return (
            f"Hash: {self.fingerprint}, Seller: {self.seller}, Buyer: {self.buyer}, "
            f"TokenId: {self.token_id}, Serial: {self.serial}, "
            f"Price: {self.tinybar_price} tinybar, LazyPrice: {self.lazy_price / 10} $LAZY, "
            f"ExpiryTime: {expiry}, Nonce: {self.nonce}, "
            f"Completed: {self.completed}, Cancelled: {self.cancelled}"
        )
