"""TradeCacheRecord: one row of the trade cache collection.

Identity in the store is its primary key; logically a row is
(contract, environment, token, serial, nonce). Column names follow the
collection schema (camelCase, `canceled` spelling).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from secure_trade_indexer.models.trade import Trade


class TerminalKind(str, Enum):
    """Terminal flag carried by a late completion/cancellation."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def column(self) -> str:
        """Cache collection column holding this flag."""
        return "completed" if self is TerminalKind.COMPLETED else "canceled"

    @property
    def opposite(self) -> TerminalKind:
        return TerminalKind.CANCELLED if self is TerminalKind.COMPLETED else TerminalKind.COMPLETED


@dataclass(frozen=True, slots=True)
class TradeCacheRecord:
    """Projection of a Trade written to the content store."""

    contract: str
    environment: str
    fingerprint: str
    seller: str
    buyer: str
    token_id: str
    serial: int
    tinybar_price: int
    lazy_price: int
    expiry_time: int
    nonce: int
    completed: bool = False
    cancelled: bool = False
    id: Any = None
    """Primary key assigned by the store (None until persisted)."""

    @classmethod
    def from_trade(cls, trade: Trade, *, contract: str, environment: str) -> TradeCacheRecord:
        return cls(
            contract=contract,
            environment=environment,
            fingerprint=trade.fingerprint,
            seller=trade.seller,
            buyer=trade.buyer,
            token_id=trade.token_id,
            serial=trade.serial,
            tinybar_price=trade.tinybar_price,
            lazy_price=trade.lazy_price,
            expiry_time=trade.expiry_time,
            nonce=trade.nonce,
            completed=trade.completed,
            cancelled=trade.cancelled,
        )

    def flag(self, kind: TerminalKind) -> bool:
        return self.completed if kind is TerminalKind.COMPLETED else self.cancelled

    def to_row(self) -> dict[str, Any]:
        """Column dict for a create request (without the primary key)."""
        return {
            "tradeContract": self.contract,
            "hash": self.fingerprint,
            "seller": self.seller,
            "buyer": self.buyer,
            "token": self.token_id,
            "serial": self.serial,
            "tinybarPrice": self.tinybar_price,
            "lazyPrice": self.lazy_price,
            "expiryTime": self.expiry_time,
            "nonce": self.nonce,
            "environment": self.environment,
            "completed": self.completed,
            "canceled": self.cancelled,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> TradeCacheRecord:
        """Build from a stored row (missing numeric columns default to 0)."""
        return cls(
            contract=str(row.get("tradeContract") or ""),
            environment=str(row.get("environment") or ""),
            fingerprint=str(row.get("hash") or ""),
            seller=str(row.get("seller") or ""),
            buyer=str(row.get("buyer") or ""),
            token_id=str(row.get("token") or ""),
            serial=int(row.get("serial") or 0),
            tinybar_price=int(row.get("tinybarPrice") or 0),
            lazy_price=int(row.get("lazyPrice") or 0),
            expiry_time=int(row.get("expiryTime") or 0),
            nonce=int(row.get("nonce") or 0),
            completed=bool(row.get("completed")),
            cancelled=bool(row.get("canceled")),
            id=row.get("id"),
        )
