"""Checkpoint: scan watermark for one (contract, environment)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Checkpoint:
    """Greatest consensus timestamp processed by a successful pass."""

    contract: str
    environment: str
    last_timestamp: str
    id: Any = None

    def to_row(self) -> dict[str, Any]:
        return {
            "tradeContract": self.contract,
            "lastTimestamp": self.last_timestamp,
            "environment": self.environment,
        }
