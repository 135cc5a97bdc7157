"""Validation helpers for addresses and masked logging."""

from __future__ import annotations

from typing import Any


def is_hex_address(addr: Any) -> bool:
    """Return True if addr is a valid 0x ledger address (42 chars)."""
    if not isinstance(addr, str):
        return False
    s = addr.strip()
    if len(s) != 42:
        return False
    if not s.startswith("0x"):
        return False
    try:
        int(s[2:], 16)
        return True
    except ValueError:
        return False


def is_hex_data(x: Any) -> bool:
    """Return True if x is 0x-prefixed hex with an even number of digits."""
    if not isinstance(x, str) or not x.startswith("0x"):
        return False
    body = x[2:]
    if len(body) % 2:
        return False
    try:
        bytes.fromhex(body)
        return True
    except ValueError:
        return False


def mask_address(addr: str | None) -> str:
    """Return a masked address for logging (e.g. 0x1234...abcd)."""
    if not addr or len(addr) < 10:
        return "***"
    return f"{addr[:6]}...{addr[-4:]}"
