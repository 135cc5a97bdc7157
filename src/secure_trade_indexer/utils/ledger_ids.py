"""Ledger identifier helpers: 20-byte solidity addresses <-> shard.realm.num ids."""

from __future__ import annotations

import re
from typing import Any

from secure_trade_indexer.utils.validation import is_hex_address

ZERO_ADDRESS = "0x" + "0" * 40
ZERO_ACCOUNT_ID = "0.0.0"

_ENTITY_ID_RE = re.compile(r"^\d+\.\d+\.\d+$")


def normalize_address(addr: str) -> str:
    """Return a lowercase 0x-prefixed 40-hex address.

    Raises:
        ValueError: If addr is not a 20-byte hex address.
    """
    s = (addr or "").strip().lower()
    if not s.startswith("0x"):
        s = "0x" + s
    if not is_hex_address(s):
        raise ValueError(f"Invalid ledger address: {addr!r}")
    return s


def is_zero_address(addr: str) -> bool:
    """Return True for the all-zero address (public trade buyer)."""
    try:
        return int(normalize_address(addr), 16) == 0
    except ValueError:
        return False


def is_long_zero_address(addr: str) -> bool:
    """Return True if addr is a long-zero address (shard and realm packed, no EVM alias)."""
    raw = bytes.fromhex(normalize_address(addr)[2:])
    return raw[:12] == b"\x00" * 12


def entity_id_from_solidity_address(addr: str) -> str:
    """Convert a long-zero solidity address to shard.realm.num.

    Layout: 4 bytes shard, 8 bytes realm, 8 bytes num (big-endian).
    """
    raw = bytes.fromhex(normalize_address(addr)[2:])
    shard = int.from_bytes(raw[0:4], "big")
    realm = int.from_bytes(raw[4:12], "big")
    num = int.from_bytes(raw[12:20], "big")
    return f"{shard}.{realm}.{num}"


def solidity_address_from_entity_id(entity_id: str) -> str:
    """Convert shard.realm.num to its long-zero solidity address."""
    if not is_entity_id(entity_id):
        raise ValueError(f"Invalid entity id: {entity_id!r}")
    shard, realm, num = (int(p) for p in entity_id.strip().split("."))
    raw = shard.to_bytes(4, "big") + realm.to_bytes(8, "big") + num.to_bytes(8, "big")
    return "0x" + raw.hex()


def is_entity_id(x: Any) -> bool:
    """Return True if x looks like shard.realm.num (e.g. 0.0.1234)."""
    if not isinstance(x, str):
        return False
    return bool(_ENTITY_ID_RE.match(x.strip()))


def is_contract_identifier(x: Any) -> bool:
    """Return True for a contract id accepted by the mirror (0.0.N or 0x address)."""
    return is_entity_id(x) or is_hex_address(x)
