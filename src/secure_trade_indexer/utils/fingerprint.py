"""Trade fingerprint: identity of a trade across its create/complete/cancel events."""

from __future__ import annotations

from eth_utils import keccak

from secure_trade_indexer.utils.ledger_ids import normalize_address

_UINT256_MAX = 2**256 - 1


def trade_fingerprint(token_address: str, serial: int) -> str:
    """Return keccak256(abi.encodePacked(address token, uint256 serial)) as 0x-hex.

    The contract keys live trades by (token, serial), so the same value is
    produced for every event of one trade regardless of its nonce.
    """
    if serial < 0 or serial > _UINT256_MAX:
        raise ValueError(f"serial out of uint256 range: {serial}")
    packed = bytes.fromhex(normalize_address(token_address)[2:]) + serial.to_bytes(32, "big")
    return "0x" + keccak(primitive=packed).hex()
