# -*- coding: utf-8 -*-
"""Utility modules."""

from secure_trade_indexer.utils.fingerprint import trade_fingerprint
from secure_trade_indexer.utils.ledger_ids import (
    ZERO_ACCOUNT_ID,
    ZERO_ADDRESS,
    entity_id_from_solidity_address,
    is_contract_identifier,
    is_entity_id,
    is_long_zero_address,
    is_zero_address,
    normalize_address,
    solidity_address_from_entity_id,
)
from secure_trade_indexer.utils.timestamps import (
    is_later,
    later_timestamp,
    timestamp_key,
    to_utc_string,
)
from secure_trade_indexer.utils.validation import is_hex_address, is_hex_data, mask_address

__all__ = [
    "ZERO_ACCOUNT_ID",
    "ZERO_ADDRESS",
    "entity_id_from_solidity_address",
    "is_contract_identifier",
    "is_entity_id",
    "is_hex_address",
    "is_hex_data",
    "is_later",
    "is_long_zero_address",
    "is_zero_address",
    "mask_address",
    "later_timestamp",
    "normalize_address",
    "solidity_address_from_entity_id",
    "timestamp_key",
    "to_utc_string",
    "trade_fingerprint",
]
