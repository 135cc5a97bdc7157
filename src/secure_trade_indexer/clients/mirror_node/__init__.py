"""Ledger mirror node client."""

from secure_trade_indexer.clients.mirror_node.mirror_node import (
    MIRROR_BASE_URLS,
    LogPage,
    MirrorNodeClient,
    mirror_base_url,
)
from secure_trade_indexer.clients.mirror_node.schema import (
    AccountSchema,
    ContractLogSchema,
    ContractLogsResponseSchema,
)

__all__ = [
    "AccountSchema",
    "ContractLogSchema",
    "ContractLogsResponseSchema",
    "LogPage",
    "MIRROR_BASE_URLS",
    "MirrorNodeClient",
    "mirror_base_url",
]
