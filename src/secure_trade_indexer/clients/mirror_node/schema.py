"""Mirror node REST response types (only the fields the indexer reads)."""

from __future__ import annotations

from typing import TypedDict


class ContractLogSchema(TypedDict, total=False):
    """Item of GET /api/v1/contracts/{id}/results/logs."""

    address: str
    bloom: str
    contract_id: str
    data: str
    index: int
    topics: list[str]
    block_hash: str
    block_number: int
    root_contract_id: str
    timestamp: str
    transaction_hash: str
    transaction_index: int


class LinksSchema(TypedDict, total=False):
    next: str | None


class ContractLogsResponseSchema(TypedDict, total=False):
    logs: list[ContractLogSchema]
    links: LinksSchema


class AccountSchema(TypedDict, total=False):
    """GET /api/v1/accounts/{idOrAliasOrEvmAddress} (subset)."""

    account: str
    evm_address: str
    alias: str | None
