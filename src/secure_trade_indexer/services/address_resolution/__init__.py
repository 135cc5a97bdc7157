# -*- coding: utf-8 -*-
"""Ledger address -> account id resolution."""

from secure_trade_indexer.services.address_resolution.address_resolver import AddressResolver

__all__ = ["AddressResolver"]
