# -*- coding: utf-8 -*-
"""
Entry point for the secure-trade indexer.

Runs one scan pass for a contract: logging, settings, container, indexer,
shutdown of the HTTP clients. Meant to be invoked on a schedule (cron).

Run with: scanner [contractAddress]
      or: python -m secure_trade_indexer.main [contractAddress]

Notebook usage:
    from secure_trade_indexer.main import run
    result = await run("0.0.12345")
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

import structlog
from pydantic import ValidationError

from secure_trade_indexer.DI import Container
from secure_trade_indexer.config import get_settings
from secure_trade_indexer.exceptions import IndexerError, MissingRequiredConfigError
from secure_trade_indexer.logging.config import configure_logging
from secure_trade_indexer.services.indexer import PassResult

USAGE = "usage: scanner [contractAddress]"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scanner", usage=USAGE[len("usage: "):], add_help=False)
    parser.add_argument("-h", "--h", "--help", dest="help", action="store_true")
    parser.add_argument("contracts", nargs="*", metavar="contractAddress")
    return parser


async def run(contract: str | None = None) -> PassResult:
    """Run one pass for contract (or SCANNER__CONTRACT_ADDRESS) and close the clients."""
    logger = structlog.get_logger("main")
    settings = get_settings()
    contract = (contract or settings.scanner.contract_address or "").strip()
    if not contract:
        logger.error(
            "main_missing_contract",
            message="No contract given and SCANNER__CONTRACT_ADDRESS is not set",
        )
        raise MissingRequiredConfigError("SCANNER__CONTRACT_ADDRESS")
    if not settings.content_store.url:
        logger.error("main_missing_content_store_url", message="CONTENT_STORE__URL is not set")
        raise MissingRequiredConfigError("CONTENT_STORE__URL")

    container = Container()
    indexer = container.indexer()
    try:
        result = await indexer.run(contract)
    finally:
        await container.mirror_http_client().aclose()
        await container.content_store_http_client().aclose()

    logger.info(
        "main_pass_finished",
        scan_contract=result.contract,
        scan_environment=result.environment,
        scan_watermark=result.watermark,
        scan_trades_written=result.trades_written,
        scan_trades_rejected=len(result.rejected),
    )
    return result


def cli(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run one pass and return the process exit code."""
    args, unknown = _build_parser().parse_known_args(argv)
    if args.help or unknown or len(args.contracts) > 1:
        print(USAGE)
        return 0

    try:
        configure_logging()
    except ValidationError as e:
        print(f"invalid configuration: {e}", file=sys.stderr)
        return 1
    logger = structlog.get_logger("main")
    contract = args.contracts[0] if args.contracts else None
    try:
        asyncio.run(run(contract))
    except IndexerError as e:
        logger.error("main_pass_aborted", error_type=type(e).__name__, error_message=str(e))
        return 1
    return 0


def main() -> None:
    sys.exit(cli())


__all__ = ["run", "cli", "main"]

if __name__ == "__main__":
    main()
