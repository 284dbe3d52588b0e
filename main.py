#!/usr/bin/env python3

import argparse
import asyncio
import json
import logging
import sys

from bridge_history.config import HistoryConfig
from bridge_history.history import HistoryLogic, HistoryQueryError
from bridge_history.store import InMemoryHistoryStore

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bridge transaction history queries")
    subparsers = parser.add_subparsers(dest="command", required=True)

    claimable = subparsers.add_parser("claimable", help="List withdrawals an address can claim")
    claimable.add_argument("address", help="Account address")

    txs = subparsers.add_parser("txs", help="Show history records for message hashes")
    txs.add_argument("hashes", nargs="+", help="Message hashes")

    return parser.parse_args(argv)


async def run_query(logic: HistoryLogic, args: argparse.Namespace) -> dict:
    """Run the requested query and shape the result for printing."""
    if args.command == "claimable":
        records, total = await logic.claimable_txs_by_address(args.address)
        return {"total": total, "result": [record.to_dict() for record in records]}

    records = await logic.txs_by_hashes(args.hashes)
    return {"result": [record.to_dict() for record in records]}


def main(argv: list[str] | None = None) -> int:
    """Main entry point for bridge history queries."""
    args = parse_args(argv)

    try:
        config = HistoryConfig.from_env()
    except ValueError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"Configuration error: {e}")
        logger.error("Required environment variables:")
        logger.error("  - HISTORY_SNAPSHOT_PATH: JSON snapshot of indexed bridge events")
        logger.error("Optional environment variables:")
        logger.error("  - LOG_LEVEL: Logging level (default INFO)")
        logger.error("  - MAX_QUERY_HASHES: Max hashes per txs query (default 100)")
        return 1

    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    config.log_config()

    try:
        store = InMemoryHistoryStore.from_file(config.snapshot_path)
        logic = HistoryLogic(store, max_query_hashes=config.max_query_hashes)
        result = asyncio.run(run_query(logic, args))
    except (OSError, ValueError) as e:
        logger.error(f"Invalid input: {e}")
        return 1
    except HistoryQueryError as e:
        logger.error(f"Query failed: {e}", exc_info=True)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
