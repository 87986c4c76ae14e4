"""
Indexer CLI commands.

Provides command-line interface for running the indexer, running
single cycles manually, and inspecting stored transfers and raw
signature pages.
"""

import asyncio
import sys
from typing import List, Optional
import structlog

from paytrack.core.config import get_settings
from paytrack.core.logging import configure_logging
from paytrack.db.init import create_tables
from paytrack.db.unit_of_work import UnitOfWork
from paytrack.indexer.clients.base import SignatureInfo
from paytrack.indexer.engine import PaymentIndexer, create_indexer

logger = structlog.get_logger()

USAGE = """Usage: python -m paytrack.indexer.cli <command> [options]

Commands:
  run                         Backfill history, then poll forever
  sync                        Backfill history once
  poll                        Run a single poll cycle
  status                      Show cursor and stored transfer count
  transfers [limit]           List stored transfers, newest first
  sigs before|until <sig>     Fetch one raw signature page around <sig>
  txns                        List the latest 100 signatures of the account

Examples:
  python -m paytrack.indexer.cli run
  python -m paytrack.indexer.cli transfers 20
  python -m paytrack.indexer.cli sigs until 5h6x...
"""


def print_status(status: dict):
    """Pretty print indexer status."""
    print("\n=== Payment Indexer Status ===\n")
    print(f"Address: {status['address']}")
    print(f"Source: {status['source']}")
    print(f"Cursor: {status['cursor'] or '(none)'}")
    print(f"Transfers stored: {status['transfers_stored']}")
    backoff = status["backoff"]
    print(f"Retry count: {backoff['retry_count']}")
    print(f"Next interval: {backoff['interval_ms']:.0f} ms")
    print()


def print_signatures(signatures: List[SignatureInfo]):
    """Print one signature per line with its block time and error flag."""
    if not signatures:
        print("No signatures found.")
        return
    for info in signatures:
        failed = " FAILED" if info.err is not None else ""
        print(f"{info.signature}  block_time={info.block_time}{failed}")
    print(f"\n{len(signatures)} signature(s)")


async def _prepare() -> PaymentIndexer:
    await create_tables()
    return create_indexer(get_settings())


async def run_command():
    """Run the indexer until interrupted."""
    indexer = await _prepare()
    print(f"Indexing payments to {indexer.address}")
    print(f"Poll interval: {indexer.config.poll_interval_ms} ms")
    print("Press Ctrl+C to stop\n")
    try:
        await indexer.start()
    finally:
        await indexer.client.aclose()
    return 0


async def sync_command():
    """Backfill history once."""
    indexer = await _prepare()
    try:
        stored = await indexer.sync()
    finally:
        await indexer.client.aclose()
    print(f"Backfill complete: {stored} new transfer(s) stored")
    return 0


async def poll_command():
    """Run a single poll cycle manually."""
    indexer = await _prepare()
    try:
        stored = await indexer.poll_once()
        status = await indexer.get_status()
    finally:
        await indexer.client.aclose()
    print(f"Poll complete: {stored} new transfer(s) stored")
    print(f"Cursor: {status['cursor'] or '(none)'}")
    return 0


async def status_command():
    """Show stored cursor and transfer count."""
    indexer = await _prepare()
    try:
        status = await indexer.get_status()
    finally:
        await indexer.client.aclose()
    print_status(status)
    return 0


async def transfers_command(limit: int = 50):
    """List stored transfers, newest first."""
    await create_tables()
    async with UnitOfWork() as uow:
        transfers = await uow.transfers.list_recent(limit=limit)
    if not transfers:
        print("No transfers stored.")
        return 0
    for t in transfers:
        print(f"{t.signature}  {t.amount:.9f} SOL  from {t.sender}  {t.status}")
    print(f"\n{len(transfers)} transfer(s)")
    return 0


async def sigs_command(direction: str, signature: str):
    """Fetch one raw signature page bounded by ``signature``."""
    indexer = await _prepare()
    try:
        if direction == "before":
            page = await indexer.paginator.older_than(signature, 1000)
        else:
            page = await indexer.paginator.newer_than(signature, 1000)
    finally:
        await indexer.client.aclose()
    print_signatures(page)
    return 0


async def txns_command():
    """List the latest 100 signatures for the tracked account."""
    indexer = await _prepare()
    try:
        page = await indexer.paginator.newer_than(None, 100)
    finally:
        await indexer.client.aclose()
    print_signatures(page)
    return 0


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(USAGE)
        return 1

    settings = get_settings()
    configure_logging(settings.ENV, settings.DEBUG)
    command = args[0]

    try:
        if command == "run":
            return asyncio.run(run_command())
        elif command == "sync":
            return asyncio.run(sync_command())
        elif command == "poll":
            return asyncio.run(poll_command())
        elif command == "status":
            return asyncio.run(status_command())
        elif command == "transfers":
            limit = int(args[1]) if len(args) > 1 else 50
            return asyncio.run(transfers_command(limit))
        elif command == "sigs":
            if len(args) < 3 or args[1] not in ("before", "until"):
                print("Usage: sigs before|until <signature>")
                return 1
            return asyncio.run(sigs_command(args[1], args[2]))
        elif command == "txns":
            return asyncio.run(txns_command())
        else:
            print(f"Unknown command: {command}")
            print(USAGE)
            return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except Exception as e:
        print(f"Error: {str(e)}")
        logger.exception("cli_error", command=command)
        return 1


if __name__ == "__main__":
    sys.exit(main())
