"""
Payment indexing engine.

Backfills and polls the ledger feed for transfers to the tracked
account, deduplicates them by signature and stores them with a durable
cursor.
"""

from paytrack.indexer.engine import PaymentIndexer
from paytrack.indexer.address import InvalidAddressError, validate_address
from paytrack.indexer.clients.base import BaseLedgerClient
from paytrack.indexer.config import IndexerConfig

__all__ = [
    "PaymentIndexer",
    "InvalidAddressError",
    "validate_address",
    "BaseLedgerClient",
    "IndexerConfig",
]
