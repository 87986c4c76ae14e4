"""Ledger feed client implementations."""

from paytrack.indexer.clients.base import (
    BaseLedgerClient,
    ParsedTransaction,
    SignatureInfo,
)
from paytrack.indexer.clients.memory_client import InMemoryLedgerClient
from paytrack.indexer.clients.rpc_client import SolanaRpcClient

__all__ = [
    "BaseLedgerClient",
    "ParsedTransaction",
    "SignatureInfo",
    "InMemoryLedgerClient",
    "SolanaRpcClient",
]
