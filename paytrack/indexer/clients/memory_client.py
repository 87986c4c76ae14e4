"""
In-memory ledger client for development and testing.

Keeps an ordered list of transactions and answers signature pages with
the same before/until semantics as a Solana RPC node, so the indexer can
be exercised without network access.
"""

import asyncio
import itertools
from typing import Dict, List, Optional, Sequence

from paytrack.indexer.clients.base import (
    BaseLedgerClient,
    LedgerConnectionError,
    OtherInstruction,
    ParsedTransaction,
    SignatureInfo,
    SystemTransfer,
)


def make_transfer_tx(
    fee_payer: str,
    destination: str,
    lamports: int,
    err: Optional[dict] = None,
    extra_instructions: int = 0,
    block_time: Optional[int] = None,
    slot: Optional[int] = None,
) -> ParsedTransaction:
    """Build a parsed transaction carrying one system transfer."""
    instructions: list = [
        SystemTransfer(source=fee_payer, destination=destination, lamports=lamports)
    ]
    instructions.extend(
        OtherInstruction(program="spl-memo") for _ in range(extra_instructions)
    )
    return ParsedTransaction(
        slot=slot,
        block_time=block_time,
        account_keys=[fee_payer, destination],
        instructions=instructions,
        meta={"err": err, "fee": 5000},
    )


class InMemoryLedgerClient(BaseLedgerClient):
    """
    Ledger client over a local, append-only list of transactions.

    Transactions are stored newest-first. ``fail_next`` makes the next N
    calls raise :class:`LedgerConnectionError`, for exercising the retry
    path deterministically.
    """

    def __init__(self, latency_ms: int = 0):
        """
        Args:
            latency_ms: Simulated network latency in milliseconds
        """
        self.latency_ms = latency_ms
        self.fail_next = 0
        self.signature_calls: List[Dict[str, Optional[str]]] = []
        self.transaction_calls: List[List[str]] = []

        self._order: List[SignatureInfo] = []
        self._bodies: Dict[str, Optional[ParsedTransaction]] = {}
        self._slots = itertools.count(1)

    def get_source_name(self) -> str:
        return "memory"

    def add_transaction(
        self,
        signature: str,
        transaction: Optional[ParsedTransaction] = None,
        block_time: Optional[int] = None,
        err: Optional[dict] = None,
    ) -> SignatureInfo:
        """
        Append a transaction as the newest on the ledger.

        A ``None`` body models a transaction whose parsed data is not
        available from the feed.
        """
        info = SignatureInfo(
            signature=signature,
            slot=next(self._slots),
            block_time=block_time,
            err=err,
            confirmation_status="confirmed",
        )
        self._order.insert(0, info)
        self._bodies[signature] = transaction
        return info

    async def _simulate(self) -> None:
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000.0)
        if self.fail_next > 0:
            self.fail_next -= 1
            raise LedgerConnectionError("Simulated ledger connection failure")

    def _index_of(self, signature: str) -> int:
        for idx, info in enumerate(self._order):
            if info.signature == signature:
                return idx
        raise LedgerConnectionError(f"Unknown signature {signature}")

    async def get_signatures_for_address(
        self,
        address: str,
        limit: int = 1000,
        before: Optional[str] = None,
        until: Optional[str] = None,
    ) -> List[SignatureInfo]:
        self.signature_calls.append({"before": before, "until": until})
        await self._simulate()

        start = self._index_of(before) + 1 if before else 0
        end = self._index_of(until) if until else len(self._order)
        return list(self._order[start:end][:limit])

    async def get_parsed_transactions(
        self, signatures: Sequence[str]
    ) -> List[Optional[ParsedTransaction]]:
        self.transaction_calls.append(list(signatures))
        await self._simulate()
        return [self._bodies.get(sig) for sig in signatures]
