"""
Solana JSON-RPC client.

Talks to a Solana HTTP endpoint with httpx. Signature pages come from
``getSignaturesForAddress``; parsed bodies come from a single JSON-RPC
batch of ``getTransaction`` calls with ``encoding=jsonParsed``.
"""

import itertools
from typing import Any, Dict, List, Optional, Sequence

import httpx
import structlog

from paytrack.indexer.clients.base import (
    BaseLedgerClient,
    LedgerConnectionError,
    LedgerResponseError,
    LedgerRPCError,
    ParsedTransaction,
    SignatureInfo,
)

logger = structlog.get_logger()


class SolanaRpcClient(BaseLedgerClient):
    """Ledger client backed by a Solana JSON-RPC endpoint."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        commitment: str = "confirmed",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            rpc_url: Solana RPC HTTP endpoint
            timeout: Request timeout in seconds
            commitment: Commitment level used for every read
            http_client: Pre-built client (tests pass one with a mock transport)
        """
        if not rpc_url or not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")

        self.rpc_url = rpc_url.rstrip("/")
        self.commitment = commitment
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout)
        )
        self._ids = itertools.count(1)

    def get_source_name(self) -> str:
        return "solana-rpc"

    async def aclose(self) -> None:
        await self._client.aclose()

    def _request(self, method: str, params: List[Any]) -> Dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

    async def _post(self, body: Any) -> Any:
        try:
            resp = await self._client.post(self.rpc_url, json=body)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise LedgerConnectionError(
                f"RPC endpoint returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise LedgerConnectionError(f"RPC request failed: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise LedgerResponseError("RPC endpoint returned non-JSON body") from e

    @staticmethod
    def _unwrap(data: Any) -> Any:
        if not isinstance(data, dict):
            raise LedgerResponseError(f"Unexpected RPC response: {data!r}")
        if "error" in data and data["error"] is not None:
            err = data["error"]
            if isinstance(err, dict):
                raise LedgerRPCError(
                    f"Solana RPC error: {err.get('message', err)}",
                    code=err.get("code"),
                )
            raise LedgerRPCError(f"Solana RPC error: {err}")
        if "result" not in data:
            raise LedgerResponseError("Solana RPC returned no result")
        return data["result"]

    async def get_signatures_for_address(
        self,
        address: str,
        limit: int = 1000,
        before: Optional[str] = None,
        until: Optional[str] = None,
    ) -> List[SignatureInfo]:
        opts: Dict[str, Any] = {"limit": limit, "commitment": self.commitment}
        if before:
            opts["before"] = before
        if until:
            opts["until"] = until

        body = self._request("getSignaturesForAddress", [address, opts])
        result = self._unwrap(await self._post(body))
        if not isinstance(result, list):
            raise LedgerResponseError("getSignaturesForAddress result is not a list")

        logger.debug(
            "rpc.signatures_fetched",
            count=len(result),
            before=before,
            until=until,
        )
        return [SignatureInfo.from_rpc_item(item) for item in result]

    async def get_parsed_transactions(
        self, signatures: Sequence[str]
    ) -> List[Optional[ParsedTransaction]]:
        if not signatures:
            return []

        opts = {
            "encoding": "jsonParsed",
            "commitment": self.commitment,
            "maxSupportedTransactionVersion": 0,
        }
        batch = [self._request("getTransaction", [sig, opts]) for sig in signatures]
        data = await self._post(batch)
        if not isinstance(data, list):
            # Some gateways answer a batch with a single error object
            self._unwrap(data)
            raise LedgerResponseError("Batch getTransaction did not return a list")

        # Batch responses may come back in any order
        by_id = {item.get("id"): item for item in data if isinstance(item, dict)}
        parsed: List[Optional[ParsedTransaction]] = []
        for request in batch:
            item = by_id.get(request["id"])
            if item is None:
                raise LedgerResponseError(
                    f"Missing batch response for {request['params'][0]}"
                )
            result = self._unwrap(item)
            parsed.append(
                ParsedTransaction.from_rpc_result(result) if result else None
            )

        logger.debug(
            "rpc.transactions_fetched",
            requested=len(signatures),
            available=sum(1 for p in parsed if p is not None),
        )
        return parsed
