"""
Base ledger client interface.

Defines the contract every ledger feed client must implement, and the
typed shapes the indexer works with once RPC payloads are parsed.
"""

from abc import ABC, abstractmethod
from typing import Annotated, Any, Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, Field

SYSTEM_PROGRAM = "system"
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"


class SignatureInfo(BaseModel):
    """One item of a getSignaturesForAddress page."""

    signature: str
    slot: int = 0
    block_time: Optional[int] = None
    err: Optional[Any] = None
    memo: Optional[str] = None
    confirmation_status: Optional[str] = None

    @classmethod
    def from_rpc_item(cls, item: Dict[str, Any]) -> "SignatureInfo":
        """Build from a single getSignaturesForAddress result item."""
        return cls(
            signature=item["signature"],
            slot=int(item.get("slot") or 0),
            block_time=item.get("blockTime"),
            err=item.get("err"),
            memo=item.get("memo"),
            confirmation_status=item.get("confirmationStatus"),
        )


class SystemTransfer(BaseModel):
    """A parsed System Program ``transfer`` instruction."""

    kind: Literal["system_transfer"] = "system_transfer"
    source: str
    destination: str
    lamports: int


class OtherInstruction(BaseModel):
    """Any instruction the indexer does not care about."""

    kind: Literal["other"] = "other"
    program: Optional[str] = None
    program_id: Optional[str] = None


Instruction = Annotated[
    Union[SystemTransfer, OtherInstruction], Field(discriminator="kind")
]


def parse_instruction(raw: Dict[str, Any]) -> Union[SystemTransfer, OtherInstruction]:
    """
    Classify one jsonParsed instruction.

    Only System Program ``transfer`` instructions the RPC node already
    decoded, addressed to the System Program id, become
    :class:`SystemTransfer`; raw (undecoded), partially decoded and
    look-alike instructions fall through to :class:`OtherInstruction`.
    """
    parsed = raw.get("parsed")
    program = raw.get("program")
    program_id = raw.get("programId")
    if (
        program == SYSTEM_PROGRAM
        and program_id == SYSTEM_PROGRAM_ID
        and isinstance(parsed, dict)
    ):
        info = parsed.get("info") or {}
        if (
            parsed.get("type") == "transfer"
            and "destination" in info
            and "lamports" in info
        ):
            return SystemTransfer(
                source=str(info.get("source", "")),
                destination=str(info["destination"]),
                lamports=int(info["lamports"]),
            )
    return OtherInstruction(program=program, program_id=program_id)


def _account_key(raw: Any) -> str:
    # jsonParsed returns {"pubkey": ..., "signer": ...}; older nodes return plain strings
    if isinstance(raw, dict):
        return str(raw.get("pubkey", ""))
    return str(raw)


class ParsedTransaction(BaseModel):
    """A transaction body with its execution metadata."""

    slot: Optional[int] = None
    block_time: Optional[int] = None
    account_keys: List[str] = Field(default_factory=list)
    instructions: List[Instruction] = Field(default_factory=list)
    meta: Optional[Dict[str, Any]] = None

    @property
    def fee_payer(self) -> Optional[str]:
        """First account key of the message, which is always the fee payer."""
        return self.account_keys[0] if self.account_keys else None

    @property
    def error(self) -> Optional[Any]:
        """Execution error reported by the metadata, if any."""
        return (self.meta or {}).get("err")

    @classmethod
    def from_rpc_result(cls, result: Dict[str, Any]) -> "ParsedTransaction":
        """Build from a getTransaction result with ``encoding=jsonParsed``."""
        message = (result.get("transaction") or {}).get("message") or {}
        return cls(
            slot=result.get("slot"),
            block_time=result.get("blockTime"),
            account_keys=[_account_key(k) for k in message.get("accountKeys", [])],
            instructions=[
                parse_instruction(ix) for ix in message.get("instructions", [])
            ],
            meta=result.get("meta"),
        )


class BaseLedgerClient(ABC):
    """
    Abstract base class for ledger feed clients.

    Implementations return signature pages newest-first, exactly as the
    feed orders them, and never filter.
    """

    @abstractmethod
    async def get_signatures_for_address(
        self,
        address: str,
        limit: int = 1000,
        before: Optional[str] = None,
        until: Optional[str] = None,
    ) -> List[SignatureInfo]:
        """
        Fetch one page of signatures that touched ``address``.

        Args:
            address: Account address (base58)
            limit: Maximum number of signatures (1-1000)
            before: Only return signatures strictly older than this one
            until: Only return signatures strictly newer than this one

        Returns:
            Signatures, newest first; empty when the range is exhausted

        Raises:
            LedgerConnectionError: If the feed cannot be reached
            LedgerRPCError: If the feed answers with an error object
        """

    @abstractmethod
    async def get_parsed_transactions(
        self, signatures: Sequence[str]
    ) -> List[Optional[ParsedTransaction]]:
        """
        Fetch parsed bodies for ``signatures`` in one round trip.

        Returns:
            A list parallel to ``signatures``; ``None`` where the feed has
            no body (not yet available or pruned)
        """

    @abstractmethod
    def get_source_name(self) -> str:
        """Identifier of this feed for logs and status output."""

    async def aclose(self) -> None:
        """Release network resources held by the client."""


class LedgerAPIError(Exception):
    """Base exception for ledger client errors."""

    pass


class LedgerConnectionError(LedgerAPIError):
    """Raised when the feed cannot be reached or answers with an HTTP error."""

    pass


class LedgerRPCError(LedgerAPIError):
    """Raised when the feed returns a JSON-RPC error object."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class LedgerResponseError(LedgerAPIError):
    """Raised when the feed returns a payload of unexpected shape."""

    pass
