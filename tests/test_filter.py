"""
Tests for the transfer filter and instruction parsing.

Covers matching rules, amount conversion, status mapping and the
jsonParsed payload shapes the RPC node returns.
"""

import pytest

from paytrack.db.models.transfer import TransferStatus
from paytrack.indexer.clients.base import (
    OtherInstruction,
    ParsedTransaction,
    SystemTransfer,
    parse_instruction,
)
from paytrack.indexer.clients.memory_client import make_transfer_tx
from paytrack.indexer.filter import TransferFilter, lamports_to_sol

from conftest import OTHER_ADDRESS, TRACKED_ADDRESS

FEE_PAYER = "FeePayer1111111111111111111111111111111111"


def _rpc_transfer(source: str, destination: str, lamports: int) -> dict:
    return {
        "program": "system",
        "programId": "11111111111111111111111111111111",
        "parsed": {
            "type": "transfer",
            "info": {
                "source": source,
                "destination": destination,
                "lamports": lamports,
            },
        },
        "stackHeight": None,
    }


class TestInstructionParsing:
    """Tests for classifying raw jsonParsed instructions."""

    def test_system_transfer_is_recognised(self):
        ix = parse_instruction(_rpc_transfer(FEE_PAYER, TRACKED_ADDRESS, 42))
        assert isinstance(ix, SystemTransfer)
        assert ix.destination == TRACKED_ADDRESS
        assert ix.lamports == 42

    def test_raw_instruction_falls_through(self):
        ix = parse_instruction(
            {
                "programId": "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr",
                "accounts": [],
                "data": "3Bxs4h24hBtQy9rw",
            }
        )
        assert isinstance(ix, OtherInstruction)

    def test_other_system_instruction_is_ignored(self):
        raw = {
            "program": "system",
            "programId": "11111111111111111111111111111111",
            "parsed": {"type": "createAccount", "info": {"lamports": 1}},
        }
        assert isinstance(parse_instruction(raw), OtherInstruction)

    def test_spl_transfer_is_ignored(self):
        raw = _rpc_transfer(FEE_PAYER, TRACKED_ADDRESS, 5)
        raw["program"] = "spl-token"
        assert isinstance(parse_instruction(raw), OtherInstruction)

    def test_transfer_from_other_program_id_is_ignored(self):
        """A decoded ``system`` transfer is only trusted under the System Program id."""
        raw = _rpc_transfer(FEE_PAYER, TRACKED_ADDRESS, 5)
        raw["programId"] = "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr"

        ix = parse_instruction(raw)

        assert isinstance(ix, OtherInstruction)
        assert ix.program_id == "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr"

    def test_from_rpc_result(self):
        result = {
            "slot": 250,
            "blockTime": 1_700_000_000,
            "meta": {"err": None, "fee": 5000},
            "transaction": {
                "message": {
                    "accountKeys": [
                        {"pubkey": FEE_PAYER, "signer": True, "writable": True},
                        {"pubkey": TRACKED_ADDRESS, "signer": False, "writable": True},
                    ],
                    "instructions": [
                        _rpc_transfer(FEE_PAYER, TRACKED_ADDRESS, 1_000),
                        {"programId": "Memo", "accounts": [], "data": "x"},
                    ],
                }
            },
        }

        tx = ParsedTransaction.from_rpc_result(result)

        assert tx.slot == 250
        assert tx.block_time == 1_700_000_000
        assert tx.fee_payer == FEE_PAYER
        assert [type(ix) for ix in tx.instructions] == [
            SystemTransfer,
            OtherInstruction,
        ]

    def test_plain_string_account_keys(self):
        tx = ParsedTransaction.from_rpc_result(
            {
                "meta": {"err": None},
                "transaction": {
                    "message": {"accountKeys": [FEE_PAYER], "instructions": []}
                },
            }
        )
        assert tx.fee_payer == FEE_PAYER


class TestTransferFilter:
    """Tests for TransferFilter.extract."""

    def setup_method(self):
        self.filter = TransferFilter(TRACKED_ADDRESS)

    def test_amount_conversion(self):
        assert lamports_to_sol(2_500_000_000) == 2.5

        tx = make_transfer_tx(FEE_PAYER, TRACKED_ADDRESS, 2_500_000_000)
        [candidate] = self.filter.extract("sig-1", tx)

        assert candidate.amount == 2.5
        assert candidate.lamports == 2_500_000_000

    def test_success_status(self):
        tx = make_transfer_tx(FEE_PAYER, TRACKED_ADDRESS, 1)
        [candidate] = self.filter.extract("sig-1", tx)
        assert candidate.status == TransferStatus.SUCCESS
        assert candidate.to_row()["status"] == "Success"

    def test_failure_status(self):
        tx = make_transfer_tx(
            FEE_PAYER,
            TRACKED_ADDRESS,
            1,
            err={"InstructionError": [0, {"Custom": 1}]},
        )
        [candidate] = self.filter.extract("sig-1", tx)
        assert candidate.status == TransferStatus.FAILURE

    def test_counts_only_matching_instructions(self):
        """N transfers to the tracked account plus M others yield exactly N rows."""
        instructions = [
            SystemTransfer(source=FEE_PAYER, destination=TRACKED_ADDRESS, lamports=1),
            SystemTransfer(source=FEE_PAYER, destination=OTHER_ADDRESS, lamports=2),
            SystemTransfer(source=FEE_PAYER, destination=TRACKED_ADDRESS, lamports=3),
            OtherInstruction(program="spl-token"),
            OtherInstruction(program="spl-memo"),
        ]
        tx = ParsedTransaction(
            account_keys=[FEE_PAYER, TRACKED_ADDRESS, OTHER_ADDRESS],
            instructions=instructions,
            meta={"err": None},
        )

        candidates = self.filter.extract("sig-multi", tx)

        assert [c.lamports for c in candidates] == [1, 3]
        assert {c.signature for c in candidates} == {"sig-multi"}

    def test_sender_is_fee_payer_not_instruction_source(self):
        tx = ParsedTransaction(
            account_keys=[FEE_PAYER, OTHER_ADDRESS, TRACKED_ADDRESS],
            instructions=[
                SystemTransfer(
                    source=OTHER_ADDRESS, destination=TRACKED_ADDRESS, lamports=7
                )
            ],
            meta={"err": None},
        )
        [candidate] = self.filter.extract("sig-1", tx)
        assert candidate.sender == FEE_PAYER

    @pytest.mark.parametrize(
        "tx",
        [
            None,
            ParsedTransaction(
                account_keys=[FEE_PAYER],
                instructions=[
                    SystemTransfer(
                        source=FEE_PAYER, destination=TRACKED_ADDRESS, lamports=1
                    )
                ],
                meta=None,
            ),
        ],
        ids=["no-body", "no-meta"],
    )
    def test_partial_data_yields_nothing(self, tx):
        assert self.filter.extract("sig-1", tx) == []

    def test_meta_is_kept_for_audit(self):
        tx = make_transfer_tx(FEE_PAYER, TRACKED_ADDRESS, 1)
        [candidate] = self.filter.extract("sig-1", tx)
        assert candidate.meta == {"err": None, "fee": 5000}
