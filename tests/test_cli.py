"""Tests for the indexer command-line entry point."""

from paytrack.core.config import Settings
from paytrack.indexer import cli
from paytrack.indexer.clients.memory_client import InMemoryLedgerClient
from paytrack.indexer.engine import PaymentIndexer

from conftest import TRACKED_ADDRESS


async def _no_tables():
    return None


def test_no_arguments_prints_usage(capsys):
    assert cli.main([]) == 1
    assert "Usage:" in capsys.readouterr().out


def test_unknown_command(capsys):
    assert cli.main(["frobnicate"]) == 1
    assert "Unknown command: frobnicate" in capsys.readouterr().out


def test_sigs_requires_direction(capsys):
    assert cli.main(["sigs", "sideways", "abc"]) == 1
    assert "before|until" in capsys.readouterr().out


def test_missing_configuration_fails(monkeypatch, capsys):
    settings = Settings(_env_file=None, SOLANA_RPC_URL=None, TRACKED_ADDRESS=None)
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(cli, "create_tables", _no_tables)

    assert cli.main(["status"]) == 1
    assert "SOLANA_RPC_URL not found" in capsys.readouterr().out


def test_txns_lists_latest_signatures(monkeypatch, capsys):
    ledger = InMemoryLedgerClient()
    ledger.add_transaction("sig-old", block_time=100)
    ledger.add_transaction("sig-new", block_time=200, err={"Custom": 1})

    async def _prepare():
        return PaymentIndexer(ledger, TRACKED_ADDRESS)

    monkeypatch.setattr(cli, "_prepare", _prepare)

    assert cli.main(["txns"]) == 0

    out = capsys.readouterr().out
    assert out.index("sig-new") < out.index("sig-old")
    assert "sig-new  block_time=200 FAILED" in out
    assert "2 signature(s)" in out
    assert ledger.signature_calls == [{"before": None, "until": None}]
