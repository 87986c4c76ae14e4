"""Tests for tracked-address validation."""

import pytest

from paytrack.indexer import InvalidAddressError, PaymentIndexer, validate_address
from paytrack.indexer.clients.memory_client import InMemoryLedgerClient

from conftest import TRACKED_ADDRESS


class TestValidateAddress:
    def test_valid_address_is_returned(self):
        assert validate_address(TRACKED_ADDRESS) == TRACKED_ADDRESS

    def test_surrounding_whitespace_is_ignored(self):
        assert validate_address(f"  {TRACKED_ADDRESS}\n") == TRACKED_ADDRESS

    @pytest.mark.parametrize(
        "address",
        [
            # Valid keys whose canonical encoding is shorter than 44 chars
            "11111111111111111111111111111111",
            "So11111111111111111111111111111111111111112",
        ],
    )
    def test_short_canonical_encoding_is_rejected(self, address):
        with pytest.raises(InvalidAddressError, match="length"):
            validate_address(address)

    @pytest.mark.parametrize("address", ["", "   ", "not-a-key", "0OIl" * 11])
    def test_malformed_address_is_rejected(self, address):
        with pytest.raises(InvalidAddressError):
            validate_address(address)

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_address("nope")


class TestIndexerConstruction:
    def test_invalid_address_refuses_to_start(self):
        with pytest.raises(InvalidAddressError):
            PaymentIndexer(InMemoryLedgerClient(), "11111111111111111111111111111111")

    def test_valid_address_is_canonicalised(self):
        indexer = PaymentIndexer(InMemoryLedgerClient(), f" {TRACKED_ADDRESS} ")
        assert indexer.address == TRACKED_ADDRESS
