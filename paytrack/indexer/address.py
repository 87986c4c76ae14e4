"""Tracked-account address validation."""

from solders.pubkey import Pubkey

CANONICAL_ADDRESS_LENGTH = 44


class InvalidAddressError(ValueError):
    """Raised when the tracked account is not a usable Solana address."""


def validate_address(address: str) -> str:
    """
    Parse ``address`` and return its canonical base58 form.

    The canonical encoding must be exactly 44 characters. Shorter valid
    keys (those with leading zero bytes) are rejected too.

    Raises:
        InvalidAddressError: If the address does not parse or is not 44 chars
    """
    candidate = (address or "").strip()
    if not candidate:
        raise InvalidAddressError("Tracked address must be non-empty")
    try:
        canonical = str(Pubkey.from_string(candidate))
    except Exception as e:
        raise InvalidAddressError(f"Invalid Solana address {candidate!r}: {e}") from e

    if len(canonical) != CANONICAL_ADDRESS_LENGTH:
        raise InvalidAddressError(
            f"Invalid wallet address length: {len(canonical)} "
            f"(expected {CANONICAL_ADDRESS_LENGTH})"
        )
    return canonical
