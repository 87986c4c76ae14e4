"""paytrack: indexes incoming SOL payments to a single tracked account."""

__version__ = "0.1.0"
