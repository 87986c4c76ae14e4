"""Database models for the paytrack indexer."""

from .transfer import Transfer, TransferStatus
from .cursor import CursorState

__all__ = ["Transfer", "TransferStatus", "CursorState"]
