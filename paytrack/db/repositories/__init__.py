"""Repository exports."""

from .transfer_repository import TransferRepository
from .cursor_repository import CursorRepository

__all__ = ["TransferRepository", "CursorRepository"]
