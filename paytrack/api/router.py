"""
Read-only API over indexed transfers.

Lets billing and reconciliation consumers query stored payments and see
how far the indexer has progressed, without touching the ledger.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from paytrack.db.base import get_db
from paytrack.db.unit_of_work import UnitOfWork

router = APIRouter(tags=["transfers"])


class TransferResponse(BaseModel):
    """One stored transfer."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    signature: str
    sender: str
    amount: float
    lamports: int
    status: str
    slot: Optional[int] = None
    block_time: Optional[int] = None
    meta: Optional[Dict[str, Any]] = None
    created_at: datetime


class TransferListResponse(BaseModel):
    """Page of stored transfers, newest first."""

    total: int
    items: List[TransferResponse]


@router.get("/transfers", response_model=TransferListResponse)
async def list_transfers(
    sender: Optional[str] = None,
    status_filter: Optional[Literal["Success", "Failure"]] = Query(
        default=None, alias="status"
    ),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_db),
):
    """List stored transfers, optionally filtered by sender and status."""
    async with UnitOfWork(session=session) as uow:
        items = await uow.transfers.list_recent(
            limit=limit, offset=offset, sender=sender, status=status_filter
        )
        total = await uow.transfers.count(sender=sender, status=status_filter)
    return TransferListResponse(
        total=total, items=[TransferResponse.model_validate(t) for t in items]
    )


@router.get("/transfers/{signature}", response_model=List[TransferResponse])
async def get_transfers_for_signature(
    signature: str, session: AsyncSession = Depends(get_db)
):
    """Every transfer recorded for one transaction signature."""
    async with UnitOfWork(session=session) as uow:
        items = await uow.transfers.get_by_signature(signature)
    if not items:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No transfers recorded for signature {signature}",
        )
    return [TransferResponse.model_validate(t) for t in items]


@router.get("/indexer/status")
async def indexer_status(request: Request) -> Dict[str, Any]:
    """Cursor position, stored count, backoff state and recent cycles."""
    indexer = getattr(request.app.state, "indexer", None)
    if indexer is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Indexer is not configured (set SOLANA_RPC_URL and TRACKED_ADDRESS)",
        )
    return await indexer.get_status()
