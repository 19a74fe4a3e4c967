"""Payment slip endpoints"""

from typing import Any
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.schemas.responses import SuccessResponse
from app.schemas.slip import SlipCreate, SlipResponse
from app.services.slip_service import SlipService
from app.services.storage_service import BlobStore

router = APIRouter()


@router.post(
    "/payments/{payment_id}/slips",
    response_model=SuccessResponse[SlipResponse],
    status_code=status.HTTP_201_CREATED,
)
async def attach_slip(
    payment_id: UUID,
    body: SlipCreate,
    actor_id: UUID = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Record an uploaded slip. The artifact is not checked at this point."""
    slip = await SlipService.attach_slip(db, payment_id, actor_id, body.slip_url)
    return SuccessResponse(data=SlipResponse.model_validate(slip), message="Slip attached")


@router.get("/payments/{payment_id}/slips", response_model=SuccessResponse[list[SlipResponse]])
async def list_slips(
    payment_id: UUID,
    live: bool = True,
    db: AsyncSession = Depends(deps.get_db),
    store: BlobStore = Depends(deps.get_blob_store),
) -> Any:
    """
    Slips for a payment. With ``live=true`` (default) slips whose artifact is
    gone or unreachable are left out.
    """
    if live:
        slips = await SlipService.list_live_slips(db, payment_id, store)
    else:
        slips = await SlipService.list_slips(db, payment_id)
    return SuccessResponse(data=[SlipResponse.model_validate(s) for s in slips])


@router.delete("/slips/{slip_id}", response_model=SuccessResponse)
async def detach_slip(
    slip_id: UUID,
    actor_id: UUID = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    await SlipService.detach_slip(db, slip_id, actor_id)
    return SuccessResponse(data=None, message="Slip removed")
